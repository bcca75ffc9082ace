from roomkeeper.drivers.docker.docker import DockerRoomDriver

__all__ = ["DockerRoomDriver"]
