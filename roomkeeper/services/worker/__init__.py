"""Lifecycle worker for room containers.

Two independent loops:
- DeadlineReaper: removes rooms past their deadline label
- EventRelay: reports start/stop transitions to the session tracker

Usage:
    from roomkeeper.services.worker import create_worker

    supervisor = create_worker(settings, driver, http_client)
    await supervisor.start()
"""

from roomkeeper.services.worker.lifecycle import create_worker
from roomkeeper.services.worker.reaper import DeadlineReaper, ReapResult
from roomkeeper.services.worker.relay import ACTION_STATUS, EventRelay
from roomkeeper.services.worker.supervisor import WorkerSupervisor
from roomkeeper.services.worker.tracker import SessionStatus, SessionTrackerClient

__all__ = [
    "ACTION_STATUS",
    "DeadlineReaper",
    "EventRelay",
    "ReapResult",
    "SessionStatus",
    "SessionTrackerClient",
    "WorkerSupervisor",
    "create_worker",
]
