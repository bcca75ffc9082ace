"""Unit tests for RoomManager."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from roomkeeper.errors import (
    InvalidLabelKeyError,
    InvalidValueError,
    MissingFieldError,
    RoomNotFoundError,
)
from roomkeeper.managers.room import RoomManager
from roomkeeper.models.room import PortAllocation, RoomDescriptor
from tests.conftest import NS, ORCH, make_room_labels
from tests.fakes import FakeRoomDriver


def _descriptor(**overrides) -> RoomDescriptor:
    fields = dict(
        name="room-1",
        url="https://rooms.example.com/room-1/",
        cotester_url="https://cotester.example.com/room-1",
        ports=PortAllocation.mux(8080),
        image="m1k1o/neko:chromium",
        deadline=datetime(2026, 10, 19, 12, tzinfo=UTC),
        api_endpoint="https://x",
        session_id="s1",
        api_key="k",
    )
    fields.update(overrides)
    return RoomDescriptor(**fields)


class TestListRooms:
    @pytest.mark.asyncio
    async def test_decodes_every_room(self, codec):
        driver = FakeRoomDriver()
        driver.add_room("a", make_room_labels())
        driver.add_room("b", make_room_labels(**{f"{NS}.name": "room-2"}))
        manager = RoomManager(driver, codec)

        entries = await manager.list_rooms()

        assert [e.id for e in entries] == ["a", "b"]
        assert [e.descriptor.name for e in entries] == ["room-1", "room-2"]
        assert not any(e.damaged for e in entries)

    @pytest.mark.asyncio
    async def test_damaged_room_is_reported_not_raised(self, codec):
        driver = FakeRoomDriver()
        driver.add_room("ok", make_room_labels())
        driver.add_room("broken", make_room_labels(**{f"{ORCH}.api-key": None}))
        manager = RoomManager(driver, codec)

        entries = await manager.list_rooms()

        broken = entries[1]
        assert broken.damaged
        assert broken.descriptor is None
        assert isinstance(broken.error, MissingFieldError)
        assert broken.error.key == f"{ORCH}.api-key"
        assert not entries[0].damaged

    @pytest.mark.asyncio
    async def test_label_filter_is_passed_to_driver(self, codec):
        driver = FakeRoomDriver()
        driver.add_room("a", make_room_labels())
        driver.add_room("b", make_room_labels(**{f"{NS}.name": "room-2"}))
        manager = RoomManager(driver, codec)

        entries = await manager.list_rooms(labels={f"{NS}.name": "room-2"})

        assert [e.id for e in entries] == ["b"]
        assert driver.list_calls == [{f"{NS}.name": "room-2"}]


class TestGetRoom:
    @pytest.mark.asyncio
    async def test_get_room(self, codec):
        driver = FakeRoomDriver()
        driver.add_room("a", make_room_labels())

        room = await RoomManager(driver, codec).get_room("a")

        assert room.session_id == "s1"

    @pytest.mark.asyncio
    async def test_unknown_room(self, codec):
        with pytest.raises(RoomNotFoundError):
            await RoomManager(FakeRoomDriver(), codec).get_room("nope")

    @pytest.mark.asyncio
    async def test_damaged_room_raises(self, codec):
        driver = FakeRoomDriver()
        driver.add_room("a", make_room_labels(**{f"{NS}.epr.max": "1"}))

        with pytest.raises(InvalidValueError) as exc_info:
            await RoomManager(driver, codec).get_room("a")

        assert exc_info.value.key == f"{NS}.epr.max"


class TestBuildLabels:
    def test_labels_decode_back(self, codec):
        manager = RoomManager(FakeRoomDriver(), codec)
        room = _descriptor(user_defined={"team": "qa"})

        labels = manager.build_labels(room)

        assert codec.decode(labels) == room
        assert labels[f"{NS}.instance"] == "neko-rooms"

    def test_mixed_case_key_is_accepted_and_lowercased(self, codec):
        manager = RoomManager(FakeRoomDriver(), codec)

        labels = manager.build_labels(_descriptor(user_defined={"Team": "qa"}))

        assert labels[f"{NS}.x-team"] == "qa"

    @pytest.mark.parametrize("key", ["team_name", "a b", "", "ticket/id"])
    def test_invalid_extension_key(self, codec, key):
        manager = RoomManager(FakeRoomDriver(), codec)

        with pytest.raises(InvalidLabelKeyError) as exc_info:
            manager.build_labels(_descriptor(user_defined={key: "v"}))

        assert exc_info.value.key == key
