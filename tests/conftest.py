"""Shared fixtures for unit tests."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from roomkeeper.config import LabelsConfig
from roomkeeper.labels.codec import LabelCodec

NS = "m1k1o.neko_rooms"
ORCH = "cotester.vb-orchestrator"


def make_room_labels(**overrides: str | None) -> dict[str, str]:
    """A complete, valid label map for the default namespaces.

    Keyword arguments override label values by full key passed through a
    dict, or remove them when the value is None:

        make_room_labels(**{f"{NS}.mux": "8080"})
    """
    labels = {
        f"{NS}.name": "room-1",
        f"{NS}.url": "https://rooms.example.com/room-1/",
        f"{ORCH}.url": "https://cotester.example.com/room-1",
        f"{NS}.instance": "neko-rooms",
        f"{NS}.epr.min": "59000",
        f"{NS}.epr.max": "59049",
        f"{NS}.neko_image": "m1k1o/neko:firefox",
        f"{ORCH}.deadline": "2026-10-19T12:00:00Z",
        f"{ORCH}.api-endpoint": "https://x",
        f"{ORCH}.session-id": "s1",
        f"{ORCH}.api-key": "k",
    }
    for key, value in overrides.items():
        if value is None:
            labels.pop(key, None)
        else:
            labels[key] = value
    return labels


@pytest.fixture
def labels_config() -> LabelsConfig:
    return LabelsConfig()


@pytest.fixture
def codec(labels_config) -> LabelCodec:
    return LabelCodec(labels_config)


@pytest.fixture
def room_labels() -> Callable[..., dict[str, str]]:
    return make_room_labels
