"""Unit tests for SessionTrackerClient."""

from __future__ import annotations

import json

import httpx
import pytest
from structlog.testing import capture_logs

from roomkeeper.config import TrackerConfig
from roomkeeper.labels.keys import LabelKeys
from roomkeeper.services.worker.tracker import SessionStatus, SessionTrackerClient
from tests.conftest import ORCH, make_room_labels

KEYS = LabelKeys(namespace="m1k1o.neko_rooms", orchestrator_namespace=ORCH)
SESSIONS_URL = "https://x/api/v1/sessions"


@pytest.fixture(autouse=True)
def no_retry_delay(monkeypatch):
    monkeypatch.setattr(
        SessionTrackerClient, "_retry_delay_seconds", staticmethod(lambda attempt: 0)
    )


async def _notify(client: httpx.AsyncClient, *, max_retries: int = 0, **overrides) -> bool:
    tracker = SessionTrackerClient(client, KEYS, timeout=1.0, max_retries=max_retries)
    kwargs = dict(api_endpoint="https://x", session_id="s1", api_key="k")
    kwargs.update(overrides)
    return await tracker.notify("room-1", status=SessionStatus.STOPPED, **kwargs)


class TestNotify:
    @pytest.mark.asyncio
    async def test_sends_patch_with_session_payload(self, httpx_mock):
        httpx_mock.add_response(method="PATCH", url=SESSIONS_URL, status_code=200)

        async with httpx.AsyncClient() as client:
            assert await _notify(client) is True

        request = httpx_mock.get_request()
        assert request.method == "PATCH"
        assert request.headers["content-type"] == "application/json"
        assert json.loads(request.content) == {
            "sessionId": "s1",
            "status": "STOPPED",
            "secretKey": "k",
        }

    @pytest.mark.asyncio
    async def test_trailing_slash_in_endpoint(self, httpx_mock):
        httpx_mock.add_response(method="PATCH", url=SESSIONS_URL, status_code=200)

        async with httpx.AsyncClient() as client:
            assert await _notify(client, api_endpoint="https://x/") is True

    @pytest.mark.asyncio
    async def test_running_status(self, httpx_mock):
        httpx_mock.add_response(method="PATCH", url=SESSIONS_URL, status_code=200)

        async with httpx.AsyncClient() as client:
            tracker = SessionTrackerClient(client, KEYS)
            ok = await tracker.notify(
                "room-1",
                api_endpoint="https://x",
                session_id="s1",
                api_key="k",
                status=SessionStatus.RUNNING,
            )

        assert ok is True
        assert json.loads(httpx_mock.get_request().content)["status"] == "RUNNING"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [201, 204, 400, 401, 404, 500, 503])
    async def test_non_200_is_failure(self, httpx_mock, status_code):
        httpx_mock.add_response(method="PATCH", url=SESSIONS_URL, status_code=status_code)

        async with httpx.AsyncClient() as client:
            with capture_logs() as logs:
                ok = await _notify(client)

        assert ok is False
        assert len(httpx_mock.get_requests()) == 1
        failures = [e for e in logs if e["event"] == "tracker.update_failed"]
        assert len(failures) == 1
        assert failures[0]["status_code"] == status_code
        assert failures[0]["session_id"] == "s1"

    @pytest.mark.asyncio
    async def test_transport_error_is_failure(self, httpx_mock):
        httpx_mock.add_exception(httpx.ConnectError("connection refused"))

        async with httpx.AsyncClient() as client:
            with capture_logs() as logs:
                ok = await _notify(client)

        assert ok is False
        assert [e["event"] for e in logs if e["log_level"] == "error"] == [
            "tracker.update_failed"
        ]

    @pytest.mark.asyncio
    async def test_success_is_logged(self, httpx_mock):
        httpx_mock.add_response(method="PATCH", url=SESSIONS_URL, status_code=200)

        async with httpx.AsyncClient() as client:
            with capture_logs() as logs:
                await _notify(client)

        assert [e["event"] for e in logs] == ["tracker.session_updated"]


class TestRetries:
    @pytest.mark.asyncio
    async def test_5xx_retried_when_enabled(self, httpx_mock):
        httpx_mock.add_response(method="PATCH", url=SESSIONS_URL, status_code=503)
        httpx_mock.add_response(method="PATCH", url=SESSIONS_URL, status_code=200)

        async with httpx.AsyncClient() as client:
            ok = await _notify(client, max_retries=1)

        assert ok is True
        assert len(httpx_mock.get_requests()) == 2

    @pytest.mark.asyncio
    async def test_transport_errors_exhaust_retries(self, httpx_mock):
        for _ in range(3):
            httpx_mock.add_exception(httpx.ReadTimeout("timed out"))

        async with httpx.AsyncClient() as client:
            ok = await _notify(client, max_retries=2)

        assert ok is False
        assert len(httpx_mock.get_requests()) == 3

    @pytest.mark.asyncio
    async def test_4xx_never_retried(self, httpx_mock):
        httpx_mock.add_response(method="PATCH", url=SESSIONS_URL, status_code=403)

        async with httpx.AsyncClient() as client:
            ok = await _notify(client, max_retries=2)

        assert ok is False
        assert len(httpx_mock.get_requests()) == 1

    def test_from_config(self):
        client = httpx.AsyncClient()
        tracker = SessionTrackerClient.from_config(
            client, KEYS, TrackerConfig(timeout_seconds=2.5, max_retries=3)
        )

        assert tracker._timeout == 2.5
        assert tracker._max_retries == 3


class TestNotifyFromLabels:
    @pytest.mark.asyncio
    async def test_uses_label_coordinates(self, httpx_mock):
        httpx_mock.add_response(
            method="PATCH", url="https://tracker.example.com/api/v1/sessions", status_code=200
        )
        labels = make_room_labels(
            **{
                f"{ORCH}.api-endpoint": "https://tracker.example.com",
                f"{ORCH}.session-id": "sess-42",
                f"{ORCH}.api-key": "secret",
            }
        )

        async with httpx.AsyncClient() as client:
            tracker = SessionTrackerClient(client, KEYS)
            ok = await tracker.notify_from_labels("room-1", labels, SessionStatus.RUNNING)

        assert ok is True
        assert json.loads(httpx_mock.get_request().content) == {
            "sessionId": "sess-42",
            "status": "RUNNING",
            "secretKey": "secret",
        }

    @pytest.mark.asyncio
    @pytest.mark.parametrize("suffix", ["api-endpoint", "session-id", "api-key"])
    async def test_missing_coordinate_sends_nothing(self, httpx_mock, suffix):
        labels = make_room_labels(**{f"{ORCH}.{suffix}": None})

        async with httpx.AsyncClient() as client:
            tracker = SessionTrackerClient(client, KEYS)
            with capture_logs() as logs:
                ok = await tracker.notify_from_labels(
                    "room-1", labels, SessionStatus.STOPPED
                )

        assert ok is False
        assert httpx_mock.get_requests() == []
        assert len(logs) == 1
        assert logs[0]["event"] == "tracker.missing_label"
        assert logs[0]["log_level"] == "error"
        assert logs[0]["label"] == f"{ORCH}.{suffix}"
