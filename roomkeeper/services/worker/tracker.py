"""Session tracker client.

Reports room status transitions to the external orchestrator that owns the
session. The orchestrator coordinates are stored on the room container as
labels (endpoint, session id, secret key).

Notifications are best-effort: by default exactly one attempt is made and a
failure is only logged.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from enum import Enum
from typing import TYPE_CHECKING

import httpx
import structlog

from roomkeeper.errors import NotificationError

if TYPE_CHECKING:
    from roomkeeper.config import TrackerConfig
    from roomkeeper.labels.keys import LabelKeys

logger = structlog.get_logger()

SESSIONS_PATH = "/api/v1/sessions"


class SessionStatus(str, Enum):
    RUNNING = "RUNNING"
    STOPPED = "STOPPED"


class SessionTrackerClient:
    """Sends ``PATCH {endpoint}/api/v1/sessions`` status updates."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        keys: "LabelKeys",
        *,
        timeout: float = 10.0,
        max_retries: int = 0,
    ) -> None:
        self._client = client
        self._keys = keys
        self._timeout = timeout
        self._max_retries = max_retries
        self._log = logger.bind(component="session_tracker")

    @classmethod
    def from_config(
        cls, client: httpx.AsyncClient, keys: "LabelKeys", config: "TrackerConfig"
    ) -> SessionTrackerClient:
        return cls(
            client,
            keys,
            timeout=config.timeout_seconds,
            max_retries=config.max_retries,
        )

    @staticmethod
    def _retry_delay_seconds(attempt: int) -> float:
        # attempt is zero-based retry attempt index
        return min(0.2 * (2**attempt), 1.5)

    async def notify_from_labels(
        self,
        room_id: str,
        labels: Mapping[str, str],
        status: SessionStatus,
    ) -> bool:
        """Notify using the session coordinates found in container labels.

        Nothing is sent if any of the three coordinates is missing.
        """
        values: dict[str, str] = {}
        for field, key in (
            ("api_endpoint", self._keys.api_endpoint),
            ("session_id", self._keys.session_id),
            ("api_key", self._keys.api_key),
        ):
            value = labels.get(key)
            if value is None:
                self._log.error(
                    "tracker.missing_label",
                    room_id=room_id,
                    label=key,
                    status=status.value,
                )
                return False
            values[field] = value

        return await self.notify(room_id, status=status, **values)

    async def notify(
        self,
        room_id: str,
        *,
        api_endpoint: str,
        session_id: str,
        api_key: str,
        status: SessionStatus,
    ) -> bool:
        """Send one status update. Returns True on HTTP 200."""
        url = f"{api_endpoint.rstrip('/')}{SESSIONS_PATH}"
        try:
            await self._send(
                url,
                {
                    "sessionId": session_id,
                    "status": status.value,
                    "secretKey": api_key,
                },
            )
        except NotificationError as e:
            self._log.error(
                "tracker.update_failed",
                room_id=room_id,
                session_id=session_id,
                status=status.value,
                url=url,
                error=e.message,
                **e.details,
            )
            return False

        self._log.info(
            "tracker.session_updated",
            room_id=room_id,
            session_id=session_id,
            status=status.value,
        )
        return True

    async def _send(self, url: str, payload: dict[str, str]) -> None:
        max_attempts = self._max_retries + 1

        for attempt in range(max_attempts):
            try:
                response = await self._client.patch(
                    url,
                    json=payload,
                    headers={"Content-Type": "application/json"},
                    timeout=self._timeout,
                )
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                if attempt < max_attempts - 1:
                    await asyncio.sleep(self._retry_delay_seconds(attempt))
                    continue
                raise NotificationError(f"request failed: {e}") from e

            if response.status_code == httpx.codes.OK:
                return

            if 500 <= response.status_code <= 599 and attempt < max_attempts - 1:
                await asyncio.sleep(self._retry_delay_seconds(attempt))
                continue

            raise NotificationError(
                f"unexpected response status {response.status_code}",
                details={"status_code": response.status_code},
            )
