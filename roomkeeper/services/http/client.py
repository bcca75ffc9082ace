"""Shared HTTP client manager.

Provides one pooled httpx.AsyncClient for outbound calls (session tracker
notifications), started and stopped by the worker entry point.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import structlog

if TYPE_CHECKING:
    from roomkeeper.config import HTTPConfig

logger = structlog.get_logger()


class HTTPClientManager:
    """Manages a shared httpx.AsyncClient with connection pooling.

    Usage:
        manager = HTTPClientManager.from_config(settings.http)
        await manager.startup()
        response = await manager.client.patch("http://...")
        await manager.shutdown()
    """

    def __init__(
        self,
        *,
        max_connections: int = 50,
        max_keepalive_connections: int = 20,
        keepalive_expiry: float = 30.0,
        connect_timeout: float = 10.0,
        read_timeout: float = 30.0,
        write_timeout: float = 30.0,
        pool_timeout: float = 10.0,
    ) -> None:
        self._max_connections = max_connections
        self._max_keepalive_connections = max_keepalive_connections
        self._keepalive_expiry = keepalive_expiry
        self._connect_timeout = connect_timeout
        self._read_timeout = read_timeout
        self._write_timeout = write_timeout
        self._pool_timeout = pool_timeout

        self._client: httpx.AsyncClient | None = None
        self._log = logger.bind(component="http_client")

    @classmethod
    def from_config(cls, config: "HTTPConfig") -> HTTPClientManager:
        return cls(**config.model_dump())

    @property
    def client(self) -> httpx.AsyncClient:
        """Get the shared HTTP client.

        Raises:
            RuntimeError: If client is not initialized (call startup first)
        """
        if self._client is None:
            raise RuntimeError("HTTP client not initialized. Call startup() first.")
        return self._client

    @property
    def is_started(self) -> bool:
        return self._client is not None

    async def startup(self) -> None:
        """Initialize the HTTP client with connection pooling."""
        if self._client is not None:
            self._log.warning("http_client.already_started")
            return

        limits = httpx.Limits(
            max_connections=self._max_connections,
            max_keepalive_connections=self._max_keepalive_connections,
            keepalive_expiry=self._keepalive_expiry,
        )
        timeout = httpx.Timeout(
            connect=self._connect_timeout,
            read=self._read_timeout,
            write=self._write_timeout,
            pool=self._pool_timeout,
        )

        self._client = httpx.AsyncClient(limits=limits, timeout=timeout)

        self._log.info(
            "http_client.started",
            max_connections=self._max_connections,
            max_keepalive=self._max_keepalive_connections,
        )

    async def shutdown(self) -> None:
        """Close the HTTP client and release resources."""
        if self._client is None:
            return

        await self._client.aclose()
        self._client = None
        self._log.info("http_client.shutdown")
