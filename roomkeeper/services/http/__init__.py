"""HTTP client service package."""

from roomkeeper.services.http.client import HTTPClientManager

__all__ = ["HTTPClientManager"]
