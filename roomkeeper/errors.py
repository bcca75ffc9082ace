"""roomkeeper error types.

Decode errors are raised to the caller (management layer). Driver and
notification errors are raised by the collaborators and logged by the worker
loops, which never let them escape.
"""

from __future__ import annotations

from typing import Any


class RoomKeeperError(Exception):
    """Base error for all roomkeeper exceptions."""

    code: str = "internal_error"
    message: str = "An internal error occurred"

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.__class__.message
        self.details = details or {}
        super().__init__(self.message)


# Label codec


class LabelDecodeError(RoomKeeperError):
    """Container labels could not be decoded into a room descriptor."""

    code = "damaged_labels"
    message = "Damaged container labels"

    def __init__(self, key: str, message: str | None = None, **details: Any) -> None:
        self.key = key
        super().__init__(message, details={"key": key, **details})


class MissingFieldError(LabelDecodeError):
    """A required label is absent."""

    code = "missing_field"

    def __init__(self, key: str) -> None:
        super().__init__(key, f"damaged container labels: {key} not found")


class InvalidValueError(LabelDecodeError):
    """A label is present but its value cannot be parsed."""

    code = "invalid_value"

    def __init__(self, key: str, value: str, reason: str | None = None) -> None:
        self.value = value
        message = f"damaged container labels: invalid value {value!r} for {key}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(key, message, value=value)


class InvalidLabelKeyError(RoomKeeperError):
    """A user supplied label key does not match ^[a-z0-9.-]+$."""

    code = "invalid_label_key"
    message = "Invalid label key"

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(
            f"invalid label key {key!r}: only a-z, 0-9, '.' and '-' are allowed",
            details={"key": key},
        )


class RoomNotFoundError(RoomKeeperError):
    """No room container with the given id."""

    code = "not_found"
    message = "Room not found"

    def __init__(self, room_id: str) -> None:
        self.room_id = room_id
        super().__init__(f"room {room_id} not found", details={"room_id": room_id})


# Collaborators


class DriverError(RoomKeeperError):
    """Container runtime operation failed."""

    code = "driver_error"
    message = "Container runtime error"


class RoomListingError(DriverError):
    code = "listing_failed"
    message = "Failed to list rooms"


class RoomRemovalError(DriverError):
    code = "removal_failed"
    message = "Failed to remove room"


class EventStreamError(DriverError):
    code = "event_stream_failed"
    message = "Room event stream error"


class NotificationError(RoomKeeperError):
    """Session tracker notification failed (transport or non-200)."""

    code = "notification_failed"
    message = "Session status update failed"
