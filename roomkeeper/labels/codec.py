"""Room descriptor <-> container label codec.

Labels are the only persistent store for a room, so decoding is strict: a
descriptor is either fully valid or decode raises a ``LabelDecodeError``
naming the offending key. The only tolerated absence is ``api_version``,
which defaults to 2 (rooms created before versioning).

Compact encodings:
- api_version is omitted when it equals the default
- a mux room stores one ``mux`` port instead of ``epr.min`` / ``epr.max``
- browser policy keys exist only when a policy is set
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import datetime
from typing import TYPE_CHECKING

from roomkeeper.errors import InvalidValueError, MissingFieldError
from roomkeeper.labels.keys import LabelKeys
from roomkeeper.models.room import (
    DEFAULT_API_VERSION,
    PORT_MAX,
    BrowserPolicy,
    PortAllocation,
    PortMode,
    RoomDescriptor,
)
from roomkeeper.utils.datetime import format_rfc3339, parse_rfc3339

if TYPE_CHECKING:
    from roomkeeper.config import LabelsConfig

_UINT_RE = re.compile(r"^[0-9]+$")
_INT_RE = re.compile(r"^[+-]?[0-9]+$")

# api_version is a signed 64-bit integer
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

BROWSER_POLICY_ENABLED = "true"


def _require(labels: Mapping[str, str], key: str) -> str:
    try:
        return labels[key]
    except KeyError:
        raise MissingFieldError(key) from None


def _parse_port(key: str, raw: str) -> int:
    """Parse an unsigned 16-bit base-10 value."""
    if not _UINT_RE.fullmatch(raw):
        raise InvalidValueError(key, raw, "expected an unsigned integer")
    try:
        value = int(raw)
    except ValueError:
        # more digits than int() converts
        raise InvalidValueError(key, raw, f"out of range 0-{PORT_MAX}") from None
    if value > PORT_MAX:
        raise InvalidValueError(key, raw, f"out of range 0-{PORT_MAX}")
    return value


class LabelCodec:
    """Encodes and decodes room descriptors for one label namespace pair."""

    def __init__(self, config: "LabelsConfig") -> None:
        self._keys = LabelKeys(
            namespace=config.namespace,
            orchestrator_namespace=config.orchestrator_namespace,
        )
        self._instance_name = config.instance_name

    @property
    def keys(self) -> LabelKeys:
        return self._keys

    @property
    def instance_name(self) -> str:
        return self._instance_name

    def decode(self, labels: Mapping[str, str]) -> RoomDescriptor:
        """Decode container labels into a room descriptor.

        Fields are checked in a fixed order, so the error for a label map
        with several problems is deterministic.

        Raises:
            MissingFieldError: A required label is absent.
            InvalidValueError: A label value cannot be parsed.
        """
        k = self._keys

        name = _require(labels, k.name)
        url = _require(labels, k.url)
        cotester_url = _require(labels, k.cotester_url)
        ports = self._decode_ports(labels)
        image = _require(labels, k.image)
        api_version = self._decode_api_version(labels)
        browser_policy = self._decode_browser_policy(labels)
        user_defined = self._decode_user_defined(labels)
        deadline = self.decode_deadline(labels)
        api_endpoint = _require(labels, k.api_endpoint)
        session_id = _require(labels, k.session_id)
        api_key = _require(labels, k.api_key)

        return RoomDescriptor(
            name=name,
            url=url,
            cotester_url=cotester_url,
            ports=ports,
            image=image,
            api_version=api_version,
            browser_policy=browser_policy,
            user_defined=user_defined,
            deadline=deadline,
            api_endpoint=api_endpoint,
            session_id=session_id,
            api_key=api_key,
        )

    def decode_deadline(self, labels: Mapping[str, str]) -> datetime:
        """Read only the deadline label."""
        key = self._keys.deadline
        raw = _require(labels, key)
        try:
            return parse_rfc3339(raw)
        except ValueError as e:
            raise InvalidValueError(key, raw, str(e)) from e

    def _decode_ports(self, labels: Mapping[str, str]) -> PortAllocation:
        k = self._keys

        # mux takes priority over any range keys
        mux_raw = labels.get(k.mux)
        if mux_raw is not None:
            return PortAllocation.mux(_parse_port(k.mux, mux_raw))

        min_port = _parse_port(k.epr_min, _require(labels, k.epr_min))
        max_raw = _require(labels, k.epr_max)
        max_port = _parse_port(k.epr_max, max_raw)
        if min_port > max_port:
            raise InvalidValueError(k.epr_max, max_raw, f"below {k.epr_min}={min_port}")

        return PortAllocation.range(min_port, max_port)

    def _decode_api_version(self, labels: Mapping[str, str]) -> int:
        key = self._keys.api_version
        raw = labels.get(key)
        if raw is None:
            return DEFAULT_API_VERSION
        if not _INT_RE.fullmatch(raw):
            raise InvalidValueError(key, raw, "expected an integer")
        try:
            value = int(raw)
        except ValueError:
            value = None
        if value is None or not INT64_MIN <= value <= INT64_MAX:
            raise InvalidValueError(key, raw, "out of 64-bit integer range")
        return value

    def _decode_browser_policy(self, labels: Mapping[str, str]) -> BrowserPolicy | None:
        k = self._keys
        if labels.get(k.browser_policy) != BROWSER_POLICY_ENABLED:
            return None

        return BrowserPolicy(
            type=_require(labels, k.browser_policy_type),
            path=_require(labels, k.browser_policy_path),
        )

    def _decode_user_defined(self, labels: Mapping[str, str]) -> dict[str, str]:
        prefix = self._keys.user_defined_prefix
        return {
            key[len(prefix):]: value
            for key, value in labels.items()
            if key.startswith(prefix)
        }

    def encode(self, room: RoomDescriptor) -> dict[str, str]:
        """Encode a room descriptor into container labels."""
        k = self._keys

        labels = {
            k.name: room.name,
            k.url: room.url,
            k.cotester_url: room.cotester_url,
            k.instance: self._instance_name,
            k.image: room.image,
            k.deadline: format_rfc3339(room.deadline),
            k.api_endpoint: room.api_endpoint,
            k.session_id: room.session_id,
            k.api_key: room.api_key,
        }

        # absence means the default version
        if room.api_version != DEFAULT_API_VERSION:
            labels[k.api_version] = str(room.api_version)

        ports = room.ports
        if ports.mode is PortMode.MUX and ports.min == ports.max:
            labels[k.mux] = str(ports.min)
        else:
            labels[k.epr_min] = str(ports.min)
            labels[k.epr_max] = str(ports.max)

        if room.browser_policy is not None:
            labels[k.browser_policy] = BROWSER_POLICY_ENABLED
            labels[k.browser_policy_type] = room.browser_policy.type
            labels[k.browser_policy_path] = room.browser_policy.path

        for key, value in room.user_defined.items():
            labels[k.user_defined(key.lower())] = value

        return labels
