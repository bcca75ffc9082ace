"""Unit tests for room model invariants and RFC 3339 helpers."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

import pytest

from roomkeeper.models.room import PortAllocation, PortMode
from roomkeeper.utils.datetime import format_rfc3339, parse_rfc3339, utcnow


class TestPortAllocation:
    def test_mux_is_single_port(self):
        ports = PortAllocation.mux(8080)

        assert ports.mode is PortMode.MUX
        assert ports.is_mux
        assert ports.min == ports.max == 8080

    def test_range(self):
        ports = PortAllocation.range(59000, 59100)

        assert not ports.is_mux
        assert (ports.min, ports.max) == (59000, 59100)

    def test_inverted_range_rejected(self):
        with pytest.raises(ValueError):
            PortAllocation.range(10, 5)

    def test_mux_with_two_ports_rejected(self):
        with pytest.raises(ValueError):
            PortAllocation(mode=PortMode.MUX, min=1, max=2)

    @pytest.mark.parametrize("port", [-1, 65536])
    def test_out_of_range_rejected(self, port):
        with pytest.raises(ValueError):
            PortAllocation.mux(port)


class TestRfc3339:
    def test_parse_utc(self):
        assert parse_rfc3339("2026-10-19T12:00:00Z") == datetime(
            2026, 10, 19, 12, tzinfo=UTC
        )

    def test_parse_lowercase_separators(self):
        assert parse_rfc3339("2026-10-19t12:00:00z") == datetime(
            2026, 10, 19, 12, tzinfo=UTC
        )

    def test_parse_truncates_nanoseconds(self):
        parsed = parse_rfc3339("2026-10-19T12:00:00.123456789Z")
        assert parsed.microsecond == 123456

    def test_parse_keeps_offset(self):
        parsed = parse_rfc3339("2026-10-19T12:00:00-03:30")
        assert parsed.utcoffset() == timedelta(hours=-3, minutes=-30)

    @pytest.mark.parametrize(
        "value",
        [
            "",
            "2026-10-19T12:00Z",
            "2026-10-19T25:00:00Z",
            "2026-W42-1T12:00:00Z",
            "2026-10-19T12:00:00Z\n",
            "2026-10-19T12:00:00.5Z\n",
        ],
    )
    def test_parse_rejects(self, value):
        with pytest.raises(ValueError):
            parse_rfc3339(value)

    def test_format_utc_uses_z(self):
        value = datetime(2026, 10, 19, 12, 0, 0, 999999, tzinfo=UTC)
        assert format_rfc3339(value) == "2026-10-19T12:00:00Z"

    def test_format_naive_as_utc(self):
        assert format_rfc3339(datetime(2026, 10, 19, 12)) == "2026-10-19T12:00:00Z"

    def test_format_keeps_offset(self):
        value = datetime(2026, 10, 19, 12, tzinfo=timezone(timedelta(hours=2)))
        assert format_rfc3339(value) == "2026-10-19T12:00:00+02:00"

    def test_utcnow_is_aware(self):
        assert utcnow().tzinfo is not None
