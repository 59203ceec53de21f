"""Time helper tests."""

from __future__ import annotations

from datetime import UTC, datetime

from ballot.utils.time import (
    expires_at_ms,
    format_time_remaining,
    from_epoch_ms,
    is_expired,
    to_epoch_ms,
)


def test_epoch_ms_round_trip_is_utc() -> None:
    """Naive datetimes are treated as UTC."""
    value = datetime(2026, 2, 7, 12, 30)
    assert from_epoch_ms(to_epoch_ms(value)) == value.replace(tzinfo=UTC)


def test_is_expired_only_strictly_after_expiry() -> None:
    """A credential is still usable at the exact expiry instant."""
    expiry = expires_at_ms(60, base_ms=1_000)
    assert expiry == 61_000
    assert not is_expired(expiry, at_ms=61_000)
    assert is_expired(expiry, at_ms=61_001)


def test_format_time_remaining() -> None:
    """Remaining time renders in minutes and seconds."""
    assert format_time_remaining(10_000, at_ms=10_000) == "Expired"
    assert format_time_remaining(95_000, at_ms=0) == "1m 35s remaining"
    assert format_time_remaining(9_500, at_ms=0) == "9s remaining"
