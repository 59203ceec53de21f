"""Time utility helpers."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta


def now_utc() -> datetime:
    """Return current timezone-aware UTC datetime."""
    return datetime.now(tz=UTC)


def now_ms() -> int:
    """Return current UTC time as integer epoch milliseconds."""
    return to_epoch_ms(now_utc())


def to_epoch_ms(value: datetime) -> int:
    """Convert a datetime to epoch milliseconds (naive values are UTC)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return int(value.timestamp() * 1000)


def from_epoch_ms(value: int) -> datetime:
    """Convert epoch milliseconds into a timezone-aware UTC datetime."""
    return datetime.fromtimestamp(value / 1000, tz=UTC)


def expires_at_ms(ttl_seconds: int, base_ms: int | None = None) -> int:
    """Return the expiry timestamp ``ttl_seconds`` after ``base_ms`` (or now)."""
    start = now_ms() if base_ms is None else base_ms
    return start + ttl_seconds * 1000


def is_expired(expires_at: int, at_ms: int | None = None) -> bool:
    """Return True once ``at_ms`` (or now) is strictly past ``expires_at``."""
    current = now_ms() if at_ms is None else at_ms
    return current > expires_at


def format_time_remaining(expires_at: int, at_ms: int | None = None) -> str:
    """Format remaining lifetime in the compact form shown next to links."""
    current = now_ms() if at_ms is None else at_ms
    remaining = expires_at - current
    if remaining <= 0:
        return "Expired"

    minutes = remaining // 60_000
    seconds = (remaining % 60_000) // 1000
    if minutes > 0:
        return f"{minutes}m {seconds}s remaining"
    return f"{seconds}s remaining"


def retention_cutoff_ms(days: int, at_ms: int | None = None) -> int:
    """Return the epoch-ms instant ``days`` before ``at_ms`` (or now)."""
    current = now_ms() if at_ms is None else at_ms
    return current - int(timedelta(days=days).total_seconds() * 1000)
