from __future__ import annotations

from datetime import datetime, timezone


def now_utc() -> datetime:
    """Current time, timezone-aware.

    Note: Wrapped so tests can patch/mock easier.
    """
    return datetime.now(timezone.utc)


def to_iso(value: datetime) -> str:
    return value.isoformat()


def parse_iso(value: str) -> datetime:
    """Parse an ISO-8601 timestamp; naive values are assumed to be UTC."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_clock(value: datetime) -> str:
    """Wall-clock time on the kiosk; aware values are shown in local time."""
    if value.tzinfo is not None:
        value = value.astimezone()
    return value.strftime("%H:%M:%S")
