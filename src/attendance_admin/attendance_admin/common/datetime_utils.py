from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def now_utc() -> datetime:
    """Current UTC time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now(timezone.utc)


def to_iso_timestamp(value: datetime) -> str:
    """Format as ``YYYY-MM-DDTHH:MM:SS.mmmZ`` (millisecond precision, UTC)."""
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def iso_now() -> str:
    return to_iso_timestamp(now_utc())


def next_timestamp(previous: Optional[str]) -> str:
    """Timestamp for a write that must not sort before ``previous``.

    All timestamps share one fixed-width format, so string order is time order.
    """
    current = iso_now()
    if previous and isinstance(previous, str) and previous > current:
        return previous
    return current
