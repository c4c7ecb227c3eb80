# app/utils/clock.py
"""Time source for the engine. All stored timestamps are naive UTC."""

from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)
