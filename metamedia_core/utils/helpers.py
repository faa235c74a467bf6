"""
METAMEDIA CORE — Common Utility Functions
"""
from datetime import datetime, timezone
from typing import Optional
import time


def utc_now() -> datetime:
    """Return current UTC datetime."""
    return datetime.now(timezone.utc)


def utc_timestamp() -> str:
    """Return current UTC timestamp as ISO string."""
    return utc_now().isoformat()


def epoch_millis() -> int:
    """Milliseconds since the epoch, used to salt per-fetch record ids."""
    return int(time.time() * 1000)


def clock_time(moment: Optional[datetime] = None) -> str:
    """Local wall-clock time as HH:MM:SS."""
    return (moment or datetime.now()).strftime("%H:%M:%S")


def short_time(moment: Optional[datetime] = None) -> str:
    """Local wall-clock time as HH:MM."""
    return (moment or datetime.now()).strftime("%H:%M")


def normalize_token(value: Optional[str]) -> str:
    """Upper-case a free-text token and strip markdown emphasis and punctuation noise."""
    if not value:
        return ""
    return value.strip().strip("*_`.").strip().upper()


def is_up(direction: Optional[str]) -> bool:
    """True only for an 'UP' direction token, case-insensitive."""
    return (direction or "").strip().upper() == "UP"
