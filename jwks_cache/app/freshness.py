"""
Refresh gate deciding whether a realm's key set should be requested again.
"""

from typing import Optional


SECONDS_PER_MINUTE = 60


def should_fetch(last_fetch: Optional[float], min_interval_minutes: float, now: float) -> bool:
    """Return True when no fetch was recorded or the cooldown has elapsed."""
    if last_fetch is None:
        return True
    return (now - last_fetch) >= min_interval_minutes * SECONDS_PER_MINUTE
