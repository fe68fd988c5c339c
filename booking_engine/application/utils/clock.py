from __future__ import annotations

from datetime import datetime
from typing import Callable
from zoneinfo import ZoneInfo

Clock = Callable[[], datetime]


def business_clock(timezone: ZoneInfo) -> Clock:
    """Wall clock in the business timezone; "today" and the morning cutoff read from it."""

    def _now() -> datetime:
        return datetime.now(timezone)

    return _now
