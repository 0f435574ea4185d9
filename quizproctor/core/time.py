from __future__ import annotations

from datetime import date, datetime
from zoneinfo import ZoneInfo


def challenge_local_date(now_utc: datetime, *, tz_name: str = "UTC") -> date:
    """Converts a UTC instant to the calendar day used by the daily challenge gate."""
    return now_utc.astimezone(ZoneInfo(tz_name)).date()
