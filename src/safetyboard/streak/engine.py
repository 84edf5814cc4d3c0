"""Streak engine — read-side derivations over a year calendar.

Pure computation: no side effects, cheap enough to recompute on every
render or tick rather than maintained incrementally.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from safetyboard.models.calendar import (
    STREAK_STATUSES,
    DayStatus,
    YearCalendar,
    get_status,
)


@dataclass(frozen=True)
class MonthSummary:
    """Counts of decided days in one month."""
    safe: int = 0
    near_miss: int = 0
    accident: int = 0


def compute_streak(calendar: YearCalendar, now: datetime, year: int) -> int:
    """Count consecutive SAFE/NEAR_MISS days ending at today or yesterday.

    Anchor is today when today already qualifies, otherwise yesterday
    (before the cutoff, today is legitimately still UNSET). Walks back
    until an ACCIDENT or UNSET day, or the start of the year.
    """
    if now.year != year:
        return 0

    today = now.date()
    if get_status(calendar, today.month - 1, today.day) in STREAK_STATUSES:
        cursor = today
    else:
        cursor = today - timedelta(days=1)

    streak = 0
    while cursor.year == year:
        if get_status(calendar, cursor.month - 1, cursor.day) not in STREAK_STATUSES:
            break
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def month_summary(calendar: YearCalendar, month_index: int) -> MonthSummary:
    """Tally SAFE, NEAR_MISS and ACCIDENT days in a 0-based month."""
    if not 0 <= month_index < len(calendar):
        return MonthSummary()
    statuses = [d.status for d in calendar[month_index].days]
    return MonthSummary(
        safe=statuses.count(DayStatus.SAFE),
        near_miss=statuses.count(DayStatus.NEAR_MISS),
        accident=statuses.count(DayStatus.ACCIDENT),
    )
