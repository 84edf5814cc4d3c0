"""Auto-rollover engine — promotes undecided days to SAFE.

Pure computation: no timers, no clock reads. The scheduler supplies the
current moment; the service layer decides what to do with the result.

Rules for each day still UNSET:
- Date strictly before today (time-of-day ignored) → SAFE.
- Date is today and local time >= cutoff hour → SAFE.
- Otherwise left UNSET.

Days already SAFE, NEAR_MISS or ACCIDENT are never touched.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta

from safetyboard.models.calendar import (
    DayRecord,
    DayStatus,
    MonthRecord,
    YearCalendar,
)

AUTO_SAFE_HOUR = 16


def apply_auto_safe(
    calendar: YearCalendar,
    now: datetime,
    year: int,
    cutoff_hour: int = AUTO_SAFE_HOUR,
) -> YearCalendar:
    """Promote past and post-cutoff UNSET days to SAFE.

    Returns the same calendar object when nothing changed, so callers can
    detect a no-op with an identity check. Otherwise only the months that
    contain promoted days are rebuilt.
    """
    if now.year != year:
        return calendar

    today = now.date()
    after_cutoff = now.hour >= cutoff_hour

    months: list[MonthRecord] | None = None
    for m, month in enumerate(calendar):
        new_days: list[DayRecord] | None = None
        for i, record in enumerate(month.days):
            if record.status != DayStatus.UNSET:
                continue
            day_date = date(year, m + 1, record.day)
            if day_date < today or (day_date == today and after_cutoff):
                if new_days is None:
                    new_days = list(month.days)
                new_days[i] = DayRecord(day=record.day, status=DayStatus.SAFE)
        if new_days is not None:
            if months is None:
                months = list(calendar)
            months[m] = MonthRecord(
                month=month.month, year=month.year, days=tuple(new_days),
            )

    if months is None:
        return calendar
    return tuple(months)


def next_cutoff(now: datetime, cutoff_hour: int = AUTO_SAFE_HOUR) -> datetime:
    """Return the next occurrence of the cutoff hour strictly after `now`.

    Today's cutoff if it has not been reached yet, otherwise tomorrow's.
    """
    target = now.replace(hour=cutoff_hour, minute=0, second=0, microsecond=0)
    if now >= target:
        target += timedelta(days=1)
    return target


def seconds_until_cutoff(
    now: datetime,
    cutoff_hour: int = AUTO_SAFE_HOUR,
    min_delay: float = 0.25,
) -> float:
    """Delay before the next cutoff, never less than `min_delay`."""
    remaining = (next_cutoff(now, cutoff_hour) - now).total_seconds()
    return max(min_delay, remaining)
