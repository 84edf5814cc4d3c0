"""Calendar data models — a year of daily safety statuses.

A year calendar is 12 month records, each holding one day record per
calendar day. Records are frozen; every mutation returns a new calendar
in which only the touched month is rebuilt. Untouched months (and their
day records) are the same objects as in the input.

Status lifecycle for a single day:
    UNSET → SAFE → NEAR_MISS → ACCIDENT → UNSET (user cycle, wraps)
    UNSET → SAFE (auto-rollover only; see safetyboard.rollover)

Invariants:
- Exactly 12 months, month index == position.
- Every month carries the owning year.
- Day count matches the true calendar length (leap-year aware).
"""

from __future__ import annotations

import calendar as _stdcal
import enum
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any


class DayStatus(str, enum.Enum):
    """Safety outcome recorded for a single day."""
    UNSET = "unset"
    SAFE = "safe"
    NEAR_MISS = "near_miss"
    ACCIDENT = "accident"


# Fixed user cycle order. The scheduler never uses this table.
NEXT_STATUS: dict[DayStatus, DayStatus] = {
    DayStatus.UNSET: DayStatus.SAFE,
    DayStatus.SAFE: DayStatus.NEAR_MISS,
    DayStatus.NEAR_MISS: DayStatus.ACCIDENT,
    DayStatus.ACCIDENT: DayStatus.UNSET,
}

# Statuses that keep a safety streak alive.
STREAK_STATUSES = frozenset({DayStatus.SAFE, DayStatus.NEAR_MISS})


@dataclass(frozen=True)
class DayRecord:
    """One calendar day. `day` is 1-based."""
    day: int
    status: DayStatus = DayStatus.UNSET


@dataclass(frozen=True)
class MonthRecord:
    """One month of day records. `month` is 0-based (0 = January)."""
    month: int
    year: int
    days: tuple[DayRecord, ...]


YearCalendar = tuple[MonthRecord, ...]


def days_in_month(year: int, month_index: int) -> int:
    """Return the number of days in a 0-based month of `year`."""
    return _stdcal.monthrange(year, month_index + 1)[1]


def create_year(year: int) -> YearCalendar:
    """Create a fresh calendar for `year` with every day UNSET."""
    return tuple(
        MonthRecord(
            month=m,
            year=year,
            days=tuple(
                DayRecord(day=d) for d in range(1, days_in_month(year, m) + 1)
            ),
        )
        for m in range(12)
    )


def parse_status(raw: Any) -> DayStatus | None:
    """Decode a stored status value.

    Both ``None`` and ``"unset"`` decode to UNSET. Returns ``None`` for
    anything that is not a known status.
    """
    if raw is None:
        return DayStatus.UNSET
    if isinstance(raw, DayStatus):
        return raw
    if isinstance(raw, str):
        try:
            return DayStatus(raw)
        except ValueError:
            return None
    return None


def _month_fields(candidate: Any) -> tuple[Any, Any, Any] | None:
    if isinstance(candidate, MonthRecord):
        return candidate.month, candidate.year, candidate.days
    if isinstance(candidate, Mapping):
        return candidate.get("month"), candidate.get("year"), candidate.get("days")
    return None


def _day_fields(candidate: Any) -> tuple[Any, Any] | None:
    if isinstance(candidate, DayRecord):
        return candidate.day, candidate.status
    if isinstance(candidate, Mapping):
        return candidate.get("day"), candidate.get("status")
    return None


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_calendar(candidate: Any, year: int) -> bool:
    """Structural check of a calendar before it is trusted.

    Accepts either a typed YearCalendar or its decoded-JSON form (a list
    of month mappings). Checks:
    1. Exactly 12 months
    2. Each month's `month` equals its index
    3. Each month's `year` equals the expected year
    4. Each month's day count equals the true calendar length
    5. Days are numbered 1..N in order with a recognised status

    On failure the caller must fall back to create_year().
    """
    if not isinstance(candidate, (list, tuple)) or len(candidate) != 12:
        return False

    for idx, month in enumerate(candidate):
        fields = _month_fields(month)
        if fields is None:
            return False
        m, y, days = fields
        if not _is_int(m) or m != idx:
            return False
        if not _is_int(y) or y != year:
            return False
        if not isinstance(days, (list, tuple)):
            return False
        if len(days) != days_in_month(year, idx):
            return False
        for pos, day in enumerate(days, 1):
            day_fields = _day_fields(day)
            if day_fields is None:
                return False
            d, status = day_fields
            if not _is_int(d) or d != pos:
                return False
            if parse_status(status) is None:
                return False
    return True


def decode_calendar(candidate: Any, year: int) -> YearCalendar:
    """Convert a validated decoded-JSON calendar into typed records.

    Raises ValueError if the candidate does not pass validate_calendar().
    """
    if not validate_calendar(candidate, year):
        raise ValueError(f"Calendar data is not a valid {year} calendar")
    months = []
    for idx, month in enumerate(candidate):
        _, _, days = _month_fields(month)
        months.append(MonthRecord(
            month=idx,
            year=year,
            days=tuple(
                DayRecord(day=pos, status=parse_status(_day_fields(d)[1]))
                for pos, d in enumerate(days, 1)
            ),
        ))
    return tuple(months)


def encode_calendar(calendar: YearCalendar) -> list[dict[str, Any]]:
    """Serialize a calendar. UNSET is written as null."""
    return [
        {
            "month": month.month,
            "year": month.year,
            "days": [
                {
                    "day": d.day,
                    "status": None if d.status == DayStatus.UNSET else d.status.value,
                }
                for d in month.days
            ],
        }
        for month in calendar
    ]


def get_status(calendar: YearCalendar, month_index: int, day: int) -> DayStatus:
    """Look up a day's status. Out-of-range lookups read as UNSET."""
    if not 0 <= month_index < len(calendar):
        return DayStatus.UNSET
    days = calendar[month_index].days
    if not 1 <= day <= len(days):
        return DayStatus.UNSET
    return days[day - 1].status


def set_status(
    calendar: YearCalendar,
    month_index: int,
    day: int,
    status: DayStatus,
) -> YearCalendar:
    """Return a calendar with exactly one day's status changed.

    An out-of-range month or day is a no-op: the input is returned
    unchanged. Setting a day to the status it already has also returns
    the input.
    """
    if not 0 <= month_index < len(calendar):
        return calendar
    month = calendar[month_index]
    if not 1 <= day <= len(month.days):
        return calendar
    if month.days[day - 1].status == status:
        return calendar

    days = list(month.days)
    days[day - 1] = DayRecord(day=day, status=status)
    updated = MonthRecord(month=month.month, year=month.year, days=tuple(days))
    return calendar[:month_index] + (updated,) + calendar[month_index + 1:]


def cycle_status(calendar: YearCalendar, month_index: int, day: int) -> YearCalendar:
    """Advance one day along UNSET → SAFE → NEAR_MISS → ACCIDENT → UNSET."""
    current = get_status(calendar, month_index, day)
    return set_status(calendar, month_index, day, NEXT_STATUS[current])
