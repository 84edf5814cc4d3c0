"""Streak module — consecutive safe-day count and month tallies."""

from safetyboard.streak.engine import MonthSummary, compute_streak, month_summary

__all__ = [
    "MonthSummary",
    "compute_streak",
    "month_summary",
]
