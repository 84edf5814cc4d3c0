"""Rollover module — auto-SAFE promotion and its daily timer."""

from safetyboard.rollover.engine import (
    AUTO_SAFE_HOUR,
    apply_auto_safe,
    next_cutoff,
    seconds_until_cutoff,
)
from safetyboard.rollover.scheduler import RolloverScheduler

__all__ = [
    "AUTO_SAFE_HOUR",
    "apply_auto_safe",
    "next_cutoff",
    "seconds_until_cutoff",
    "RolloverScheduler",
]
