"""Board data models — announcements, metrics, man-hour targets, images,
and the whole-year snapshot that ties them to a calendar.

The snapshot is the unit of persistence: one per calendar year. All
records are frozen; the service layer replaces them with
dataclasses.replace() on every edit.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from safetyboard.models.calendar import YearCalendar


@dataclass(frozen=True)
class Announcement:
    """A single ticker line. List order is display order."""
    id: str
    text: str


@dataclass(frozen=True)
class SafetyMetric:
    """A free-form metric card. `value` is display text, not a number."""
    id: str
    label: str
    value: str
    unit: Optional[str] = None


@dataclass(frozen=True)
class TargetVars:
    """Numeric inputs to the man-hour formulas."""
    manpower: float = 675
    daysPerWeek: float = 6
    hoursPerDay: float = 10
    workingDaysYear: float = 250
    workingDaysSoFar: float = 0

    def as_mapping(self) -> dict[str, float]:
        """Variables visible to the formula evaluator."""
        return {
            "manpower": self.manpower,
            "daysPerWeek": self.daysPerWeek,
            "hoursPerDay": self.hoursPerDay,
            "workingDaysYear": self.workingDaysYear,
            "workingDaysSoFar": self.workingDaysSoFar,
        }


TARGET_VAR_NAMES: tuple[str, ...] = (
    "manpower",
    "daysPerWeek",
    "hoursPerDay",
    "workingDaysYear",
    "workingDaysSoFar",
)


@dataclass(frozen=True)
class TargetFormulas:
    """User-authored formulas over TargetVars."""
    totalExpr: str = "manpower * daysPerWeek * hoursPerDay * workingDaysYear"
    toDateExpr: str = "manpower * daysPerWeek * hoursPerDay * workingDaysSoFar"


DEFAULT_ANNOUNCEMENTS: tuple[Announcement, ...] = (
    Announcement(id="1", text="PPE Audit ประจำสัปดาห์ทุกวันพฤหัสบดี เวลา 09:00 น."),
    Announcement(id="2", text="Emergency Drill ไตรมาสนี้กำหนดวันที่ 28 มีนาคม 2026"),
)

DEFAULT_METRICS: tuple[SafetyMetric, ...] = (
    SafetyMetric(id="m1", label="First Aid", value="0", unit="case"),
    SafetyMetric(id="m2", label="Non-Absent", value="0", unit="case"),
    SafetyMetric(id="m3", label="Absent", value="0", unit="case"),
    SafetyMetric(id="m4", label="Fire", value="0", unit="case"),
    SafetyMetric(id="m5", label="IFR", value="0", unit=""),
    SafetyMetric(id="m6", label="ISR", value="1.2", unit=""),
)

DEFAULT_POSTER_TOP = "/company-policy-poster.png"
DEFAULT_POSTER_BOTTOM = "/safety-culture.png"
DEFAULT_POLICY_IMAGES: tuple[str, ...] = ("/policy-vp.png",)

# Poster slots addressable by the service layer.
POSTER_SLOTS = ("top", "bottom")


@dataclass(frozen=True)
class BoardSnapshot:
    """Full serializable state for one calendar year.

    Image fields hold opaque strings (paths or data URIs); the state layer
    never inspects them.
    """
    year: int
    calendar: YearCalendar
    announcements: tuple[Announcement, ...] = DEFAULT_ANNOUNCEMENTS
    metrics: tuple[SafetyMetric, ...] = DEFAULT_METRICS
    poster_top: Optional[str] = DEFAULT_POSTER_TOP
    poster_bottom: Optional[str] = DEFAULT_POSTER_BOTTOM
    poster_top_zoom: float = 1.0
    poster_bottom_zoom: float = 1.0
    policy_images: tuple[str, ...] = DEFAULT_POLICY_IMAGES
    policy_zoom: float = 1.0
    target_vars: TargetVars = field(default_factory=TargetVars)
    target_formulas: TargetFormulas = field(default_factory=TargetFormulas)
    best_record: float = 0
    loss_time_accidents: float = 0
    last_update_iso: str = ""
