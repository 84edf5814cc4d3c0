"""Dashboard service — unified facade for the safety board state layer.

This is the interface the display layer calls into. It orchestrates:
- Startup (load the year snapshot, backfill auto-SAFE days)
- Day status edits (cycle / set on the displayed month)
- Daily auto-rollover at the cutoff hour, including year change
- Board edits (metrics, man-hour targets, ticker, posters, policy images)
- Debounced persistence of every mutation
- Read-side derivations (streak, month summary, man-hours, ticker)

Lifetime: mount() acquires the rollover timer and the debounced writer;
teardown() releases both. Nothing fires after teardown.

Thread-safety: timer callbacks arrive on timer threads, so all state is
guarded by one re-entrant lock.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Any, Callable, Optional

from safetyboard.formula.evaluator import evaluate
from safetyboard.models.board import (
    POSTER_SLOTS,
    TARGET_VAR_NAMES,
    BoardSnapshot,
    SafetyMetric,
    TargetFormulas,
    TargetVars,
)
from safetyboard.models.calendar import (
    DayStatus,
    YearCalendar,
    cycle_status,
    get_status,
    set_status,
)
from safetyboard.persistence.debounce import DebouncedWriter
from safetyboard.persistence.state_store import DashboardStore, coerce_number
from safetyboard.policy.resolver import DashboardPolicy
from safetyboard.rollover.engine import apply_auto_safe
from safetyboard.rollover.scheduler import RolloverScheduler, TimerFactory
from safetyboard.streak.engine import MonthSummary, compute_streak, month_summary
from safetyboard.ticker import announcements_from_text, ticker_seconds, ticker_text

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServiceResult:
    """Result of a service operation."""
    success: bool
    errors: list[str] = field(default_factory=list)
    data: dict[str, Any] = field(default_factory=dict)


def _not_mounted() -> ServiceResult:
    return ServiceResult(success=False, errors=["Dashboard is not mounted"])


class DashboardService:
    """Safety board facade.

    Usage:
        policy = DashboardPolicy.from_config_dir(config_dir)
        store = DashboardStore(LocalStorage(data_dir), policy)
        service = DashboardService(policy, store)

        service.mount()
        service.cycle_day(12)                    # displayed month
        service.save_announcements_text("...")
        streak = service.safety_streak()
        ...
        service.teardown()
    """

    def __init__(
        self,
        policy: DashboardPolicy,
        store: DashboardStore,
        clock: Callable[[], datetime] = datetime.now,
        timer_factory: TimerFactory = threading.Timer,
    ) -> None:
        self._policy = policy
        self._store = store
        self._clock = clock
        self._timer_factory = timer_factory
        self._lock = threading.RLock()

        self._cutoff_hour = policy.auto_safe_hour()
        self._zoom = policy.zoom_range()
        self._ui_range = policy.ui_scale_range()
        self._ticker = policy.ticker_policy()

        self._snapshot: Optional[BoardSnapshot] = None
        self._display_month = 0
        self._ui_scale = self._ui_range.default
        self._scheduler: Optional[RolloverScheduler] = None
        self._writer: Optional[DebouncedWriter[BoardSnapshot]] = None

    # ------------------------------------------------------------------
    # Lifetime
    # ------------------------------------------------------------------

    @property
    def is_mounted(self) -> bool:
        return self._snapshot is not None

    def mount(self) -> ServiceResult:
        """Load the current year, backfill it, and arm both timers."""
        with self._lock:
            if self._snapshot is not None:
                return ServiceResult(success=False, errors=["Dashboard is already mounted"])

            now = self._clock()
            self._writer = DebouncedWriter(
                self._store.save,
                self._policy.save_debounce_seconds(),
                timer_factory=self._timer_factory,
            )
            self._ui_scale = self._store.load_ui_scale()
            self._display_month = now.month - 1
            backfilled = self._load_year(now)

            self._scheduler = RolloverScheduler(
                on_fire=self.handle_rollover,
                cutoff_hour=self._cutoff_hour,
                min_delay_seconds=self._policy.rollover_min_delay_seconds(),
                clock=self._clock,
                timer_factory=self._timer_factory,
            )
            self._scheduler.start()
            logger.info("Dashboard mounted for %d", now.year)
            return ServiceResult(
                success=True,
                data={"year": now.year, "backfilled": backfilled},
            )

    def teardown(self, flush_pending: bool = True) -> None:
        """Cancel the rollover timer and the pending write.

        With flush_pending, the pending snapshot is written synchronously
        before the writer is released.
        """
        with self._lock:
            if self._scheduler is not None:
                self._scheduler.stop()
                self._scheduler = None
            if self._writer is not None:
                if flush_pending:
                    self._writer.flush()
                else:
                    self._writer.cancel()
                self._writer = None
            if self._snapshot is not None:
                logger.info("Dashboard torn down for %d", self._snapshot.year)
            self._snapshot = None

    def _load_year(self, now: datetime) -> bool:
        """Load and backfill the snapshot for now.year. True if backfill changed it."""
        snapshot = self._store.load(now.year, now)
        calendar = apply_auto_safe(snapshot.calendar, now, now.year, self._cutoff_hour)
        changed = calendar is not snapshot.calendar
        if changed:
            snapshot = replace(snapshot, calendar=calendar)
        self._snapshot = snapshot
        if changed:
            self._writer.schedule(snapshot)
        return changed

    def handle_rollover(self, fired_at: datetime) -> None:
        """Timer callback: promote due days, or switch to a new year."""
        with self._lock:
            snapshot = self._snapshot
            if snapshot is None:
                return
            if fired_at.year != snapshot.year:
                logger.info("Year changed %d -> %d", snapshot.year, fired_at.year)
                self._writer.flush()
                self._display_month = fired_at.month - 1
                self._load_year(fired_at)
                return
            calendar = apply_auto_safe(
                snapshot.calendar, fired_at, snapshot.year, self._cutoff_hour,
            )
            if calendar is not snapshot.calendar:
                self._commit(replace(snapshot, calendar=calendar))

    def _commit(self, snapshot: BoardSnapshot, touch: bool = False) -> None:
        if touch:
            snapshot = replace(snapshot, last_update_iso=self._clock().isoformat())
        self._snapshot = snapshot
        self._writer.schedule(snapshot)

    # ------------------------------------------------------------------
    # State access
    # ------------------------------------------------------------------

    @property
    def snapshot(self) -> BoardSnapshot:
        with self._lock:
            if self._snapshot is None:
                raise RuntimeError("Dashboard is not mounted")
            return self._snapshot

    @property
    def calendar(self) -> YearCalendar:
        return self.snapshot.calendar

    @property
    def year(self) -> int:
        return self.snapshot.year

    @property
    def display_month(self) -> int:
        return self._display_month

    @property
    def ui_scale(self) -> float:
        return self._ui_scale

    # ------------------------------------------------------------------
    # Month navigation
    # ------------------------------------------------------------------

    def show_month(self, month_index: int) -> None:
        """Display a month; any integer wraps into 0-11."""
        with self._lock:
            self._display_month = month_index % 12

    def show_previous_month(self) -> None:
        self.show_month(self._display_month - 1)

    def show_next_month(self) -> None:
        self.show_month(self._display_month + 1)

    # ------------------------------------------------------------------
    # Day status
    # ------------------------------------------------------------------

    def cycle_day(self, day: int, month_index: Optional[int] = None) -> ServiceResult:
        """Advance a day's status along the fixed cycle.

        Defaults to the displayed month. A stale day or month is a no-op.
        """
        with self._lock:
            if self._snapshot is None:
                return _not_mounted()
            m = self._display_month if month_index is None else month_index
            calendar = cycle_status(self._snapshot.calendar, m, day)
            return self._apply_calendar(calendar, m, day)

    def set_day_status(
        self,
        day: int,
        status: DayStatus,
        month_index: Optional[int] = None,
    ) -> ServiceResult:
        """Set a day's status directly."""
        with self._lock:
            if self._snapshot is None:
                return _not_mounted()
            m = self._display_month if month_index is None else month_index
            calendar = set_status(self._snapshot.calendar, m, day, status)
            return self._apply_calendar(calendar, m, day)

    def _apply_calendar(self, calendar: YearCalendar, month_index: int, day: int) -> ServiceResult:
        changed = calendar is not self._snapshot.calendar
        if changed:
            self._commit(replace(self._snapshot, calendar=calendar))
        return ServiceResult(
            success=True,
            data={
                "changed": changed,
                "status": get_status(calendar, month_index, day).value,
            },
        )

    # ------------------------------------------------------------------
    # Metrics
    # ------------------------------------------------------------------

    def new_metric(self) -> SafetyMetric:
        """A blank metric card for the editor."""
        return SafetyMetric(
            id=f"m-{uuid.uuid4().hex[:12]}-{int(time.time() * 1000)}",
            label="New Metric",
            value="0",
            unit="",
        )

    def save_metrics(self, metrics: Sequence[SafetyMetric]) -> ServiceResult:
        """Replace the metric list (order is grid order)."""
        errors = [
            f"Entry {idx} is not a SafetyMetric"
            for idx, m in enumerate(metrics)
            if not isinstance(m, SafetyMetric)
        ]
        if errors:
            return ServiceResult(success=False, errors=errors)
        with self._lock:
            if self._snapshot is None:
                return _not_mounted()
            self._commit(replace(self._snapshot, metrics=tuple(metrics)), touch=True)
            return ServiceResult(success=True, data={"count": len(metrics)})

    # ------------------------------------------------------------------
    # Man-hour target
    # ------------------------------------------------------------------

    def save_target(
        self,
        target_vars: Optional[Mapping[str, Any]] = None,
        formulas: Optional[Mapping[str, str]] = None,
        best_record: Any = None,
        loss_time_accidents: Any = None,
    ) -> ServiceResult:
        """Update target variables, formulas and the two record counters.

        Variables and formulas merge over the current values. Counters
        that are not numeric are stored as 0.
        """
        with self._lock:
            if self._snapshot is None:
                return _not_mounted()
            current = self._snapshot
            errors: list[str] = []

            var_values = current.target_vars.as_mapping()
            for name, raw in (target_vars or {}).items():
                if name not in TARGET_VAR_NAMES:
                    errors.append(f"Unknown target variable: {name}")
                    continue
                number = coerce_number(raw, None)
                if number is None:
                    errors.append(f"Target variable {name} is not a number: {raw!r}")
                    continue
                var_values[name] = number

            formula_values = {
                "totalExpr": current.target_formulas.totalExpr,
                "toDateExpr": current.target_formulas.toDateExpr,
            }
            for name, expr in (formulas or {}).items():
                if name not in formula_values:
                    errors.append(f"Unknown formula: {name}")
                elif not isinstance(expr, str):
                    errors.append(f"Formula {name} must be text")
                else:
                    formula_values[name] = expr

            if errors:
                return ServiceResult(success=False, errors=errors)

            updated = replace(
                current,
                target_vars=TargetVars(**var_values),
                target_formulas=TargetFormulas(**formula_values),
                best_record=(
                    current.best_record if best_record is None
                    else coerce_number(best_record, 0)
                ),
                loss_time_accidents=(
                    current.loss_time_accidents if loss_time_accidents is None
                    else coerce_number(loss_time_accidents, 0)
                ),
            )
            self._commit(updated, touch=True)
            return ServiceResult(success=True)

    def total_man_hours(self) -> Optional[float]:
        """Evaluate the total formula; None when it is invalid."""
        s = self.snapshot
        return evaluate(s.target_formulas.totalExpr, s.target_vars.as_mapping())

    def to_date_man_hours(self) -> Optional[float]:
        """Evaluate the to-date formula; None when it is invalid."""
        s = self.snapshot
        return evaluate(s.target_formulas.toDateExpr, s.target_vars.as_mapping())

    # ------------------------------------------------------------------
    # Ticker
    # ------------------------------------------------------------------

    def save_announcements_text(self, text: str) -> ServiceResult:
        """Replace announcements from editor text (one per line)."""
        announcements = announcements_from_text(text)
        with self._lock:
            if self._snapshot is None:
                return _not_mounted()
            self._commit(replace(self._snapshot, announcements=announcements), touch=True)
            return ServiceResult(success=True, data={"count": len(announcements)})

    def ticker_text(self) -> str:
        return ticker_text(self.snapshot.announcements, self._ticker)

    def ticker_seconds(self) -> int:
        return ticker_seconds(self.ticker_text(), self._ticker)

    # ------------------------------------------------------------------
    # Posters and policy images
    # ------------------------------------------------------------------

    def set_poster(self, slot: str, image: str) -> ServiceResult:
        """Replace a poster image and reset its zoom."""
        if slot not in POSTER_SLOTS:
            return ServiceResult(success=False, errors=[f"Unknown poster slot: {slot}"])
        with self._lock:
            if self._snapshot is None:
                return _not_mounted()
            updated = replace(
                self._snapshot,
                **{f"poster_{slot}": image, f"poster_{slot}_zoom": self._zoom.default},
            )
            self._commit(updated, touch=True)
            return ServiceResult(success=True)

    def remove_poster(self, slot: str) -> ServiceResult:
        """Clear a poster slot and reset its zoom.

        A cleared slot is stored as null, which reloads as the default
        poster.
        """
        if slot not in POSTER_SLOTS:
            return ServiceResult(success=False, errors=[f"Unknown poster slot: {slot}"])
        with self._lock:
            if self._snapshot is None:
                return _not_mounted()
            updated = replace(
                self._snapshot,
                **{f"poster_{slot}": None, f"poster_{slot}_zoom": self._zoom.default},
            )
            self._commit(updated, touch=True)
            return ServiceResult(success=True)

    def zoom_poster(self, slot: str, steps: int) -> ServiceResult:
        """Zoom a poster by whole steps (negative zooms out)."""
        if slot not in POSTER_SLOTS:
            return ServiceResult(success=False, errors=[f"Unknown poster slot: {slot}"])
        with self._lock:
            if self._snapshot is None:
                return _not_mounted()
            attr = f"poster_{slot}_zoom"
            zoom = self._step_zoom(getattr(self._snapshot, attr), steps)
            self._commit(replace(self._snapshot, **{attr: zoom}))
            return ServiceResult(success=True, data={"zoom": zoom})

    def replace_policy_image(self, image: str) -> ServiceResult:
        """Replace the first policy image."""
        with self._lock:
            if self._snapshot is None:
                return _not_mounted()
            images = list(self._snapshot.policy_images)
            if images:
                images[0] = image
            else:
                images.append(image)
            return self._set_policy_images(images)

    def add_policy_image(self, image: str) -> ServiceResult:
        """Append a policy image, or replace the last one when full."""
        with self._lock:
            if self._snapshot is None:
                return _not_mounted()
            images = list(self._snapshot.policy_images)
            limit = self._policy.max_policy_images()
            if len(images) < limit:
                images.append(image)
            else:
                images[limit - 1] = image
            return self._set_policy_images(images)

    def remove_policy_image(self) -> ServiceResult:
        """Drop every policy image after the first."""
        with self._lock:
            if self._snapshot is None:
                return _not_mounted()
            images = list(self._snapshot.policy_images)
            if len(images) < 2:
                return ServiceResult(
                    success=False, errors=["No additional policy image to remove"],
                )
            return self._set_policy_images(images[:1])

    def _set_policy_images(self, images: list[str]) -> ServiceResult:
        images = images[: self._policy.max_policy_images()]
        updated = replace(
            self._snapshot,
            policy_images=tuple(images),
            policy_zoom=self._zoom.default,
        )
        self._commit(updated, touch=True)
        return ServiceResult(success=True, data={"count": len(images)})

    def zoom_policy(self, steps: int) -> ServiceResult:
        with self._lock:
            if self._snapshot is None:
                return _not_mounted()
            zoom = self._step_zoom(self._snapshot.policy_zoom, steps)
            self._commit(replace(self._snapshot, policy_zoom=zoom))
            return ServiceResult(success=True, data={"zoom": zoom})

    def _step_zoom(self, current: float, steps: int) -> float:
        return self._zoom.clamp(round(current + steps * self._zoom.step, 2))

    # ------------------------------------------------------------------
    # UI scale and layout (independent of the year snapshot)
    # ------------------------------------------------------------------

    def adjust_ui_scale(self, steps: int) -> float:
        """Step the font scale and persist it immediately."""
        with self._lock:
            scale = self._ui_range.clamp(
                round(self._ui_scale + steps * self._ui_range.step, 2)
            )
            self._ui_scale = scale
            self._store.save_ui_scale(scale)
            return scale

    def reset_layout(self) -> ServiceResult:
        """Forget the stored panel layout geometry."""
        if not self._store.clear_layout():
            return ServiceResult(success=False, errors=["Layout could not be cleared"])
        return ServiceResult(success=True)

    # ------------------------------------------------------------------
    # Derived reads
    # ------------------------------------------------------------------

    def safety_streak(self, now: Optional[datetime] = None) -> int:
        """Consecutive SAFE/NEAR_MISS days ending today or yesterday."""
        s = self.snapshot
        return compute_streak(s.calendar, now or self._clock(), s.year)

    def month_summary(self, month_index: Optional[int] = None) -> MonthSummary:
        m = self._display_month if month_index is None else month_index
        return month_summary(self.snapshot.calendar, m)

    def holiday_note(self, day: date) -> Optional[str]:
        return self._policy.holiday_note(day)
