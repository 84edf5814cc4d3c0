"""State store — JSON persistence for the per-year board snapshot.

Stores and recovers, under one year-scoped key:
- Year calendar (daily safety statuses)
- Announcements (ticker lines, in display order)
- Safety metrics (metric cards, in grid order)
- Posters and policy images with their zoom levels
- Man-hour target variables, formulas, best record, LTA count
- Last-update timestamp

Plus two independent keys: the UI font-scale preference and the layout
geometry (which is only ever cleared from here).

The stored document is untrusted input. Every entity is decoded on its
own and falls back to its default independently, so a corrupt
announcement list never costs a valid calendar. Storage failures are
logged and degrade to "no data" on read and "write skipped" on save.
"""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Mapping
from dataclasses import fields
from datetime import datetime
from typing import Any, Callable, Optional, TypeVar

from safetyboard.models.board import (
    DEFAULT_ANNOUNCEMENTS,
    DEFAULT_METRICS,
    DEFAULT_POLICY_IMAGES,
    DEFAULT_POSTER_BOTTOM,
    DEFAULT_POSTER_TOP,
    TARGET_VAR_NAMES,
    Announcement,
    BoardSnapshot,
    SafetyMetric,
    TargetFormulas,
    TargetVars,
)
from safetyboard.models.calendar import (
    create_year,
    decode_calendar,
    encode_calendar,
    validate_calendar,
)
from safetyboard.persistence.storage import LocalStorage
from safetyboard.policy.resolver import ClampRange, DashboardPolicy

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DashboardStore:
    """Year-scoped snapshot persistence over a LocalStorage.

    Usage:
        store = DashboardStore(LocalStorage(Path("data")), policy)
        snapshot = store.load(2026, datetime.now())
        store.save(snapshot)

        scale = store.load_ui_scale()
    """

    def __init__(self, storage: LocalStorage, policy: DashboardPolicy) -> None:
        self._storage = storage
        self._policy = policy
        self._zoom = policy.zoom_range()

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    def load(self, year: int, now: datetime) -> BoardSnapshot:
        """Read and reconcile the snapshot for `year`.

        Absent, unreadable or non-object documents yield a snapshot made
        entirely of defaults with a fresh calendar. The calendar is
        returned as stored; auto-rollover backfill is the caller's job.
        """
        key = self._policy.snapshot_key(year)
        # Undecodable bytes surface as UnicodeDecodeError, a ValueError.
        try:
            raw = self._storage.get_item(key)
        except (OSError, ValueError) as e:
            logger.warning("Snapshot read failed for %s: %s", key, e)
            raw = None

        data: dict[str, Any] = {}
        if raw:
            try:
                parsed = json.loads(raw)
            except ValueError as e:
                logger.warning("Snapshot %s is not valid JSON: %s", key, e)
                parsed = None
            if isinstance(parsed, dict):
                data = parsed
            elif parsed is not None:
                logger.warning("Snapshot %s is not a JSON object; using defaults", key)

        return self._decode_snapshot(data, year, now)

    def save(self, snapshot: BoardSnapshot) -> bool:
        """Write the snapshot. Returns False if the write was skipped."""
        key = self._policy.snapshot_key(snapshot.year)
        try:
            payload = json.dumps(encode_snapshot(snapshot), ensure_ascii=False)
            self._storage.set_item(key, payload)
        except (OSError, TypeError, ValueError) as e:
            logger.warning("Snapshot write skipped for %s: %s", key, e)
            return False
        logger.debug("Snapshot written to %s", key)
        return True

    def _decode_snapshot(
        self, data: dict[str, Any], year: int, now: datetime,
    ) -> BoardSnapshot:
        raw_calendar = data.get("monthlyData")
        if validate_calendar(raw_calendar, year):
            calendar = decode_calendar(raw_calendar, year)
        else:
            if raw_calendar is not None:
                logger.warning("Stored calendar for %d failed validation; recreated", year)
            calendar = create_year(year)

        last_update = data.get("lastUpdateIso")
        if not isinstance(last_update, str):
            last_update = now.isoformat()

        return BoardSnapshot(
            year=year,
            calendar=calendar,
            announcements=_decode_list(
                data.get("announcements"), _decode_announcement,
                DEFAULT_ANNOUNCEMENTS, "announcements",
            ),
            metrics=_decode_list(
                data.get("metrics"), _decode_metric, DEFAULT_METRICS, "metrics",
            ),
            poster_top=_string_or(data.get("posterTop"), DEFAULT_POSTER_TOP),
            poster_bottom=_string_or(data.get("posterBottom"), DEFAULT_POSTER_BOTTOM),
            poster_top_zoom=_decode_zoom(data.get("posterTopZoom"), self._zoom),
            poster_bottom_zoom=_decode_zoom(data.get("posterBottomZoom"), self._zoom),
            policy_images=self._decode_policy_images(data.get("policyImages")),
            policy_zoom=_decode_zoom(data.get("policyZoom"), self._zoom),
            target_vars=_decode_target_vars(data.get("targetVars")),
            target_formulas=_decode_target_formulas(data.get("targetFormulas")),
            best_record=coerce_number(data.get("bestRecord"), 0),
            loss_time_accidents=coerce_number(data.get("lossTimeAccidents"), 0),
            last_update_iso=last_update,
        )

    def _decode_policy_images(self, raw: Any) -> tuple[str, ...]:
        if not isinstance(raw, list):
            return DEFAULT_POLICY_IMAGES
        images = tuple(i for i in raw if isinstance(i, str))
        if not images:
            return DEFAULT_POLICY_IMAGES
        return images[: self._policy.max_policy_images()]

    # ------------------------------------------------------------------
    # UI scale preference (not year-scoped, written immediately)
    # ------------------------------------------------------------------

    def load_ui_scale(self) -> float:
        """Return the stored font scale, clamped; default on any problem."""
        bounds = self._policy.ui_scale_range()
        key = self._policy.ui_scale_key()
        try:
            raw = self._storage.get_item(key)
        except (OSError, ValueError) as e:
            logger.warning("UI scale read failed: %s", e)
            return bounds.default
        if raw is None:
            return bounds.default
        value = coerce_number(raw.strip(), None)
        if value is None:
            return bounds.default
        return bounds.clamp(value)

    def save_ui_scale(self, scale: float) -> bool:
        try:
            self._storage.set_item(self._policy.ui_scale_key(), repr(float(scale)))
        except OSError as e:
            logger.warning("UI scale write skipped: %s", e)
            return False
        return True

    # ------------------------------------------------------------------
    # Layout geometry (owned by the layout system; only cleared here)
    # ------------------------------------------------------------------

    def clear_layout(self) -> bool:
        """Forget the stored panel layout. Returns False if removal failed."""
        try:
            self._storage.remove_item(self._policy.layout_key())
        except OSError as e:
            logger.warning("Layout reset failed: %s", e)
            return False
        return True


# ----------------------------------------------------------------------
# Encoding
# ----------------------------------------------------------------------


def encode_snapshot(snapshot: BoardSnapshot) -> dict[str, Any]:
    """Serialize a snapshot to the stored document shape."""
    return {
        "monthlyData": encode_calendar(snapshot.calendar),
        "announcements": [{"id": a.id, "text": a.text} for a in snapshot.announcements],
        "posterTop": snapshot.poster_top,
        "posterBottom": snapshot.poster_bottom,
        "posterTopZoom": snapshot.poster_top_zoom,
        "posterBottomZoom": snapshot.poster_bottom_zoom,
        "policyImages": list(snapshot.policy_images),
        "policyZoom": snapshot.policy_zoom,
        "targetVars": snapshot.target_vars.as_mapping(),
        "targetFormulas": {
            "totalExpr": snapshot.target_formulas.totalExpr,
            "toDateExpr": snapshot.target_formulas.toDateExpr,
        },
        "bestRecord": snapshot.best_record,
        "lossTimeAccidents": snapshot.loss_time_accidents,
        "lastUpdateIso": snapshot.last_update_iso,
        "metrics": [_encode_metric(m) for m in snapshot.metrics],
    }


def _encode_metric(metric: SafetyMetric) -> dict[str, Any]:
    entry: dict[str, Any] = {"id": metric.id, "label": metric.label, "value": metric.value}
    if metric.unit is not None:
        entry["unit"] = metric.unit
    return entry


# ----------------------------------------------------------------------
# Decoding helpers
# ----------------------------------------------------------------------


def coerce_number(value: Any, default: Any) -> Any:
    """Coerce stored numeric input; `default` when not a finite number.

    Accepts ints, floats and numeric strings. Booleans are rejected.
    """
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return default
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return default
    else:
        return default
    if not math.isfinite(number):
        return default
    if isinstance(value, int):
        return value
    return number


def _string_or(value: Any, default: str) -> str:
    return value if isinstance(value, str) else default


def _decode_zoom(value: Any, bounds: ClampRange) -> float:
    if not isinstance(value, (int, float)):
        return bounds.default
    number = coerce_number(value, None)
    if number is None:
        return bounds.default
    return bounds.clamp(float(number))


def _decode_list(
    raw: Any,
    decode_item: Callable[[Any, int], Optional[T]],
    default: tuple[T, ...],
    label: str,
) -> tuple[T, ...]:
    if not isinstance(raw, list) or not raw:
        if raw is not None:
            logger.warning("Stored %s is not a non-empty list; using defaults", label)
        return default
    items = [decode_item(entry, idx) for idx, entry in enumerate(raw)]
    kept = tuple(item for item in items if item is not None)
    if len(kept) != len(raw):
        logger.warning("Dropped %d malformed %s entries", len(raw) - len(kept), label)
    return kept or default


def _decode_id(raw: Any, idx: int) -> str:
    if isinstance(raw, str) and raw:
        return raw
    if isinstance(raw, int) and not isinstance(raw, bool):
        return str(raw)
    return str(idx + 1)


def _decode_announcement(raw: Any, idx: int) -> Optional[Announcement]:
    if not isinstance(raw, Mapping) or not isinstance(raw.get("text"), str):
        return None
    return Announcement(id=_decode_id(raw.get("id"), idx), text=raw["text"])


def _decode_metric(raw: Any, idx: int) -> Optional[SafetyMetric]:
    if not isinstance(raw, Mapping) or not isinstance(raw.get("label"), str):
        return None
    value = raw.get("value", "")
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        return None
    unit = raw.get("unit")
    return SafetyMetric(
        id=_decode_id(raw.get("id"), idx),
        label=raw["label"],
        value=value if isinstance(value, str) else str(value),
        unit=unit if isinstance(unit, str) else None,
    )


def _decode_target_vars(raw: Any) -> TargetVars:
    defaults = TargetVars()
    if not isinstance(raw, Mapping):
        return defaults
    values = {
        name: coerce_number(raw.get(name), getattr(defaults, name))
        for name in TARGET_VAR_NAMES
    }
    return TargetVars(**values)


def _decode_target_formulas(raw: Any) -> TargetFormulas:
    defaults = TargetFormulas()
    if not isinstance(raw, Mapping):
        return defaults
    values = {}
    for f in fields(TargetFormulas):
        candidate = raw.get(f.name)
        values[f.name] = candidate if isinstance(candidate, str) else getattr(defaults, f.name)
    return TargetFormulas(**values)
