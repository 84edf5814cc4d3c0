"""Policy resolver — loads dashboard_params.json and holiday_notes.json
and exposes every runtime setting as a typed method call.

No magic. No defaults. If a value is missing from the config, it fails loud.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any, Optional


@dataclass(frozen=True)
class ClampRange:
    """Resolved bounds for a clamped user-adjustable number."""
    minimum: float
    maximum: float
    step: float
    default: float

    def clamp(self, value: float) -> float:
        return min(self.maximum, max(self.minimum, value))


@dataclass(frozen=True)
class TickerPolicy:
    """Resolved ticker composition settings."""
    separator: str
    chars_per_second: int
    min_seconds: int
    max_seconds: int
    empty_text: str


class DashboardPolicy:
    """Loads and resolves all dashboard configuration.

    Usage:
        policy = DashboardPolicy.from_config_dir(Path("config"))
        hour = policy.auto_safe_hour()
        zoom = policy.zoom_range().clamp(3.0)
    """

    def __init__(self, params: dict[str, Any], holidays: dict[str, Any]) -> None:
        self._params = params
        self._holidays = holidays
        self._validate_versions()

    @classmethod
    def from_config_dir(cls, config_dir: Path) -> DashboardPolicy:
        """Load from the canonical config directory."""
        params = _load_json(config_dir / "dashboard_params.json")
        holidays = _load_json(config_dir / "holiday_notes.json")
        return cls(params, holidays)

    def _validate_versions(self) -> None:
        if "version" not in self._params:
            raise ValueError("dashboard_params.json missing version")
        if "version" not in self._holidays:
            raise ValueError("holiday_notes.json missing version")

    # ------------------------------------------------------------------
    # Storage keys
    # ------------------------------------------------------------------

    def snapshot_key(self, year: int) -> str:
        """Storage key of the year-scoped snapshot."""
        return f"{self._params['storage']['key_prefix']}-{year}"

    def ui_scale_key(self) -> str:
        return self._params["storage"]["ui_scale_key"]

    def layout_key(self) -> str:
        return self._params["storage"]["layout_key"]

    def save_debounce_seconds(self) -> float:
        """Return the write coalescing window in seconds."""
        return self._params["storage"]["save_debounce_ms"] / 1000.0

    # ------------------------------------------------------------------
    # Auto-rollover
    # ------------------------------------------------------------------

    def auto_safe_hour(self) -> int:
        """Local hour at which an undecided today becomes SAFE."""
        hour = self._params["rollover"]["auto_safe_hour"]
        if not 0 <= hour <= 23:
            raise ValueError(f"auto_safe_hour must be in [0, 23], got {hour}")
        return hour

    def rollover_min_delay_seconds(self) -> float:
        """Floor applied to the rollover timer delay."""
        return self._params["rollover"]["min_delay_ms"] / 1000.0

    # ------------------------------------------------------------------
    # Clamped user-adjustable values
    # ------------------------------------------------------------------

    def zoom_range(self) -> ClampRange:
        """Return bounds for poster and policy image zoom."""
        z = self._params["zoom"]
        return ClampRange(z["min"], z["max"], z["step"], z["default"])

    def ui_scale_range(self) -> ClampRange:
        """Return bounds for the UI font-scale preference."""
        s = self._params["ui_scale"]
        return ClampRange(s["min"], s["max"], s["step"], s["default"])

    def max_policy_images(self) -> int:
        return self._params["policy_images"]["max_images"]

    # ------------------------------------------------------------------
    # Ticker
    # ------------------------------------------------------------------

    def ticker_policy(self) -> TickerPolicy:
        t = self._params["ticker"]
        return TickerPolicy(
            separator=t["separator"],
            chars_per_second=t["chars_per_second"],
            min_seconds=t["min_seconds"],
            max_seconds=t["max_seconds"],
            empty_text=t["empty_text"],
        )

    # ------------------------------------------------------------------
    # Holidays (styling only, never consulted by status logic)
    # ------------------------------------------------------------------

    def holiday_note(self, day: date) -> Optional[str]:
        """Return the holiday label for a date, if one is configured."""
        return self._holidays["notes"].get(day.isoformat())

    def holiday_notes(self) -> dict[str, str]:
        return dict(self._holidays["notes"])


def _load_json(path: Path) -> dict[str, Any]:
    """Load a JSON file or raise with clear path."""
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)
