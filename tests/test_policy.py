"""Tests for the policy resolver — proves the shipped config loads and
resolves to the expected dashboard settings.
"""

import json
from datetime import date
from pathlib import Path

import pytest

from safetyboard.policy.resolver import ClampRange, DashboardPolicy

CONFIG_DIR = Path(__file__).resolve().parents[1] / "config"


def _write_config(tmp_path: Path, params: dict, holidays: dict) -> Path:
    (tmp_path / "dashboard_params.json").write_text(json.dumps(params), encoding="utf-8")
    (tmp_path / "holiday_notes.json").write_text(json.dumps(holidays), encoding="utf-8")
    return tmp_path


class TestDashboardPolicy:
    def test_storage_keys(self, policy: DashboardPolicy) -> None:
        assert policy.snapshot_key(2026) == "safety-dashboard-2026"
        assert policy.ui_scale_key() == "safety-dashboard-ui-scale"
        assert policy.layout_key() == "safety-dashboard-layout"

    def test_timing(self, policy: DashboardPolicy) -> None:
        assert policy.auto_safe_hour() == 16
        assert policy.save_debounce_seconds() == pytest.approx(0.45)
        assert policy.rollover_min_delay_seconds() == pytest.approx(0.25)

    def test_ranges(self, policy: DashboardPolicy) -> None:
        assert policy.zoom_range() == ClampRange(0.5, 2.5, 0.1, 1.0)
        assert policy.ui_scale_range() == ClampRange(0.8, 1.4, 0.05, 1.0)
        assert policy.max_policy_images() == 2

    def test_ticker(self, policy: DashboardPolicy) -> None:
        ticker = policy.ticker_policy()
        assert ticker.separator == "   •   "
        assert (ticker.min_seconds, ticker.max_seconds) == (18, 48)

    def test_holiday_lookup(self, policy: DashboardPolicy) -> None:
        assert policy.holiday_note(date(2026, 4, 13)) == "SONGKRAN DAY"
        assert policy.holiday_note(date(2026, 4, 20)) is None
        assert policy.holiday_note(date(2027, 4, 13)) is None
        assert len(policy.holiday_notes()) == 28


class TestClampRange:
    def test_clamp(self) -> None:
        r = ClampRange(0.5, 2.5, 0.1, 1.0)
        assert r.clamp(3.0) == 2.5
        assert r.clamp(0.0) == 0.5
        assert r.clamp(1.3) == 1.3


class TestConfigFailures:
    def test_missing_directory(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError, match="dashboard_params.json"):
            DashboardPolicy.from_config_dir(tmp_path)

    def test_missing_version(self, tmp_path: Path) -> None:
        params = json.loads((CONFIG_DIR / "dashboard_params.json").read_text(encoding="utf-8"))
        del params["version"]
        cfg = _write_config(tmp_path, params, {"version": "1.0", "notes": {}})
        with pytest.raises(ValueError, match="missing version"):
            DashboardPolicy.from_config_dir(cfg)

    def test_missing_key_fails_loud(self, tmp_path: Path) -> None:
        cfg = _write_config(tmp_path, {"version": "1.0"}, {"version": "1.0", "notes": {}})
        policy = DashboardPolicy.from_config_dir(cfg)
        with pytest.raises(KeyError):
            policy.auto_safe_hour()

    def test_cutoff_hour_range_checked(self, tmp_path: Path) -> None:
        cfg = _write_config(
            tmp_path,
            {"version": "1.0", "rollover": {"auto_safe_hour": 24, "min_delay_ms": 250}},
            {"version": "1.0", "notes": {}},
        )
        with pytest.raises(ValueError, match="auto_safe_hour"):
            DashboardPolicy.from_config_dir(cfg).auto_safe_hour()
