"""Shared fixtures — manual timers and a settable clock."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Callable

import pytest

from safetyboard.persistence.state_store import DashboardStore
from safetyboard.persistence.storage import LocalStorage
from safetyboard.policy.resolver import DashboardPolicy

CONFIG_DIR = Path(__file__).resolve().parents[1] / "config"


class FakeTimer:
    """Stands in for threading.Timer; fires only when told to."""

    def __init__(self, delay: float, fn: Callable[[], None]) -> None:
        self.delay = delay
        self.fn = fn
        self.daemon = False
        self.started = False
        self.cancelled = False
        self.fired = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        if self.started and not self.cancelled and not self.fired:
            self.fired = True
            self.fn()

    @property
    def live(self) -> bool:
        return self.started and not self.cancelled and not self.fired


class ManualTimers:
    """Timer factory that records every timer it creates."""

    def __init__(self) -> None:
        self.created: list[FakeTimer] = []

    def __call__(self, delay: float, fn: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(delay, fn)
        self.created.append(timer)
        return timer

    def live(self) -> list[FakeTimer]:
        return [t for t in self.created if t.live]

    def live_with_delay_over(self, seconds: float) -> list[FakeTimer]:
        return [t for t in self.live() if t.delay > seconds]

    def live_with_delay_under(self, seconds: float) -> list[FakeTimer]:
        return [t for t in self.live() if t.delay <= seconds]


class MutableClock:
    """Callable clock whose time is set by the test."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def timers() -> ManualTimers:
    return ManualTimers()


@pytest.fixture
def clock() -> MutableClock:
    return MutableClock(datetime(2026, 3, 15, 10, 0))


@pytest.fixture
def policy() -> DashboardPolicy:
    return DashboardPolicy.from_config_dir(CONFIG_DIR)


@pytest.fixture
def storage(tmp_path: Path) -> LocalStorage:
    return LocalStorage(tmp_path / "board")


@pytest.fixture
def store(storage: LocalStorage, policy: DashboardPolicy) -> DashboardStore:
    return DashboardStore(storage, policy)
