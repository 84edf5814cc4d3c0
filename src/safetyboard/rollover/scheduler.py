"""Rollover scheduler — fires once a day at the cutoff hour.

A single-shot timer is armed for the next cutoff. When it fires, the
callback receives the firing moment and the timer is immediately re-armed
for the following day. At most one timer is live per scheduler; stop()
cancels it and disposes the scheduler so a late fire is ignored.

Thread-safety: the callback runs on the timer thread. The owner must
synchronise access to whatever state the callback mutates.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Any, Callable, Optional

from safetyboard.rollover.engine import AUTO_SAFE_HOUR, seconds_until_cutoff

logger = logging.getLogger(__name__)

TimerFactory = Callable[[float, Callable[[], None]], Any]


class RolloverScheduler:
    """Re-arming daily timer for the auto-SAFE cutoff.

    Usage:
        scheduler = RolloverScheduler(on_fire=service.handle_rollover)
        scheduler.start()
        ...
        scheduler.stop()
    """

    def __init__(
        self,
        on_fire: Callable[[datetime], None],
        cutoff_hour: int = AUTO_SAFE_HOUR,
        min_delay_seconds: float = 0.25,
        clock: Callable[[], datetime] = datetime.now,
        timer_factory: TimerFactory = threading.Timer,
    ) -> None:
        self._on_fire = on_fire
        self._cutoff_hour = cutoff_hour
        self._min_delay = min_delay_seconds
        self._clock = clock
        self._timer_factory = timer_factory
        self._timer: Optional[Any] = None
        self._lock = threading.Lock()
        self._disposed = False

    @property
    def is_armed(self) -> bool:
        return self._timer is not None

    def start(self) -> None:
        """Arm the timer. No-op if already armed.

        Raises RuntimeError if the scheduler has been stopped.
        """
        with self._lock:
            if self._disposed:
                raise RuntimeError("Rollover scheduler has been stopped")
            if self._timer is None:
                self._arm()

    def stop(self) -> None:
        """Cancel the pending timer and dispose the scheduler."""
        with self._lock:
            self._disposed = True
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def _arm(self) -> None:
        delay = seconds_until_cutoff(self._clock(), self._cutoff_hour, self._min_delay)
        timer = self._timer_factory(delay, self._fire)
        timer.daemon = True
        self._timer = timer
        timer.start()
        logger.debug("Rollover timer armed (delay=%.1fs)", delay)

    def _fire(self) -> None:
        with self._lock:
            if self._disposed:
                return
            self._timer = None
        fired_at = self._clock()
        logger.info("Rollover fired at %s", fired_at.isoformat())
        try:
            self._on_fire(fired_at)
        finally:
            with self._lock:
                if not self._disposed and self._timer is None:
                    self._arm()
