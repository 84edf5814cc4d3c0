"""Debounced writer — coalesces bursts of saves into one write.

Every schedule() cancels the pending timer and re-arms it with the new
payload, so the last payload within the window wins. At most one timer
is pending at a time. Writes are serialised: a flush issued while the
timer thread is mid-write waits for it, so an older payload can never
land after a newer one.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_NOTHING = object()


class DebouncedWriter(Generic[T]):
    """Delay-and-coalesce wrapper around a write callable.

    Thread-safety: schedule(), flush() and cancel() may be called from any
    thread; the write itself runs on the timer thread unless flushed.
    """

    def __init__(
        self,
        write: Callable[[T], Any],
        delay_seconds: float,
        timer_factory: Callable[[float, Callable[[], None]], Any] = threading.Timer,
    ) -> None:
        self._write = write
        self._delay = delay_seconds
        self._timer_factory = timer_factory
        self._lock = threading.Lock()
        # Acquired before _lock and held across take and write.
        self._write_lock = threading.Lock()
        self._timer: Optional[Any] = None
        self._pending: Any = _NOTHING
        self._generation = 0

    @property
    def has_pending(self) -> bool:
        return self._pending is not _NOTHING

    def schedule(self, payload: T) -> None:
        """Replace any pending payload and restart the delay."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._pending = payload
            self._generation += 1
            generation = self._generation
            timer = self._timer_factory(self._delay, lambda: self._fire(generation))
            timer.daemon = True
            self._timer = timer
            timer.start()

    def flush(self) -> bool:
        """Write the pending payload now. Returns False if nothing was pending."""
        with self._write_lock:
            payload = self._take()
            if payload is _NOTHING:
                return False
            self._write(payload)
            return True

    def cancel(self) -> None:
        """Drop the pending payload without writing it."""
        if self._take() is not _NOTHING:
            logger.debug("Pending write discarded")

    def _take(self) -> Any:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._generation += 1
            payload, self._pending = self._pending, _NOTHING
            return payload

    def _fire(self, generation: int) -> None:
        with self._write_lock:
            with self._lock:
                if generation != self._generation:
                    return
                self._timer = None
                payload, self._pending = self._pending, _NOTHING
            if payload is not _NOTHING:
                self._write(payload)
