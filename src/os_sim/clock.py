"""Logical clock and periodic ticker — the simulator's sense of time.

Two pieces live here:

**LogicalClock** — hands out strictly increasing integer timestamps.
    Process creation times and memory recency stamps both come from the
    same clock, so "older" always means "stamped earlier" and two events
    never tie.  Wall-clock time would make LRU tests depend on how fast
    the machine runs; a logical clock makes them exact.

**Ticker** — the programmable interval timer.  A background thread
    sleeps for ``interval`` seconds, then fires a callback (normally
    ``kernel.tick``).  It is the only time-driven actor in the system;
    everything else happens because a caller asked for it.

Why an Event instead of ``time.sleep``?
    ``Event.wait(timeout)`` sleeps exactly like ``sleep`` but wakes up
    immediately when ``stop()`` sets the event, so shutting down never
    has to wait out a full interval.
"""

from __future__ import annotations

import threading
from itertools import count
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

DEFAULT_TICK_INTERVAL = 2.0


class LogicalClock:
    """A monotonically increasing timestamp source."""

    def __init__(self, *, start: int = 1) -> None:
        """Create a clock whose first reading is ``start``."""
        self._counter = count(start=start)
        self._last = start - 1
        self._lock = threading.Lock()

    def now(self) -> int:
        """Return a fresh timestamp, strictly greater than every earlier one."""
        with self._lock:
            self._last = next(self._counter)
            return self._last

    @property
    def last(self) -> int:
        """Return the most recently issued timestamp (without advancing)."""
        return self._last


class Ticker:
    """Fire a callback every ``interval`` seconds on a daemon thread.

    The ticker does not serialise the callback against other work — the
    callback (the kernel) owns that lock.  The ticker only guarantees it
    never runs two callbacks at once, because it has a single thread.
    """

    def __init__(
        self,
        callback: Callable[[], object],
        *,
        interval: float = DEFAULT_TICK_INTERVAL,
    ) -> None:
        """Create a stopped ticker.

        Args:
            callback: Called once per interval.
            interval: Seconds between ticks (must be > 0).

        Raises:
            ValueError: If the interval is not positive.

        """
        if interval <= 0:
            msg = f"Tick interval must be positive, got {interval}"
            raise ValueError(msg)
        self._callback = callback
        self._interval = interval
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._fires = 0

    @property
    def interval(self) -> float:
        """Return the seconds between ticks."""
        return self._interval

    @property
    def fires(self) -> int:
        """Return how many times the callback has been fired."""
        return self._fires

    @property
    def running(self) -> bool:
        """Return True while the background thread is alive."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the background thread.  Starting twice is a no-op."""
        if self.running:
            return
        # One event per run: a thread left behind by a timed-out stop()
        # keeps its own, already set, event.
        self._stop = threading.Event()
        self._thread = threading.Thread(
            target=self._run, args=(self._stop,), name="os-sim-ticker", daemon=True
        )
        self._thread.start()

    def stop(self, *, timeout: float = 2.0) -> None:
        """Signal the current thread to stop and wait up to *timeout* for it."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
        self._thread = None

    def _run(self, stop: threading.Event) -> None:
        # wait() returns True only once stop() has set the event
        while not stop.wait(self._interval):
            self._callback()
            self._fires += 1
