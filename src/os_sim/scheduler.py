"""CPU scheduler — decides which READY process holds the CPU each tick.

The scheduler's only state is *which process is running*.  Each tick
runs the same four steps:

1. Demote the running process (RUNNING → READY), if there is one.
2. Collect every READY process.  None?  The tick is idle.
3. Promote the oldest one (smallest ``creation_time``, lowest PID on a
   tie) to RUNNING.
4. Touch its memory slot so frequently scheduled processes resist
   eviction.

Because the demoted process goes straight back into the candidate set
and its creation time never changes, the oldest process wins every
tick.  In practice a process runs until it is terminated, then the next
oldest takes over.  That is the behaviour being taught here, not a bug.

Design: Strategy pattern
    The Scheduler is the *context*; SchedulingPolicy is the *strategy*.
    ``OldestFirstPolicy`` is the only policy shipped.  Priority is
    recorded on every process but no policy reads it yet.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from os_sim.memory import MemoryManager
    from os_sim.process import Process, ProcessTable


class SchedulingPolicy(Protocol):
    """Interface that every scheduling algorithm must satisfy."""

    def select(self, ready: list[Process]) -> Process | None:
        """Return the process to run next, or None if ``ready`` is empty."""
        ...  # pragma: no cover


class OldestFirstPolicy:
    """Earliest-created-first: the smallest creation time wins."""

    def select(self, ready: list[Process]) -> Process | None:
        """Pick the oldest READY process (lowest PID breaks ties)."""
        if not ready:
            return None
        return min(ready, key=lambda p: (p.creation_time, p.pid))


@dataclass(frozen=True)
class TickResult:
    """What one scheduling step did.

    Attributes:
        tick: The tick number (1 for the first tick).
        demoted: PID moved RUNNING → READY, or None.
        dispatched: PID moved READY → RUNNING, or None on an idle tick.

    """

    tick: int
    demoted: int | None
    dispatched: int | None

    @property
    def idle(self) -> bool:
        """Return True if no process was dispatched."""
        return self.dispatched is None


class Scheduler:
    """Single-CPU scheduler driven by ``tick()``."""

    def __init__(self, policy: SchedulingPolicy | None = None) -> None:
        """Create an idle scheduler.

        Args:
            policy: Selection strategy (defaults to OldestFirstPolicy).

        """
        self._policy: SchedulingPolicy = policy if policy is not None else OldestFirstPolicy()
        self._running: int | None = None
        self._ticks = 0

    @property
    def running(self) -> int | None:
        """Return the PID on the CPU, or None when idle."""
        return self._running

    @property
    def ticks(self) -> int:
        """Return the number of ticks executed so far."""
        return self._ticks

    def forget(self, pid: int) -> None:
        """Clear the running pointer if ``pid`` was on the CPU."""
        if self._running == pid:
            self._running = None

    def tick(self, table: ProcessTable, memory: MemoryManager) -> TickResult:
        """Run one scheduling step.

        Args:
            table: The live processes.
            memory: Notified of the dispatch so it can refresh recency.

        Returns:
            A record of the demotion and promotion performed.

        """
        self._ticks += 1

        demoted: int | None = None
        current = table.running()
        if current is not None:
            current.preempt()
            demoted = current.pid

        chosen = self._policy.select(table.ready())
        if chosen is None:
            self._running = None
            return TickResult(tick=self._ticks, demoted=demoted, dispatched=None)

        chosen.dispatch()
        self._running = chosen.pid
        memory.touch(chosen.pid)
        return TickResult(tick=self._ticks, demoted=demoted, dispatched=chosen.pid)
