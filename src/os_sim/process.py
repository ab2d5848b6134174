"""Processes and the process table.

A process here is a teaching-sized Process Control Block: an id, a
lifecycle state, and a handful of fields a student would expect to see
(priority, program counter, registers) even though the simulator does
not execute anything.

The lifecycle is deliberately tiny::

    (created) → READY ⇄ RUNNING → (removed)

There is no TERMINATED state: terminating a process removes it from the
table, and a process that is not in the table no longer exists.

Each transition method (dispatch, preempt) enforces that the process is
in the correct source state before moving it.
"""

from __future__ import annotations

import random
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import StrEnum
from itertools import count
from typing import TYPE_CHECKING, Any

from os_sim.config import DEFAULT_MEMORY_SIZE_RANGE

if TYPE_CHECKING:
    from os_sim.clock import LogicalClock

MIN_PRIORITY = 0
MAX_PRIORITY = 9


class ProcessState(StrEnum):
    """Lifecycle states tracked by the scheduler.

    - READY: waiting for the scheduler to pick it.
    - RUNNING: currently holding the (single) CPU.
    """

    READY = "ready"
    RUNNING = "running"


# Module-level PID counter. Each call to next(_pid_counter) yields the
# next int, so PIDs are unique for the life of the interpreter.
_pid_counter = count(start=1)


@dataclass(frozen=True)
class ProcessInfo:
    """Read-only snapshot of a process (returned by queries)."""

    pid: int
    state: ProcessState
    priority: int
    memory_size: int
    program_counter: int
    registers: dict[str, int]
    creation_time: int

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-ready dictionary."""
        return {
            "pid": self.pid,
            "state": self.state.value,
            "priority": self.priority,
            "memory_size": self.memory_size,
            "program_counter": self.program_counter,
            "registers": dict(self.registers),
            "creation_time": self.creation_time,
        }


@dataclass
class Process:
    """A simulated process (the Process Control Block).

    ``pid`` and ``creation_time`` are fixed at creation.  ``priority`` is
    recorded but the scheduler does not look at it.
    """

    priority: int
    memory_size: int
    creation_time: int
    pid: int = field(default_factory=lambda: next(_pid_counter))
    state: ProcessState = ProcessState.READY
    program_counter: int = 0
    registers: dict[str, int] = field(default_factory=lambda: {})  # noqa: PIE807

    def _transition(self, action: str, expected: ProcessState, target: ProcessState) -> None:
        """Enforce a state transition.

        Raises:
            RuntimeError: If the process is not in the expected state.

        """
        if self.state is not expected:
            msg = f"Cannot {action}: process {self.pid} is {self.state}, expected {expected}"
            raise RuntimeError(msg)
        self.state = target

    def dispatch(self) -> None:
        """Transition READY → RUNNING. Give the process the CPU."""
        self._transition("dispatch", ProcessState.READY, ProcessState.RUNNING)

    def preempt(self) -> None:
        """Transition RUNNING → READY. Take the CPU back."""
        self._transition("preempt", ProcessState.RUNNING, ProcessState.READY)

    def to_info(self) -> ProcessInfo:
        """Create a read-only snapshot of this process."""
        return ProcessInfo(
            pid=self.pid,
            state=self.state,
            priority=self.priority,
            memory_size=self.memory_size,
            program_counter=self.program_counter,
            registers=dict(self.registers),
            creation_time=self.creation_time,
        )


class ProcessTable:
    """The set of live processes, keyed by PID.

    Insertion order is creation order, which is also ``creation_time``
    order because both come from the same clock.
    """

    def __init__(
        self,
        clock: LogicalClock,
        *,
        memory_size_range: tuple[int, int] = DEFAULT_MEMORY_SIZE_RANGE,
        rng: random.Random | None = None,
    ) -> None:
        """Create an empty process table.

        Args:
            clock: Source of creation timestamps.
            memory_size_range: Inclusive bounds for random memory sizes.
            rng: Random source for priority and size (seedable in tests).

        """
        self._clock = clock
        self._memory_size_range = memory_size_range
        self._rng = rng if rng is not None else random.Random()
        self._processes: dict[int, Process] = {}

    def __len__(self) -> int:
        """Return the number of live processes."""
        return len(self._processes)

    def __contains__(self, pid: object) -> bool:
        """Return True if ``pid`` is a live process."""
        return pid in self._processes

    def __iter__(self) -> Iterator[Process]:
        """Iterate over live processes in creation order."""
        return iter(list(self._processes.values()))

    def create(self, *, priority: int | None = None, memory_size: int | None = None) -> Process:
        """Create a READY process and add it to the table.

        Args:
            priority: 0-9, random if omitted.
            memory_size: Informational size, random in range if omitted.

        Returns:
            The new process.

        Raises:
            ValueError: If an explicit priority is outside 0-9.

        """
        if priority is None:
            priority = self._rng.randint(MIN_PRIORITY, MAX_PRIORITY)
        elif not MIN_PRIORITY <= priority <= MAX_PRIORITY:
            msg = f"Priority must be between {MIN_PRIORITY} and {MAX_PRIORITY}, got {priority}"
            raise ValueError(msg)
        if memory_size is None:
            memory_size = self._rng.randint(*self._memory_size_range)

        process = Process(
            priority=priority,
            memory_size=memory_size,
            creation_time=self._clock.now(),
        )
        self._processes[process.pid] = process
        return process

    def remove(self, pid: int) -> Process | None:
        """Remove a process.  Removing an unknown PID is a no-op."""
        return self._processes.pop(pid, None)

    def ready(self) -> list[Process]:
        """Return every READY process, in creation order."""
        return [p for p in self._processes.values() if p.state is ProcessState.READY]

    def running(self) -> Process | None:
        """Return the RUNNING process, or None if the CPU is idle."""
        for process in self._processes.values():
            if process.state is ProcessState.RUNNING:
                return process
        return None

    def snapshot(self) -> tuple[ProcessInfo, ...]:
        """Return immutable snapshots of every process, in creation order."""
        return tuple(p.to_info() for p in self._processes.values())
