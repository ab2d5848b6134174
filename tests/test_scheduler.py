"""Tests for the scheduler.

Each tick demotes the running process, promotes the oldest READY
process, and touches its memory slot.  Because creation times never
change, the oldest process keeps winning until it is terminated.
"""

import random

from os_sim.clock import LogicalClock
from os_sim.memory import MemoryManager
from os_sim.process import Process, ProcessState, ProcessTable
from os_sim.scheduler import OldestFirstPolicy, Scheduler

SLOTS = 4


def _world(slots: int = SLOTS) -> tuple[ProcessTable, MemoryManager]:
    """Create a process table and memory sharing one clock."""
    clock = LogicalClock()
    table = ProcessTable(clock, rng=random.Random(0))
    return table, MemoryManager(total_slots=slots, clock=clock)


def _spawn(table: ProcessTable, memory: MemoryManager) -> Process:
    """Create a process and give it a slot, as the kernel does."""
    process = table.create()
    memory.allocate(process.pid)
    return process


class TestOldestFirstPolicy:
    """Verify selection order."""

    def test_empty_returns_none(self) -> None:
        """Nothing to pick from an empty list."""
        assert OldestFirstPolicy().select([]) is None

    def test_smallest_creation_time_wins(self) -> None:
        """The earliest-created process is chosen regardless of list order."""
        old = Process(priority=0, memory_size=64, creation_time=1)
        young = Process(priority=9, memory_size=64, creation_time=2)
        assert OldestFirstPolicy().select([young, old]) is old

    def test_tie_broken_by_lowest_pid(self) -> None:
        """Equal creation times fall back to PID order."""
        a = Process(priority=0, memory_size=64, creation_time=1)
        b = Process(priority=0, memory_size=64, creation_time=1)
        first, second = sorted([a, b], key=lambda p: p.pid)
        assert OldestFirstPolicy().select([second, first]) is first


class TestSchedulerTick:
    """Verify the per-tick transition rule."""

    def test_idle_tick(self) -> None:
        """With no processes the tick dispatches nothing."""
        table, memory = _world()
        scheduler = Scheduler()
        result = scheduler.tick(table, memory)
        assert result.idle
        assert result.tick == 1
        assert scheduler.running is None

    def test_oldest_is_dispatched(self) -> None:
        """The first tick runs the oldest process."""
        table, memory = _world()
        p1 = _spawn(table, memory)
        _spawn(table, memory)
        result = Scheduler().tick(table, memory)
        assert result.dispatched == p1.pid
        assert result.demoted is None
        assert p1.state is ProcessState.RUNNING

    def test_oldest_keeps_the_cpu(self) -> None:
        """The running process is demoted and immediately re-selected."""
        table, memory = _world()
        p1 = _spawn(table, memory)
        p2 = _spawn(table, memory)
        scheduler = Scheduler()
        scheduler.tick(table, memory)
        result = scheduler.tick(table, memory)
        assert result.demoted == p1.pid
        assert result.dispatched == p1.pid
        assert p2.state is ProcessState.READY

    def test_next_oldest_after_removal(self) -> None:
        """Removing the running process hands the CPU to the next oldest."""
        table, memory = _world()
        p1 = _spawn(table, memory)
        p2 = _spawn(table, memory)
        scheduler = Scheduler()
        scheduler.tick(table, memory)
        table.remove(p1.pid)
        scheduler.forget(p1.pid)
        assert scheduler.running is None
        result = scheduler.tick(table, memory)
        assert result.demoted is None
        assert result.dispatched == p2.pid

    def test_at_most_one_running(self) -> None:
        """After every tick at most one process is RUNNING."""
        table, memory = _world()
        scheduler = Scheduler()
        for _ in range(10):
            _spawn(table, memory)
            scheduler.tick(table, memory)
            running = [p for p in table if p.state is ProcessState.RUNNING]
            assert len(running) <= 1

    def test_dispatch_touches_memory(self) -> None:
        """The dispatched process's slot becomes the most recently used."""
        table, memory = _world()
        p1 = _spawn(table, memory)
        _spawn(table, memory)
        Scheduler().tick(table, memory)
        recency = memory.recency()
        assert recency[memory.slot_of(p1.pid)] == max(recency.values())

    def test_dispatch_protects_from_eviction(self) -> None:
        """A dispatched process is not the next eviction victim."""
        table, memory = _world()
        procs = [_spawn(table, memory) for _ in range(SLOTS)]
        Scheduler().tick(table, memory)
        newcomer = table.create()
        allocation = memory.allocate(newcomer.pid)
        assert allocation.evicted == procs[1].pid

    def test_dispatch_of_evicted_process(self) -> None:
        """A process without a slot can still run; nothing is touched."""
        table, memory = _world(slots=1)
        p1 = _spawn(table, memory)
        _spawn(table, memory)  # evicts p1
        before = memory.recency()
        result = Scheduler().tick(table, memory)
        assert result.dispatched == p1.pid
        assert memory.recency() == before

    def test_tick_counter(self) -> None:
        """The scheduler counts its ticks."""
        table, memory = _world()
        scheduler = Scheduler()
        for _ in range(3):
            scheduler.tick(table, memory)
        assert scheduler.ticks == 3  # noqa: PLR2004

    def test_custom_policy(self) -> None:
        """Any object with a select() method can replace the default policy."""

        class NewestFirstPolicy:
            def select(self, ready: list[Process]) -> Process | None:
                return max(ready, key=lambda p: p.creation_time, default=None)

        table, memory = _world()
        _spawn(table, memory)
        newest = _spawn(table, memory)
        result = Scheduler(NewestFirstPolicy()).tick(table, memory)
        assert result.dispatched == newest.pid
