"""Memory manager — a fixed array of slots with LRU eviction.

Memory is modelled as ``N`` slots.  Each slot is either empty or
records the PID of the process mapped into it.  The slot only *refers*
to the process; evicting a slot unmaps the process but does not kill
it.

A parallel **recency index** maps slot → the logical time the slot was
last accessed.  An access is either an allocation into the slot or a
scheduler dispatch of the process that lives there (``touch``).

Allocation policy:
    1. Take the first empty slot in index order.
    2. If every slot is occupied, evict the least recently used one —
       smallest recency stamp, lowest index on a tie.

Freeing a slot empties it but keeps its recency stamp, so a freed slot
is always reused before anything is evicted.

Why slot → timestamp instead of an OrderedDict of pages?
    The recency stamps are part of what a student watches on screen,
    and a ``touch`` can hit any slot, not just the newest.  A plain
    dict of stamps keeps both visible; ``min()`` over 16 slots is
    instant.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from os_sim.config import validate_slot_count

if TYPE_CHECKING:
    from os_sim.clock import LogicalClock


@dataclass(frozen=True)
class Allocation:
    """The outcome of ``MemoryManager.allocate``.

    Attributes:
        slot: The slot index the PID was placed in.
        evicted: The PID unmapped to make room, or None.

    """

    slot: int
    evicted: int | None = None


class MemoryManager:
    """Manage the slot array and its recency index."""

    def __init__(self, *, total_slots: int, clock: LogicalClock) -> None:
        """Create a memory manager with ``total_slots`` empty slots.

        Args:
            total_slots: Number of slots (1-64).
            clock: Source of recency timestamps.

        Raises:
            ValueError: If the slot count is out of range.

        """
        validate_slot_count(total_slots)
        self._slots: list[int | None] = [None] * total_slots
        self._recency: dict[int, int] = {}
        self._clock = clock

    @property
    def capacity(self) -> int:
        """Return the total number of slots."""
        return len(self._slots)

    @property
    def free_slots(self) -> int:
        """Return the number of empty slots."""
        return self._slots.count(None)

    def slots(self) -> tuple[int | None, ...]:
        """Return a snapshot of the slot array."""
        return tuple(self._slots)

    def recency(self) -> dict[int, int]:
        """Return a copy of the slot → last-access index."""
        return dict(self._recency)

    def slot_of(self, pid: int) -> int | None:
        """Return the first slot holding ``pid``, or None."""
        try:
            return self._slots.index(pid)
        except ValueError:
            return None

    def _victim(self) -> int:
        """Return the least recently used slot (lowest index on a tie)."""
        return min(self._recency, key=lambda slot: (self._recency[slot], slot))

    def allocate(self, pid: int) -> Allocation:
        """Place ``pid`` in a slot, evicting the LRU slot if memory is full.

        The PID is not checked against existing mappings.

        Args:
            pid: The process to map.

        Returns:
            Where it went and who, if anyone, was evicted.

        """
        evicted: int | None = None
        try:
            slot = self._slots.index(None)
        except ValueError:
            # Full memory means every slot has been stamped at least once.
            slot = self._victim()
            evicted = self._slots[slot]
        self._slots[slot] = pid
        self._recency[slot] = self._clock.now()
        return Allocation(slot=slot, evicted=evicted)

    def touch(self, pid: int) -> list[int]:
        """Refresh the recency stamp of every slot holding ``pid``.

        Returns:
            The slots that were touched (empty if ``pid`` is unmapped).

        """
        touched = [i for i, owner in enumerate(self._slots) if owner == pid]
        if touched:
            now = self._clock.now()
            for slot in touched:
                self._recency[slot] = now
        return touched

    def free(self, pid: int) -> list[int]:
        """Empty every slot holding ``pid``.  Recency stamps are kept.

        Returns:
            The slots that were freed.

        """
        freed = [i for i, owner in enumerate(self._slots) if owner == pid]
        for slot in freed:
            self._slots[slot] = None
        return freed
