"""Event log — the simulator's append-only audit trail.

Every mutating operation in the simulator writes a line here, so a
student can replay exactly what the kernel did and in which order.
Real kernels keep the same kind of ring buffer (``dmesg`` on Linux);
ours never wraps and never forgets.

- **LogLevel** — severity levels ordered for filtering (DEBUG < ERROR).
- **LogEntry** — a single structured record (level, message, source).
- **EventLog** — an append-only sequence of entries with filtering.

Design choices:
    - **IntEnum for levels** so they compare naturally with ``<``.
    - **Frozen dataclass for entries** — log records should be immutable.
    - **No clear() or remove()** — entries are only ever appended at the
      end; nothing is truncated, reordered, or edited in place.
"""

from dataclasses import dataclass
from enum import IntEnum


class LogLevel(IntEnum):
    """Severity levels for log entries."""

    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3


@dataclass(frozen=True)
class LogEntry:
    """A single structured log record.

    Attributes:
        level: The severity of this event.
        message: A human-readable description of what happened.
        source: The subsystem that generated the event (e.g. "process").

    """

    level: LogLevel
    message: str
    source: str

    def __str__(self) -> str:
        """Format as ``[LEVEL] source: message``."""
        return f"[{self.level.name}] {self.source}: {self.message}"


class EventLog:
    """Append-only log buffer with filtering.

    The log is not thread-safe on its own; the kernel appends to it
    while holding its own lock.
    """

    def __init__(self) -> None:
        """Create an empty log."""
        self._entries: list[LogEntry] = []

    def __len__(self) -> int:
        """Return the number of entries recorded so far."""
        return len(self._entries)

    @property
    def entries(self) -> list[LogEntry]:
        """Return all log entries in chronological order."""
        return list(self._entries)

    def append(
        self,
        message: str,
        *,
        level: LogLevel = LogLevel.INFO,
        source: str = "kernel",
    ) -> LogEntry:
        """Append a new entry to the end of the log.

        Args:
            message: Human-readable event description.
            level: Severity of the event.
            source: Subsystem that generated the event.

        Returns:
            The entry that was recorded.

        """
        entry = LogEntry(level=level, message=message, source=source)
        self._entries.append(entry)
        return entry

    def lines(self) -> tuple[str, ...]:
        """Return just the messages, oldest first."""
        return tuple(e.message for e in self._entries)

    def filter(
        self,
        *,
        min_level: LogLevel | None = None,
        source: str | None = None,
    ) -> list[LogEntry]:
        """Return entries matching the given criteria.

        Args:
            min_level: If set, only return entries at or above this level.
            source: If set, only return entries from this source.

        Returns:
            A filtered list of log entries.

        """
        result = self._entries
        if min_level is not None:
            result = [e for e in result if e.level >= min_level]
        if source is not None:
            result = [e for e in result if e.source == source]
        return result if result is not self._entries else list(result)
