"""The kernel — single owner of all simulator state.

The kernel coordinates every manager: the process table, memory,
scheduler, file system, devices, and the event log.  Callers never
touch a manager directly; they call a kernel command, and the kernel
runs it as one atomic step behind a single re-entrant lock.  The
periodic ticker goes through the same lock, so a tick can never observe
a half-finished command (or the other way round).

The kernel has an explicit lifecycle::

    SHUTDOWN  →  BOOTING  →  RUNNING  →  SHUTTING_DOWN  →  SHUTDOWN

Boot sequence (order matters):
    0. Event log — capture events from the start.
    1. Logical clock — every later timestamp comes from it.
    2. Memory manager — processes need a slot the moment they exist.
    3. Process table.
    4. File system — empty root folder.
    5. Device manager — every device available.
    6. Scheduler — ready to dispatch on the first tick.

Every command logs its *attempt*, whether or not it found its target.
Commands that name something missing (an unknown PID, a path that does
not resolve, a device that is already held) change nothing else.
"""

from __future__ import annotations

import random
import threading
from enum import StrEnum
from typing import Any

from os_sim.clock import LogicalClock, Ticker
from os_sim.config import SimulatorConfig
from os_sim.devices import DeviceManager
from os_sim.filesystem import DEFAULT_FILE_NAME, DEFAULT_FOLDER_NAME, FileSystem, Node
from os_sim.logging import EventLog, LogLevel
from os_sim.memory import MemoryManager
from os_sim.process import ProcessInfo, ProcessTable
from os_sim.scheduler import Scheduler, TickResult


class KernelState(StrEnum):
    """Represent the lifecycle phases of the kernel."""

    SHUTDOWN = "shutdown"
    BOOTING = "booting"
    RUNNING = "running"
    SHUTTING_DOWN = "shutting_down"


class Kernel:
    """The central coordinator of the simulator.

    Subsystem references are None when the kernel is not running and
    are initialised during boot.
    """

    def __init__(self, config: SimulatorConfig | None = None, *, rng: random.Random | None = None) -> None:
        """Create a kernel in the SHUTDOWN state.

        Args:
            config: Boot-time configuration (defaults to SimulatorConfig()).
            rng: Random source for process priority and size.

        """
        self._config = config if config is not None else SimulatorConfig()
        self._rng = rng
        self._state: KernelState = KernelState.SHUTDOWN
        self._lock = threading.RLock()
        self._log: EventLog | None = None
        self._clock: LogicalClock | None = None
        self._memory: MemoryManager | None = None
        self._processes: ProcessTable | None = None
        self._filesystem: FileSystem | None = None
        self._devices: DeviceManager | None = None
        self._scheduler: Scheduler | None = None
        self._ticker: Ticker | None = None
        self._boot_log: list[str] = []

    @property
    def config(self) -> SimulatorConfig:
        """Return the boot-time configuration."""
        return self._config

    @property
    def state(self) -> KernelState:
        """Return the current kernel state."""
        return self._state

    @property
    def memory(self) -> MemoryManager | None:
        """Return the memory manager, or None if not booted."""
        return self._memory

    @property
    def process_table(self) -> ProcessTable | None:
        """Return the process table, or None if not booted."""
        return self._processes

    @property
    def filesystem(self) -> FileSystem | None:
        """Return the file system, or None if not booted."""
        return self._filesystem

    @property
    def device_manager(self) -> DeviceManager | None:
        """Return the device manager, or None if not booted."""
        return self._devices

    @property
    def scheduler(self) -> Scheduler | None:
        """Return the scheduler, or None if not booted."""
        return self._scheduler

    @property
    def event_log(self) -> EventLog | None:
        """Return the event log, or None if not booted."""
        return self._log

    @property
    def clock_running(self) -> bool:
        """Return True while the periodic ticker is active."""
        return self._ticker is not None and self._ticker.running

    def dmesg(self) -> list[str]:
        """Return the boot log messages."""
        return list(self._boot_log)

    # -- Lifecycle --------------------------------------------------------------

    def _require_running(self) -> None:
        """Raise if the kernel is not in the RUNNING state."""
        if self._state is not KernelState.RUNNING:
            msg = f"Kernel is not running (state: {self._state})"
            raise RuntimeError(msg)

    def boot(self) -> None:
        """Transition the kernel from SHUTDOWN → RUNNING.

        Raises:
            RuntimeError: If the kernel is not in the SHUTDOWN state.

        """
        with self._lock:
            if self._state is not KernelState.SHUTDOWN:
                msg = f"Cannot boot: kernel is {self._state}, expected shutdown"
                raise RuntimeError(msg)

            self._state = KernelState.BOOTING
            config = self._config

            self._log = EventLog()
            self._boot_log.append("[OK] Event log")

            self._clock = LogicalClock()
            self._boot_log.append("[OK] Logical clock")

            self._memory = MemoryManager(total_slots=config.memory_slots, clock=self._clock)
            self._boot_log.append(f"[OK] Memory manager ({config.memory_slots} slots)")

            self._processes = ProcessTable(
                self._clock,
                memory_size_range=config.memory_size_range,
                rng=self._rng,
            )
            self._boot_log.append("[OK] Process table")

            self._filesystem = FileSystem()
            self._boot_log.append("[OK] File system")

            self._devices = DeviceManager(config.devices)
            self._boot_log.append(f"[OK] Device manager ({', '.join(config.devices)})")

            self._scheduler = Scheduler()
            self._boot_log.append("[OK] Scheduler (oldest first)")

            self._state = KernelState.RUNNING
            self._log.append("Kernel boot complete", source="kernel")

    def shutdown(self) -> None:
        """Transition the kernel from RUNNING → SHUTDOWN.

        The ticker is stopped first, outside the lock, so an in-flight
        tick can finish before the subsystems are torn down.

        Raises:
            RuntimeError: If the kernel is not in the RUNNING state.

        """
        if self._state is not KernelState.RUNNING:
            msg = f"Cannot shutdown: kernel is {self._state}, expected running"
            raise RuntimeError(msg)
        self.stop_clock()

        with self._lock:
            self._state = KernelState.SHUTTING_DOWN
            self._scheduler = None
            self._devices = None
            self._filesystem = None
            self._processes = None
            self._memory = None
            self._clock = None
            self._log = None
            self._boot_log.clear()
            self._state = KernelState.SHUTDOWN

    def start_clock(self) -> None:
        """Start firing ``tick()`` every ``config.tick_interval`` seconds."""
        with self._lock:
            self._require_running()
            if self._ticker is None:
                self._ticker = Ticker(self._on_clock_tick, interval=self._config.tick_interval)
            self._ticker.start()

    def stop_clock(self) -> None:
        """Stop the periodic ticker (no-op if it is not running)."""
        ticker = self._ticker
        if ticker is not None:
            ticker.stop()
        self._ticker = None

    def _on_clock_tick(self) -> None:
        """Ticker callback: tick unless the kernel is going down."""
        with self._lock:
            if self._state is KernelState.RUNNING:
                self.tick()

    # -- Process commands -------------------------------------------------------

    def tick(self) -> TickResult:
        """Run one scheduling step and refresh the dispatched slot's recency."""
        with self._lock:
            self._require_running()
            assert self._scheduler is not None  # guaranteed by _require_running  # noqa: S101
            assert self._processes is not None  # noqa: S101
            assert self._memory is not None  # noqa: S101
            assert self._log is not None  # noqa: S101

            result = self._scheduler.tick(self._processes, self._memory)
            if result.dispatched is not None:
                self._log.append(
                    f"Dispatched process {result.dispatched}",
                    level=LogLevel.DEBUG,
                    source="scheduler",
                )
            return result

    def create_process(self, *, priority: int | None = None) -> ProcessInfo:
        """Create a READY process and map it into memory.

        Args:
            priority: 0-9, random if omitted.

        Returns:
            A snapshot of the new process.

        """
        with self._lock:
            self._require_running()
            assert self._processes is not None  # noqa: S101
            assert self._memory is not None  # noqa: S101
            assert self._log is not None  # noqa: S101

            process = self._processes.create(priority=priority)
            self._log.append(f"Creating process {process.pid}", source="process")

            allocation = self._memory.allocate(process.pid)
            if allocation.evicted is not None:
                self._log.append(
                    f"Evicted process {allocation.evicted} from slot {allocation.slot}",
                    level=LogLevel.WARNING,
                    source="memory",
                )
            return process.to_info()

    def terminate_process(self, pid: int) -> None:
        """Remove a process and release its memory slots and devices.

        Terminating an unknown PID only logs the attempt.
        """
        with self._lock:
            self._require_running()
            assert self._processes is not None  # noqa: S101
            assert self._memory is not None  # noqa: S101
            assert self._devices is not None  # noqa: S101
            assert self._scheduler is not None  # noqa: S101
            assert self._log is not None  # noqa: S101

            self._log.append(f"Terminating process {pid}", source="process")
            self._processes.remove(pid)
            self._scheduler.forget(pid)
            self._memory.free(pid)
            for name in self._devices.release_held_by(pid):
                self._log.append(f"Released {name}", source="devices")

    # -- File system commands ---------------------------------------------------

    def _fs(self) -> FileSystem:
        self._require_running()
        assert self._filesystem is not None  # noqa: S101
        assert self._log is not None  # noqa: S101
        return self._filesystem

    def add_child(self, path: str, item: Node) -> bool:
        """Append ``item`` under the folder at ``path``."""
        with self._lock:
            fs = self._fs()
            self._log_fs(f"Adding {item.name} at path {path}")
            return fs.add_child(path, item)

    def add_folder(self, path: str, name: str = DEFAULT_FOLDER_NAME) -> bool:
        """Append an empty folder under ``path``."""
        return self.add_child(path, Node.folder(name))

    def add_file(self, path: str, name: str = DEFAULT_FILE_NAME) -> bool:
        """Append an empty file under ``path``."""
        return self.add_child(path, Node.file(name))

    def rename(self, path: str, new_name: str) -> bool:
        """Rename the node at ``path``."""
        with self._lock:
            fs = self._fs()
            self._log_fs(f"Renaming {path} to {new_name}")
            return fs.rename(path, new_name)

    def delete(self, path: str) -> bool:
        """Delete the node at ``path`` (and its subtree)."""
        with self._lock:
            fs = self._fs()
            self._log_fs(f"Deleting item at {path}")
            return fs.delete(path)

    def move(self, source: str, target: str) -> bool:
        """Move the node at ``source`` into the folder at ``target``.

        If ``target`` does not resolve, the node is removed and lost.
        """
        with self._lock:
            fs = self._fs()
            self._log_fs(f"Moving {source} to {target}")
            return fs.move(source, target)

    def _log_fs(self, message: str) -> None:
        assert self._log is not None  # noqa: S101
        self._log.append(message, source="fs")

    # -- Device commands --------------------------------------------------------

    def request_device(self, pid: int, device: str) -> bool:
        """Ask for exclusive use of ``device`` on behalf of ``pid``.

        Returns:
            True if granted, False if the request was silently denied.

        """
        with self._lock:
            self._require_running()
            assert self._devices is not None  # noqa: S101
            assert self._log is not None  # noqa: S101

            self._log.append(f"Process {pid} requested {device}", source="devices")
            granted = self._devices.request(pid, device)
            if not granted:
                self._log.append(
                    f"Request for {device} by process {pid} denied",
                    level=LogLevel.DEBUG,
                    source="devices",
                )
            return granted

    def release_device(self, device: str) -> None:
        """Free ``device`` regardless of who holds it."""
        with self._lock:
            self._require_running()
            assert self._devices is not None  # noqa: S101
            assert self._log is not None  # noqa: S101

            self._log.append(f"Released {device}", source="devices")
            self._devices.release(device)

    # -- Queries ----------------------------------------------------------------

    def processes(self) -> tuple[ProcessInfo, ...]:
        """Return snapshots of every live process, oldest first."""
        with self._lock:
            self._require_running()
            assert self._processes is not None  # noqa: S101
            return self._processes.snapshot()

    def memory_slots(self) -> tuple[int | None, ...]:
        """Return the slot array."""
        with self._lock:
            self._require_running()
            assert self._memory is not None  # noqa: S101
            return self._memory.slots()

    def filesystem_tree(self) -> Node:
        """Return a detached copy of the file system tree."""
        with self._lock:
            return self._fs().tree()

    def devices(self) -> dict[str, int | None]:
        """Return a copy of the device table."""
        with self._lock:
            self._require_running()
            assert self._devices is not None  # noqa: S101
            return self._devices.snapshot()

    def log_lines(self) -> tuple[str, ...]:
        """Return every event log message, oldest first."""
        with self._lock:
            self._require_running()
            assert self._log is not None  # noqa: S101
            return self._log.lines()

    def snapshot(self) -> dict[str, Any]:
        """Return the whole observable state as JSON-ready data."""
        with self._lock:
            self._require_running()
            assert self._memory is not None  # noqa: S101
            assert self._scheduler is not None  # noqa: S101
            assert self._log is not None  # noqa: S101
            return {
                "processes": [p.to_dict() for p in self.processes()],
                "memory": {
                    "slots": list(self._memory.slots()),
                    "last_access": {str(k): v for k, v in sorted(self._memory.recency().items())},
                },
                "filesystem": self._fs().to_dict(),
                "devices": self.devices(),
                "log": [str(e) for e in self._log.entries],
                "running": self._scheduler.running,
                "ticks": self._scheduler.ticks,
            }
