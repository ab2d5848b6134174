"""Simulator configuration — the knobs fixed at boot.

A real kernel reads its configuration from the boot image before any
subsystem starts.  Ours is a frozen dataclass: once the kernel boots
with a config, the number of memory slots and the set of devices never
change for the life of the run.

Bad values are programmer errors, so they fail fast in ``__post_init__``
rather than surfacing later as odd behaviour.
"""

from dataclasses import dataclass

from os_sim.clock import DEFAULT_TICK_INTERVAL

DEFAULT_MEMORY_SLOTS = 16
MIN_MEMORY_SLOTS = 1
MAX_MEMORY_SLOTS = 64
DEFAULT_DEVICES = ("keyboard", "printer")
# Informational process size in MB (inclusive bounds).
DEFAULT_MEMORY_SIZE_RANGE = (50, 149)


def validate_slot_count(slots: int) -> None:
    """Raise ValueError unless ``slots`` is within the supported range."""
    if not MIN_MEMORY_SLOTS <= slots <= MAX_MEMORY_SLOTS:
        msg = f"Memory slot count must be between {MIN_MEMORY_SLOTS} and {MAX_MEMORY_SLOTS}, got {slots}"
        raise ValueError(msg)


@dataclass(frozen=True)
class SimulatorConfig:
    """Boot-time configuration for a kernel.

    Attributes:
        memory_slots: Number of slots in the memory array.
        tick_interval: Seconds between scheduler ticks.
        devices: Names of the exclusive-access devices.
        memory_size_range: Inclusive (low, high) bounds for a new
            process's informational memory size.

    """

    memory_slots: int = DEFAULT_MEMORY_SLOTS
    tick_interval: float = DEFAULT_TICK_INTERVAL
    devices: tuple[str, ...] = DEFAULT_DEVICES
    memory_size_range: tuple[int, int] = DEFAULT_MEMORY_SIZE_RANGE

    def __post_init__(self) -> None:
        """Reject configurations the simulator cannot run with."""
        validate_slot_count(self.memory_slots)
        if self.tick_interval <= 0:
            msg = f"Tick interval must be positive, got {self.tick_interval}"
            raise ValueError(msg)
        if not self.devices:
            msg = "At least one device is required"
            raise ValueError(msg)
        if len(set(self.devices)) != len(self.devices):
            msg = f"Duplicate device names: {self.devices}"
            raise ValueError(msg)
        low, high = self.memory_size_range
        if low <= 0 or high < low:
            msg = f"Invalid memory size range: {self.memory_size_range}"
            raise ValueError(msg)
