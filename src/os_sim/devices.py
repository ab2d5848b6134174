"""Device manager — exclusive-access I/O devices.

The simulator has a small, fixed set of named devices (a keyboard and a
printer by default).  Each device is either available or held by
exactly one process.

- ``request(pid, name)`` grants the device only if nobody holds it.
  Otherwise the request is silently denied; there is no wait queue.
- ``release(name)`` frees the device no matter who held it.

Termination cleanup uses ``release_held_by(pid)``, which frees only the
devices that process actually held.
"""

from collections.abc import Iterable
from enum import StrEnum

from os_sim.config import DEFAULT_DEVICES


class DeviceState(StrEnum):
    """Whether a device can be granted right now."""

    AVAILABLE = "available"
    BUSY = "busy"


class DeviceManager:
    """The device table: device name → holding PID (or None)."""

    def __init__(self, names: Iterable[str] = DEFAULT_DEVICES) -> None:
        """Create the device table with every device available.

        Raises:
            ValueError: If a device name is repeated.

        """
        self._holders: dict[str, int | None] = {}
        for name in names:
            if name in self._holders:
                msg = f"Device '{name}' already registered"
                raise ValueError(msg)
            self._holders[name] = None

    def names(self) -> list[str]:
        """Return the device names in registration order."""
        return list(self._holders)

    def holder(self, name: str) -> int | None:
        """Return the PID holding ``name``, or None."""
        return self._holders.get(name)

    def status(self, name: str) -> DeviceState:
        """Return the state of a device.

        Raises:
            KeyError: If the device does not exist.

        """
        return DeviceState.AVAILABLE if self._holders[name] is None else DeviceState.BUSY

    def request(self, pid: int, name: str) -> bool:
        """Grant ``name`` to ``pid`` if it is free.

        Returns:
            True if granted.  False if the device is held (by anyone,
            including ``pid`` itself) or does not exist.

        """
        if name not in self._holders or self._holders[name] is not None:
            return False
        self._holders[name] = pid
        return True

    def release(self, name: str) -> int | None:
        """Free a device unconditionally.

        Returns:
            The PID that held it, or None.

        """
        if name not in self._holders:
            return None
        previous = self._holders[name]
        self._holders[name] = None
        return previous

    def release_held_by(self, pid: int) -> list[str]:
        """Free every device held by ``pid`` and return their names."""
        released = [name for name, holder in self._holders.items() if holder == pid]
        for name in released:
            self._holders[name] = None
        return released

    def snapshot(self) -> dict[str, int | None]:
        """Return a copy of the device table."""
        return dict(self._holders)
