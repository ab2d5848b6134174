"""os_sim — a teaching simulator of a kernel's core resource managers.

Re-exports public symbols so callers can write::

    from os_sim import Kernel, SimulatorConfig
"""

from os_sim.config import SimulatorConfig
from os_sim.devices import DeviceManager, DeviceState
from os_sim.filesystem import FileSystem, Node, NodeType
from os_sim.kernel import Kernel, KernelState
from os_sim.logging import EventLog, LogEntry, LogLevel
from os_sim.memory import Allocation, MemoryManager
from os_sim.process import Process, ProcessInfo, ProcessState, ProcessTable
from os_sim.scheduler import OldestFirstPolicy, Scheduler, TickResult

__all__ = [
    "Allocation",
    "DeviceManager",
    "DeviceState",
    "EventLog",
    "FileSystem",
    "Kernel",
    "KernelState",
    "LogEntry",
    "LogLevel",
    "MemoryManager",
    "Node",
    "NodeType",
    "OldestFirstPolicy",
    "Process",
    "ProcessInfo",
    "ProcessState",
    "ProcessTable",
    "Scheduler",
    "SimulatorConfig",
    "TickResult",
]
