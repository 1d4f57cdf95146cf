"""Data models for procprobe."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


@dataclass(slots=True, frozen=True)
class CpuTimes:
    """Jiffie counters of one `cpu` line in /proc/stat."""

    user: int
    nice: int
    system: int
    idle: int
    iowait: int
    irq: int
    softirq: int
    steal: int
    guest: int
    guest_nice: int

    @property
    def idle_time(self) -> int:
        return self.idle + self.iowait

    @property
    def non_idle_time(self) -> int:
        return self.user + self.nice + self.system + self.irq + self.softirq + self.steal

    @property
    def total_time(self) -> int:
        return self.idle_time + self.non_idle_time


@dataclass(slots=True, frozen=True)
class CpuSnapshot:
    """Aggregate and per-core counters read at one instant."""

    average: CpuTimes
    cores: tuple[CpuTimes, ...]


@dataclass(slots=True, frozen=True)
class CpuInfo:
    """Static identity of one physical CPU package."""

    physical_id: int
    model_name: str
    cpus_mhz: tuple[float, ...]
    siblings: int
    cpu_cores: int


@dataclass(slots=True, frozen=True)
class MemoryStats:
    """Physical memory usage in bytes."""

    total: int
    used: int  # total - free - buffers - cache
    free: int
    shared: int
    buffers: int
    cache: int  # Cached + Slab - SUnreclaim
    available: int


@dataclass(slots=True, frozen=True)
class SwapStats:
    """Swap usage in bytes."""

    total: int
    used: int  # total - free - cache
    free: int
    cache: int


@dataclass(slots=True, frozen=True)
class MemorySnapshot:
    mem: MemoryStats
    swap: SwapStats


@dataclass(slots=True, frozen=True)
class NetworkInterfaceSnapshot:
    """Byte counters of one network interface. Identity is `name`."""

    name: str
    rx_bytes: int
    tx_bytes: int


@dataclass(slots=True, frozen=True)
class VolumeSnapshot:
    """I/O counters and occupancy of one mounted block device. Identity is `device`."""

    device: str
    read_bytes: int
    write_bytes: int
    size: int
    used: int
    mount_points: tuple[str, ...]


class ProcessState(Enum):
    """Process state codes from the third field of /proc/<pid>/stat."""

    RUNNING = "R"
    SLEEPING = "S"
    WAITING = "D"
    ZOMBIE = "Z"
    STOPPED = "T"
    TRACING_STOP = "t"
    PAGING_OR_WAKING = "W"
    DEAD = "X"
    WAKEKILL = "K"
    PARKED = "P"
    IDLE = "I"

    @classmethod
    def from_code(cls, code: str) -> "ProcessState | None":
        """Map a state code to a member, or None for unknown codes."""
        if code == "x":
            return cls.DEAD
        try:
            return cls(code)
        except ValueError:
            return None

    @property
    def label(self) -> str:
        if self is ProcessState.PAGING_OR_WAKING:
            return "Waking"
        return "".join(part.capitalize() for part in self.name.split("_"))


@dataclass(slots=True, frozen=True)
class ProcessSnapshot:
    """Immutable snapshot of a process state. Identity is `pid`."""

    pid: int
    ppid: int
    pgrp: int
    session: int
    real_uid: int
    effective_uid: int
    saved_uid: int
    fs_uid: int
    real_gid: int
    effective_gid: int
    saved_gid: int
    fs_gid: int
    state: ProcessState
    comm: str
    cmdline: str
    tty: str | None
    tpgid: int | None
    priority: int
    nice: int
    threads: int
    vsz: int  # Bytes
    rss: int  # Bytes
    shared: int  # Bytes
    rss_anon: int  # Bytes, rss - shared
    start_ticks: int
    start_time: datetime
    utime: int
    stime: int
    cutime: int
    cstime: int
    rsslim: int
    processor: int
    rt_priority: int

    @property
    def program(self) -> str:
        """Full command line, or the short command name for kernel threads."""
        return self.cmdline or self.comm


@dataclass(slots=True, frozen=True)
class ProcessTimes:
    """User and system jiffies of one process."""

    utime: int
    stime: int


@dataclass(slots=True, frozen=True)
class NetworkSpeed:
    """Receive/transmit rates in bytes per second."""

    interface: NetworkInterfaceSnapshot
    rx_rate: float
    tx_rate: float


@dataclass(slots=True, frozen=True)
class VolumeSpeed:
    """Read/write rates in bytes per second."""

    volume: VolumeSnapshot
    read_rate: float
    write_rate: float


@dataclass(slots=True, frozen=True)
class ProcessUsage:
    """A process with its CPU share (0.0 - 1.0), or None when not sampled."""

    process: ProcessSnapshot
    cpu_percent: float | None


@dataclass(slots=True, frozen=True)
class LoadAverage:
    one: float
    five: float
    fifteen: float


@dataclass(slots=True, frozen=True)
class HostInfo:
    """Static and slowly changing facts about the host."""

    hostname: str
    kernel_version: str
    uptime_seconds: float
    boot_time: datetime
    load_average: LoadAverage
    cpu_count: int
