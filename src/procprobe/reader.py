"""Single entry point over the individual procfs parsers."""

from __future__ import annotations

import os
from collections.abc import Iterable
from pathlib import Path

from procprobe.config import DEFAULT_PROC_ROOT
from procprobe.cpu import read_cpu_info, read_cpu_snapshot
from procprobe.host import read_host_info
from procprobe.memory import read_memory_snapshot
from procprobe.models import (
    CpuInfo,
    CpuSnapshot,
    HostInfo,
    MemorySnapshot,
    NetworkInterfaceSnapshot,
    ProcessSnapshot,
    ProcessTimes,
    VolumeSnapshot,
)
from procprobe.network import read_network_snapshots
from procprobe.process import ProcessReader
from procprobe.volume import StatvfsFunc, read_volume_snapshots


class SnapshotReader:
    """
    Reads fresh snapshots of every resource kind.

    Each call reads the kernel files anew and returns records owned by the
    caller; nothing is cached between calls.
    """

    def __init__(
        self,
        proc_root: Path | str = DEFAULT_PROC_ROOT,
        statvfs: StatvfsFunc = os.statvfs,
        ticks_per_second: int | None = None,
        page_bytes: int | None = None,
    ) -> None:
        self._proc_root = Path(proc_root)
        self._statvfs = statvfs
        self._processes = ProcessReader(self._proc_root, ticks_per_second, page_bytes)

    @property
    def proc_root(self) -> Path:
        return self._proc_root

    def cpu(self, per_core: bool = True) -> CpuSnapshot:
        return read_cpu_snapshot(self._proc_root, per_core=per_core)

    def cpu_info(self) -> list[CpuInfo]:
        return read_cpu_info(self._proc_root)

    def memory(self) -> MemorySnapshot:
        return read_memory_snapshot(self._proc_root)

    def networks(self) -> list[NetworkInterfaceSnapshot]:
        return read_network_snapshots(self._proc_root)

    def volumes(self) -> list[VolumeSnapshot]:
        return read_volume_snapshots(self._proc_root, self._statvfs)

    def processes(self, pid: int | None = None) -> list[ProcessSnapshot]:
        return self._processes.read_all(pid)

    def process_times(self, pid: int) -> ProcessTimes:
        return self._processes.read_times(pid)

    def process_times_for(self, pids: Iterable[int]) -> dict[int, ProcessTimes]:
        return self._processes.read_times_for(pids)

    def host(self) -> HostInfo:
        return read_host_info(self._proc_root)
