"""Two-phase sampling: read, wait the interval, read again, compute."""

from __future__ import annotations

import time
from collections.abc import Callable

from procprobe import delta
from procprobe.config import DEFAULT_INTERVAL, floor_interval
from procprobe.models import NetworkSpeed, ProcessUsage, VolumeSpeed
from procprobe.ranking import ProcessFilter, rank_and_truncate
from procprobe.reader import SnapshotReader


class Sampler:
    """
    Derives utilization and rates from two readings taken `interval` apart.

    Every method blocks the calling thread for one interval. The sleep and
    clock functions are injectable so tests can change the fake kernel
    files between the two readings.
    """

    def __init__(
        self,
        reader: SnapshotReader,
        interval: float = DEFAULT_INTERVAL,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._reader = reader
        self._interval = floor_interval(interval)
        self._sleep = sleep
        self._clock = clock

    @property
    def reader(self) -> SnapshotReader:
        return self._reader

    @property
    def interval(self) -> float:
        """Get the sampling interval in seconds."""
        return self._interval

    @interval.setter
    def interval(self, value: float) -> None:
        self._interval = floor_interval(value)

    def _elapsed_since(self, start: float) -> float:
        elapsed = self._clock() - start
        return elapsed if elapsed > 0 else self._interval

    def cpu_usage(self) -> float:
        """Aggregate CPU utilization in [0, 1]."""
        before = self._reader.cpu(per_core=False)
        self._sleep(self._interval)
        after = self._reader.cpu(per_core=False)
        return delta.average_utilization(before, after)

    def cpu_core_usage(self) -> list[float]:
        """Utilization of each logical core in [0, 1]."""
        before = self._reader.cpu()
        self._sleep(self._interval)
        after = self._reader.cpu()
        return delta.core_utilizations(before, after)

    def network_speeds(self) -> list[NetworkSpeed]:
        before = self._reader.networks()
        start = self._clock()
        self._sleep(self._interval)
        after = self._reader.networks()
        return delta.network_speeds(before, after, self._elapsed_since(start))

    def volume_speeds(self) -> list[VolumeSpeed]:
        before = self._reader.volumes()
        start = self._clock()
        self._sleep(self._interval)
        after = self._reader.volumes()
        return delta.volume_speeds(before, after, self._elapsed_since(start))

    def process_usage(self, process_filter: ProcessFilter | None = None) -> list[ProcessUsage]:
        """
        CPU share of every matching process over one interval.

        Processes that exit before the second reading are omitted.
        """
        process_filter = process_filter or ProcessFilter()
        processes = process_filter.apply(self._reader.processes(process_filter.pid))

        cpu_before = self._reader.cpu(per_core=False)
        self._sleep(self._interval)
        cpu_after = self._reader.cpu(per_core=False)
        total_ticks = delta.total_cpu_ticks(cpu_before, cpu_after)

        times = self._reader.process_times_for(process.pid for process in processes)
        return delta.process_usages(processes, times, total_ticks)

    def process_view(
        self,
        process_filter: ProcessFilter | None = None,
        top: int | None = None,
        only_information: bool = False,
    ) -> list[ProcessUsage]:
        """
        Filtered, ranked and truncated process list.

        In information-only mode no CPU sampling is done, the call does not
        block, and every entry has `cpu_percent` set to None.
        """
        if only_information:
            process_filter = process_filter or ProcessFilter()
            processes = process_filter.apply(self._reader.processes(process_filter.pid))
            usages = [ProcessUsage(process, None) for process in processes]
        else:
            usages = self.process_usage(process_filter)
        return rank_and_truncate(usages, top=top, only_information=only_information)
