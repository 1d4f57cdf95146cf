"""Interactive-mode sampling loop for procprobe."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from queue import Queue

from procprobe import delta
from procprobe.config import DEFAULT_INTERVAL, floor_interval
from procprobe.errors import ProbeError
from procprobe.models import (
    MemorySnapshot,
    NetworkSpeed,
    ProcessUsage,
    VolumeSpeed,
)
from procprobe.ranking import ProcessFilter, rank_and_truncate
from procprobe.reader import SnapshotReader

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SystemReport:
    """Everything sampled over one interval."""

    cpu_usage: float
    cpu_core_usage: list[float]
    memory: MemorySnapshot
    networks: list[NetworkSpeed]
    volumes: list[VolumeSpeed]
    processes: list[ProcessUsage]
    elapsed_seconds: float


class Monitor:
    """
    Samples every resource kind on one daemon thread and queues reports.

    All first readings are taken together, the thread waits one interval,
    then all second readings are taken, so a full report costs a single
    interval. A failed cycle is logged and skipped; the loop keeps going.
    """

    def __init__(
        self,
        update_queue: Queue[SystemReport],
        reader: SnapshotReader | None = None,
        interval: float = DEFAULT_INTERVAL,
        process_filter: ProcessFilter | None = None,
        top: int | None = None,
    ) -> None:
        """
        Initialize the Monitor.

        Args:
            update_queue: Thread-safe queue to push reports to.
            reader: Snapshot reader; defaults to one over /proc.
            interval: Sampling interval in seconds, floored to the minimum.
            process_filter: Restricts the process list.
            top: Maximum number of processes per report.
        """
        self._queue = update_queue
        self._reader = reader or SnapshotReader()
        self._interval = floor_interval(interval)
        self._process_filter = process_filter or ProcessFilter()
        self._top = top
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def interval(self) -> float:
        """Get the current sampling interval."""
        return self._interval

    @interval.setter
    def interval(self, value: float) -> None:
        """Set the sampling interval."""
        self._interval = floor_interval(value)

    @property
    def is_running(self) -> bool:
        """Check if the monitor thread is running."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the monitoring thread."""
        if self.is_running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._poll_loop,
            daemon=True,
            name="Monitor",
        )
        self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        """
        Stop the monitoring thread.

        Args:
            timeout: How long to wait for thread to stop (seconds).
        """
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None

    def _poll_loop(self) -> None:
        """Main sampling loop running in the background thread."""
        while not self._stop_event.is_set():
            try:
                report = self.collect_report()
            except ProbeError as exc:
                logger.warning("Skipping sampling cycle: %s", exc)
                self._stop_event.wait(timeout=self._interval)
                continue
            if report is not None:
                self._queue.put(report)

    def collect_report(self) -> SystemReport | None:
        """
        Sample every resource kind over one interval.

        Returns None if the monitor was stopped during the wait.
        """
        reader = self._reader
        processes = self._process_filter.apply(reader.processes(self._process_filter.pid))
        cpu_before = reader.cpu()
        networks_before = reader.networks()
        volumes_before = reader.volumes()
        start = time.monotonic()

        if self._stop_event.wait(timeout=self._interval):
            return None

        cpu_after = reader.cpu()
        networks_after = reader.networks()
        volumes_after = reader.volumes()
        elapsed = max(time.monotonic() - start, 1e-6)
        memory = reader.memory()

        times = reader.process_times_for(process.pid for process in processes)
        usages = delta.process_usages(processes, times, delta.total_cpu_ticks(cpu_before, cpu_after))

        return SystemReport(
            cpu_usage=delta.average_utilization(cpu_before, cpu_after),
            cpu_core_usage=delta.core_utilizations(cpu_before, cpu_after),
            memory=memory,
            networks=delta.network_speeds(networks_before, networks_after, elapsed),
            volumes=delta.volume_speeds(volumes_before, volumes_after, elapsed),
            processes=rank_and_truncate(usages, top=self._top),
            elapsed_seconds=elapsed,
        )
