"""Rates and utilization computed from two snapshots of the same kind.

Every function here is pure: it takes an earlier and a later reading and
returns new result records without touching its inputs. Readings are
correlated by identity (interface name, device name, pid) only.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from procprobe.models import (
    CpuSnapshot,
    CpuTimes,
    NetworkInterfaceSnapshot,
    NetworkSpeed,
    ProcessSnapshot,
    ProcessTimes,
    ProcessUsage,
    VolumeSnapshot,
    VolumeSpeed,
)


def _clamp01(value: float) -> float:
    return min(1.0, max(0.0, value))


def _tick_deltas(before: CpuTimes, after: CpuTimes) -> tuple[int, int]:
    """
    Return (Δbusy, Δidle) with each delta clamped at 0.

    iowait can go backwards, so a decreasing group counts as no ticks.
    """
    d_busy = max(0, after.non_idle_time - before.non_idle_time)
    d_idle = max(0, after.idle_time - before.idle_time)
    return d_busy, d_idle


def cpu_utilization(before: CpuTimes, after: CpuTimes) -> float:
    """
    Busy fraction of the time elapsed between two `cpu` readings.

    utilization = Δbusy / (Δbusy + Δidle), where idle includes iowait and
    each delta is clamped at 0. An interval with no ticks yields 0.0.
    """
    d_busy, d_idle = _tick_deltas(before, after)
    d_total = d_busy + d_idle
    if d_total <= 0:
        return 0.0
    return _clamp01(d_busy / d_total)


def average_utilization(before: CpuSnapshot, after: CpuSnapshot) -> float:
    return cpu_utilization(before.average, after.average)


def core_utilizations(before: CpuSnapshot, after: CpuSnapshot) -> list[float]:
    """Per-core utilization, paired by core index."""
    return [cpu_utilization(b, a) for b, a in zip(before.cores, after.cores)]


def total_cpu_ticks(before: CpuSnapshot, after: CpuSnapshot) -> int:
    """Jiffies elapsed on the aggregate line, with decreasing groups clamped at 0."""
    d_busy, d_idle = _tick_deltas(before.average, after.average)
    return d_busy + d_idle


def _rate(before: int, after: int, elapsed: float) -> float:
    if after < before:
        return 0.0
    return (after - before) / elapsed


def _check_elapsed(elapsed: float) -> None:
    if elapsed <= 0:
        raise ValueError(f"Elapsed time must be positive, got {elapsed!r}")


def network_speeds(
    before: Iterable[NetworkInterfaceSnapshot],
    after: Iterable[NetworkInterfaceSnapshot],
    elapsed: float,
) -> list[NetworkSpeed]:
    """
    Receive/transmit bytes per second for interfaces seen in both readings.

    Interfaces that disappeared by the second reading are dropped. The
    result follows the order of `after`.
    """
    _check_elapsed(elapsed)
    previous = {interface.name: interface for interface in before}
    speeds: list[NetworkSpeed] = []
    for interface in after:
        old = previous.get(interface.name)
        if old is None:
            continue
        speeds.append(
            NetworkSpeed(
                interface=interface,
                rx_rate=_rate(old.rx_bytes, interface.rx_bytes, elapsed),
                tx_rate=_rate(old.tx_bytes, interface.tx_bytes, elapsed),
            )
        )
    return speeds


def volume_speeds(
    before: Iterable[VolumeSnapshot],
    after: Iterable[VolumeSnapshot],
    elapsed: float,
) -> list[VolumeSpeed]:
    """Read/write bytes per second for devices seen in both readings."""
    _check_elapsed(elapsed)
    previous = {volume.device: volume for volume in before}
    speeds: list[VolumeSpeed] = []
    for volume in after:
        old = previous.get(volume.device)
        if old is None:
            continue
        speeds.append(
            VolumeSpeed(
                volume=volume,
                read_rate=_rate(old.read_bytes, volume.read_bytes, elapsed),
                write_rate=_rate(old.write_bytes, volume.write_bytes, elapsed),
            )
        )
    return speeds


def process_cpu_share(total_ticks: float, before: ProcessSnapshot, after: ProcessTimes) -> float:
    """
    Share of all CPU time spent by one process, in [0, 1].

    Intervals shorter than one tick are reported as 0 to avoid division
    noise.
    """
    if total_ticks < 1:
        return 0.0
    d_time = (after.utime - before.utime) + (after.stime - before.stime)
    return _clamp01(d_time / total_ticks)


def process_usages(
    processes: Iterable[ProcessSnapshot],
    times: Mapping[int, ProcessTimes],
    total_ticks: float,
) -> list[ProcessUsage]:
    """
    Pair each process with its CPU share.

    `times` holds the second reading per pid. A process without one
    exited between the readings and is left out rather than reported at 0.
    """
    usages: list[ProcessUsage] = []
    for process in processes:
        later = times.get(process.pid)
        if later is None:
            continue
        usages.append(ProcessUsage(process, process_cpu_share(total_ticks, process, later)))
    return usages
