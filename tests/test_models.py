"""Tests for procprobe data models."""

import dataclasses

import pytest

from procprobe.models import (
    CpuTimes,
    MemoryStats,
    NetworkInterfaceSnapshot,
    ProcessUsage,
)

from conftest import make_process


def test_cpu_times_totals():
    """Test idle counts iowait and the total leaves out guest time."""
    times = CpuTimes(
        user=10, nice=1, system=5, idle=100, iowait=4,
        irq=2, softirq=3, steal=1, guest=7, guest_nice=2,
    )

    assert times.idle_time == 104
    assert times.non_idle_time == 22
    assert times.total_time == 126


def test_process_snapshot_is_frozen():
    """Test that ProcessSnapshot is immutable (frozen)."""
    snapshot = make_process(1)

    with pytest.raises(dataclasses.FrozenInstanceError):
        snapshot.pid = 999


def test_process_snapshot_uses_slots():
    """Test that ProcessSnapshot uses __slots__ for memory efficiency."""
    snapshot = make_process(1)

    # Slots-based dataclasses don't have __dict__
    assert not hasattr(snapshot, "__dict__")


def test_program_falls_back_to_comm():
    """Test the display program is the command line when there is one."""
    assert make_process(1, comm="bash", cmdline="-bash").program == "-bash"
    assert make_process(2, comm="kswapd0").program == "kswapd0"


def test_snapshots_compare_by_value():
    """Test equal readings are equal records."""
    assert NetworkInterfaceSnapshot("eth0", 1, 2) == NetworkInterfaceSnapshot("eth0", 1, 2)
    assert MemoryStats(1, 2, 3, 4, 5, 6, 7) != MemoryStats(1, 2, 3, 4, 5, 6, 8)


def test_process_usage_without_cpu():
    """Test information-only usages carry no CPU share."""
    usage = ProcessUsage(make_process(1), None)

    assert usage.cpu_percent is None
    assert not hasattr(usage, "__dict__")
