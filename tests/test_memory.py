"""Tests for /proc/meminfo parsing."""

import pytest

from procprobe.errors import ParseError, ResourceUnavailableError
from procprobe.memory import parse_meminfo

from conftest import MEMINFO

KB = 1024


def test_values_are_scaled_to_bytes():
    """Test kB values are multiplied by 1024."""
    snapshot = parse_meminfo(MEMINFO)

    assert snapshot.mem.total == 16_000_000 * KB
    assert snapshot.mem.free == 4_000_000 * KB
    assert snapshot.mem.available == 9_000_000 * KB
    assert snapshot.mem.buffers == 500_000 * KB
    assert snapshot.mem.shared == 200_000 * KB


def test_cache_includes_reclaimable_slab():
    """Test cache = Cached + Slab - SUnreclaim."""
    snapshot = parse_meminfo(MEMINFO)

    assert snapshot.mem.cache == (3_000_000 + 800_000 - 200_000) * KB


def test_used_memory_identity():
    """Test used + free + buffers + cache == total."""
    mem = parse_meminfo(MEMINFO).mem

    assert mem.used + mem.free + mem.buffers + mem.cache == mem.total
    assert mem.used == 7_900_000 * KB


def test_swap():
    """Test swap used = total - free - cache."""
    swap = parse_meminfo(MEMINFO).swap

    assert swap.total == 2_000_000 * KB
    assert swap.free == 1_500_000 * KB
    assert swap.cache == 10_000 * KB
    assert swap.used == swap.total - swap.free - swap.cache


def test_cached_is_not_confused_with_swap_cached():
    """Test the `Cached` label matches exactly, not `SwapCached`."""
    text = MEMINFO.replace("Cached:          3000000 kB\n", "")

    with pytest.raises(ParseError):
        parse_meminfo(text)


def test_missing_label():
    """Test a missing label names the label."""
    text = MEMINFO.replace("SUnreclaim:       200000 kB\n", "")

    with pytest.raises(ParseError) as excinfo:
        parse_meminfo(text)
    assert excinfo.value.field == "SUnreclaim"


def test_non_numeric_value():
    """Test a non-numeric value names the label."""
    text = MEMINFO.replace("MemFree:         4000000 kB", "MemFree:         lots kB")

    with pytest.raises(ParseError) as excinfo:
        parse_meminfo(text)
    assert excinfo.value.field == "MemFree"


def test_reader(reader):
    """Test the reader parses the meminfo file of the proc root."""
    assert reader.memory().mem.total == 16_000_000 * KB


def test_missing_file(reader, fake_proc):
    """Test a missing meminfo file is an unavailable resource."""
    (fake_proc.root / "meminfo").unlink()

    with pytest.raises(ResourceUnavailableError):
        reader.memory()


@pytest.mark.parametrize("line", ["MemTotal:       16000000", "MemTotal:       16000000 MB"])
def test_unit_must_be_kb(line):
    """Test a value without the kB unit is rejected."""
    text = MEMINFO.replace("MemTotal:       16000000 kB", line)

    with pytest.raises(ParseError) as excinfo:
        parse_meminfo(text)
    assert excinfo.value.field == "MemTotal"
