"""Memory and swap usage from /proc/meminfo."""

from __future__ import annotations

from pathlib import Path

from procprobe.errors import ParseError
from procprobe.models import MemorySnapshot, MemoryStats, SwapStats
from procprobe.procfs import parse_int, read_text

MEMINFO_FILE = "meminfo"

# Searched in this order, which is the order the kernel prints them.
MEMINFO_LABELS = (
    "MemTotal",
    "MemFree",
    "MemAvailable",
    "Buffers",
    "Cached",
    "SwapCached",
    "SwapTotal",
    "SwapFree",
    "Shmem",
    "Slab",
    "SUnreclaim",
)


def parse_meminfo(text: str, source: str = "/proc/meminfo") -> MemorySnapshot:
    """Parse the labeled kB counters of /proc/meminfo into bytes."""
    lines = text.splitlines()
    index = 0
    values: dict[str, int] = {}

    for label in MEMINFO_LABELS:
        while True:
            if index >= len(lines):
                raise ParseError(source, label, "is not found")
            name, sep, rest = lines[index].partition(":")
            index += 1
            if name.strip() != label:
                continue
            tokens = rest.split()
            if not sep or not tokens:
                raise ParseError(source, label)
            if tokens[1:] != ["kB"]:
                raise ParseError(source, label, "is not in kB")
            values[label] = parse_int(tokens[0], source, label) * 1024
            break

    total = values["MemTotal"]
    free = values["MemFree"]
    buffers = values["Buffers"]
    cache = values["Cached"] + values["Slab"] - values["SUnreclaim"]

    swap_total = values["SwapTotal"]
    swap_free = values["SwapFree"]
    swap_cache = values["SwapCached"]

    return MemorySnapshot(
        mem=MemoryStats(
            total=total,
            used=total - free - buffers - cache,
            free=free,
            shared=values["Shmem"],
            buffers=buffers,
            cache=cache,
            available=values["MemAvailable"],
        ),
        swap=SwapStats(
            total=swap_total,
            used=swap_total - swap_free - swap_cache,
            free=swap_free,
            cache=swap_cache,
        ),
    )


def read_memory_snapshot(proc_root: Path) -> MemorySnapshot:
    path = proc_root / MEMINFO_FILE
    return parse_meminfo(read_text(path), str(path))
