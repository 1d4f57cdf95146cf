"""Host facts: hostname, kernel version, uptime, load average, CPU count."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import psutil

from procprobe.cpu import read_boot_time
from procprobe.errors import ParseError
from procprobe.models import HostInfo, LoadAverage
from procprobe.procfs import parse_float, read_text

HOSTNAME_FILE = "sys/kernel/hostname"
VERSION_FILE = "version"
UPTIME_FILE = "uptime"
LOADAVG_FILE = "loadavg"


def parse_kernel_version(text: str, source: str = "/proc/version") -> str:
    """Return the release from `Linux version <release> ...`."""
    tokens = text.split()
    if len(tokens) < 1 or tokens[0] != "Linux":
        raise ParseError(source, "Linux", "is not the first token")
    if len(tokens) < 2 or tokens[1] != "version":
        raise ParseError(source, "version", "is not the second token")
    if len(tokens) < 3:
        raise ParseError(source, "kernel version", "is not found")
    return tokens[2]


def parse_uptime(text: str, source: str = "/proc/uptime") -> float:
    tokens = text.split()
    if not tokens:
        raise ParseError(source, "uptime", "is not found")
    return parse_float(tokens[0], source, "uptime")


def parse_loadavg(text: str, source: str = "/proc/loadavg") -> LoadAverage:
    tokens = text.split()
    names = ("one", "five", "fifteen")
    if len(tokens) < len(names):
        raise ParseError(source, names[len(tokens)], "is not found")
    one, five, fifteen = (parse_float(tokens[i], source, name) for i, name in enumerate(names))
    return LoadAverage(one=one, five=five, fifteen=fifteen)


def read_hostname(proc_root: Path) -> str:
    return read_text(proc_root / HOSTNAME_FILE).rstrip("\n")


def read_kernel_version(proc_root: Path) -> str:
    path = proc_root / VERSION_FILE
    return parse_kernel_version(read_text(path), str(path))


def read_uptime(proc_root: Path) -> float:
    path = proc_root / UPTIME_FILE
    return parse_uptime(read_text(path), str(path))


def read_load_average(proc_root: Path) -> LoadAverage:
    path = proc_root / LOADAVG_FILE
    return parse_loadavg(read_text(path), str(path))


def cpu_count() -> int:
    """Number of logical CPUs, the value shared with benchmark tooling."""
    return psutil.cpu_count(logical=True) or 1


def read_host_info(proc_root: Path) -> HostInfo:
    return HostInfo(
        hostname=read_hostname(proc_root),
        kernel_version=read_kernel_version(proc_root),
        uptime_seconds=read_uptime(proc_root),
        boot_time=datetime.fromtimestamp(read_boot_time(proc_root), tz=timezone.utc),
        load_average=read_load_average(proc_root),
        cpu_count=cpu_count(),
    )
