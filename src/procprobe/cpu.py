"""CPU counters from /proc/stat and CPU identity from /proc/cpuinfo."""

from __future__ import annotations

from pathlib import Path

from procprobe.errors import ParseError
from procprobe.models import CpuInfo, CpuSnapshot, CpuTimes
from procprobe.procfs import labeled_value, parse_float, parse_int, read_text

STAT_FILE = "stat"
CPUINFO_FILE = "cpuinfo"

CPU_FIELDS = (
    "user",
    "nice",
    "system",
    "idle",
    "iowait",
    "irq",
    "softirq",
    "steal",
    "guest",
    "guest_nice",
)

# Labels read from each cpuinfo record, in file order.
CPUINFO_LABELS = ("model name", "cpu MHz", "physical id", "siblings", "cpu cores")


def _parse_cpu_line(tokens: list[str], label: str, source: str) -> CpuTimes:
    if len(tokens) < len(CPU_FIELDS) + 1:
        raise ParseError(source, label, "has too few values")
    values = [parse_int(token, source, label) for token in tokens[1 : len(CPU_FIELDS) + 1]]
    return CpuTimes(*values)


def parse_stat(text: str, source: str = "/proc/stat", per_core: bool = True) -> CpuSnapshot:
    """
    Parse the `cpu` lines at the top of /proc/stat.

    The first line must be the aggregate `cpu` line. Per-core lines
    (`cpu0`, `cpu1`, ...) follow until the first line without the prefix.
    """
    lines = iter(text.splitlines())
    first = next(lines, "").split()
    if not first or first[0] != "cpu":
        raise ParseError(source, "cpu", "is not found")
    average = _parse_cpu_line(first, "cpu", source)

    cores: list[CpuTimes] = []
    if per_core:
        for line in lines:
            tokens = line.split()
            if not tokens or not tokens[0].startswith("cpu"):
                break
            cores.append(_parse_cpu_line(tokens, tokens[0], source))
        if not cores:
            raise ParseError(source, "cpuN", "is not found")

    return CpuSnapshot(average=average, cores=tuple(cores))


def read_cpu_snapshot(proc_root: Path, per_core: bool = True) -> CpuSnapshot:
    path = proc_root / STAT_FILE
    return parse_stat(read_text(path), str(path), per_core=per_core)


def parse_boot_time(text: str, source: str = "/proc/stat") -> int:
    """Return the `btime` value of /proc/stat (seconds since the epoch)."""
    for line in text.splitlines():
        tokens = line.split()
        if tokens and tokens[0] == "btime":
            if len(tokens) < 2:
                raise ParseError(source, "btime")
            return parse_int(tokens[1], source, "btime")
    raise ParseError(source, "btime", "is not found")


def read_boot_time(proc_root: Path) -> int:
    path = proc_root / STAT_FILE
    return parse_boot_time(read_text(path), str(path))


def parse_cpuinfo(text: str, source: str = "/proc/cpuinfo") -> list[CpuInfo]:
    """
    Parse /proc/cpuinfo into one CpuInfo per physical package.

    Records are blank-line delimited, one per logical processor. Within a
    record the labels in CPUINFO_LABELS are located in order. Logical
    processors of a package that was already completed are skipped; the
    MHz of every sibling is collected until the declared sibling count is
    reached.
    """
    lines = text.splitlines()
    count = len(lines)
    index = 0

    cpus: list[CpuInfo] = []
    completed: set[int] = set()
    pending_mhz: list[float] = []

    while True:
        values: dict[str, str] = {}
        physical_id = 0
        mhz = 0.0
        duplicate = False

        for label in CPUINFO_LABELS:
            while index < count and not lines[index].startswith(label):
                index += 1
            if index >= count:
                if values:
                    raise ParseError(source, label, "is not found")
                return cpus
            value = labeled_value(lines[index], label, source)
            index += 1

            if label == "cpu MHz":
                mhz = parse_float(value, source, label)
            elif label == "physical id":
                physical_id = parse_int(value, source, label)
                if physical_id in completed:
                    duplicate = True
                    break
                pending_mhz.append(mhz)
            else:
                values[label] = value

        if not duplicate:
            siblings = parse_int(values["siblings"], source, "siblings")
            cpu_cores = parse_int(values["cpu cores"], source, "cpu cores")
            if siblings == len(pending_mhz):
                cpus.append(
                    CpuInfo(
                        physical_id=physical_id,
                        model_name=values["model name"],
                        cpus_mhz=tuple(pending_mhz),
                        siblings=siblings,
                        cpu_cores=cpu_cores,
                    )
                )
                completed.add(physical_id)
                pending_mhz = []

        # Skip to the blank line that ends the record.
        while index < count and lines[index].strip():
            index += 1
        if index >= count:
            return cpus
        index += 1


def read_cpu_info(proc_root: Path) -> list[CpuInfo]:
    path = proc_root / CPUINFO_FILE
    return parse_cpuinfo(read_text(path), str(path))
