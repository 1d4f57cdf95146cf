"""Shared fixtures: a fake /proc tree written under tmp_path."""

from datetime import datetime, timezone
from pathlib import Path
from types import SimpleNamespace

import pytest

from procprobe.models import ProcessSnapshot, ProcessState
from procprobe.reader import SnapshotReader

BOOT_TIME = 1_700_000_000
TICKS = 100
PAGE = 4096

MEMINFO = """\
MemTotal:       16000000 kB
MemFree:         4000000 kB
MemAvailable:    9000000 kB
Buffers:          500000 kB
Cached:          3000000 kB
SwapCached:        10000 kB
Active:          6000000 kB
Inactive:        3000000 kB
SwapTotal:       2000000 kB
SwapFree:        1500000 kB
Dirty:               100 kB
Shmem:            200000 kB
Slab:             800000 kB
SReclaimable:     600000 kB
SUnreclaim:       200000 kB
"""

NET_DEV_HEADER = """\
Inter-|   Receive                                                |  Transmit
 face |bytes    packets errs drop fifo frame compressed multicast|bytes    packets errs drop fifo colls carrier compressed
"""

CPUINFO_RECORD = """\
processor\t: {processor}
vendor_id\t: GenuineIntel
cpu family\t: 6
model\t\t: 142
model name\t: {model}
stepping\t: 10
cpu MHz\t\t: {mhz}
cache size\t: 8192 KB
physical id\t: {physical_id}
siblings\t: {siblings}
core id\t\t: {core_id}
cpu cores\t: {cores}
flags\t\t: fpu vme de pse
"""


def cpu_line(label: str, values: tuple[int, ...]) -> str:
    return f"{label} " + " ".join(str(v) for v in values)


def stat_line(
    pid: int,
    comm: str = "proc",
    state: str = "S",
    ppid: int = 1,
    tty_nr: int = 0,
    tpgid: int = -1,
    utime: int = 0,
    stime: int = 0,
    priority: int = 20,
    nice: int = 0,
    threads: int = 1,
    starttime: int = 1000,
    vsize: int = 10_000_000,
    rss: int = 100,
    processor: int = 0,
) -> str:
    fields = [
        state, ppid, pid, pid, tty_nr, tpgid, 4194560, 10, 0, 0, 0,
        utime, stime, 0, 0, priority, nice, threads, 0, starttime,
        vsize, rss, 18446744073709551615,
        1, 1, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 17,
        processor, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0,
    ]
    return f"{pid} ({comm}) " + " ".join(str(f) for f in fields) + "\n"


def make_process(pid: int, **overrides) -> ProcessSnapshot:
    """Build a ProcessSnapshot with neutral defaults."""
    values = dict(
        pid=pid,
        ppid=1,
        pgrp=pid,
        session=pid,
        real_uid=1000,
        effective_uid=1000,
        saved_uid=1000,
        fs_uid=1000,
        real_gid=1000,
        effective_gid=1000,
        saved_gid=1000,
        fs_gid=1000,
        state=ProcessState.SLEEPING,
        comm="proc",
        cmdline="",
        tty=None,
        tpgid=None,
        priority=20,
        nice=0,
        threads=1,
        vsz=0,
        rss=0,
        shared=0,
        rss_anon=0,
        start_ticks=0,
        start_time=datetime(2024, 1, 1, tzinfo=timezone.utc),
        utime=0,
        stime=0,
        cutime=0,
        cstime=0,
        rsslim=0,
        processor=0,
        rt_priority=0,
    )
    values.update(overrides)
    return ProcessSnapshot(**values)


class FakeProc:
    """Writes procfs-shaped files below a temporary directory."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.statvfs_results: dict[str, SimpleNamespace] = {}
        self.set_cpu((100, 0, 50, 800, 50, 0, 0, 0, 0, 0), [(50, 0, 25, 400, 25, 0, 0, 0, 0, 0)] * 2)
        self.write("meminfo", MEMINFO)
        self.set_networks({"lo": (1000, 1000), "eth0": (5000, 2000)})
        self.write("mounts", "")
        self.write("diskstats", "")

    def write(self, relative: str, content: str) -> Path:
        path = self.root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        return path

    def set_cpu(self, average: tuple[int, ...], cores: list[tuple[int, ...]]) -> None:
        lines = [cpu_line("cpu", average)]
        lines += [cpu_line(f"cpu{i}", core) for i, core in enumerate(cores)]
        lines += ["intr 12345 0 0", "ctxt 6789", f"btime {BOOT_TIME}", "processes 4242"]
        self.write("stat", "\n".join(lines) + "\n")

    def set_networks(self, counters: dict[str, tuple[int, int]]) -> None:
        lines = []
        for name, (rx, tx) in counters.items():
            values = [rx, 10, 0, 0, 0, 0, 0, 0, tx, 20, 0, 0, 0, 0, 0, 0]
            lines.append(f"{name:>6}: " + " ".join(str(v) for v in values))
        self.write("net/dev", NET_DEV_HEADER + "\n".join(lines) + "\n")

    def set_volumes(self, mounts: str, diskstats: str) -> None:
        self.write("mounts", mounts)
        self.write("diskstats", diskstats)

    def add_statvfs(self, mount_point: str, bsize: int, blocks: int, bavail: int) -> None:
        self.statvfs_results[mount_point] = SimpleNamespace(
            f_bsize=bsize, f_blocks=blocks, f_bavail=bavail
        )

    def statvfs(self, path: str) -> SimpleNamespace:
        try:
            return self.statvfs_results[path]
        except KeyError:
            raise FileNotFoundError(2, "No such file or directory", path) from None

    def add_process(
        self,
        pid: int,
        comm: str = "proc",
        cmdline: str = "",
        uids: tuple[int, int, int, int] = (1000, 1000, 1000, 1000),
        gids: tuple[int, int, int, int] = (1000, 1000, 1000, 1000),
        shared: int = 40,
        **stat: int | str,
    ) -> None:
        base = f"{pid}"
        status = (
            f"Name:\t{comm}\nUmask:\t0022\nState:\tS (sleeping)\nTgid:\t{pid}\nPid:\t{pid}\n"
            f"PPid:\t1\nUid:\t{uids[0]}\t{uids[1]}\t{uids[2]}\t{uids[3]}\n"
            f"Gid:\t{gids[0]}\t{gids[1]}\t{gids[2]}\t{gids[3]}\nThreads:\t1\n"
        )
        self.write(f"{base}/status", status)
        self.write(f"{base}/stat", stat_line(pid, comm=comm, **stat))
        self.write(f"{base}/statm", f"2441 {stat.get('rss', 100)} {shared} 100 0 300 0\n")
        self.write(f"{base}/cmdline", "\x00".join(cmdline.split()) + ("\x00" if cmdline else ""))

    def set_process_times(self, pid: int, utime: int, stime: int, comm: str = "proc") -> None:
        self.write(f"{pid}/stat", stat_line(pid, comm=comm, utime=utime, stime=stime))

    def remove_process(self, pid: int) -> None:
        base = self.root / str(pid)
        for child in base.iterdir():
            child.unlink()
        base.rmdir()


@pytest.fixture
def fake_proc(tmp_path: Path) -> FakeProc:
    return FakeProc(tmp_path / "proc")


@pytest.fixture
def reader(fake_proc: FakeProc) -> SnapshotReader:
    return SnapshotReader(
        fake_proc.root,
        statvfs=fake_proc.statvfs,
        ticks_per_second=TICKS,
        page_bytes=PAGE,
    )
