"""Per-process snapshots from /proc/<pid>/{status,stat,statm,cmdline}."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from procprobe.cpu import read_boot_time
from procprobe.errors import ParseError, ResourceUnavailableError
from procprobe.models import ProcessSnapshot, ProcessState, ProcessTimes
from procprobe.procfs import clock_ticks, page_size, parse_int, read_text

logger = logging.getLogger(__name__)

# Device majors from the kernel's devices.txt.
TTY_MAJOR = 4  # tty0-63 virtual consoles, ttyS0-... serial ports
TTY_SERIAL_MINOR_OFFSET = 64
PTS_MAJORS = range(136, 144)  # Unix98 PTY slaves

# Zero-based positions in /proc/<pid>/stat after the `(comm)` field.
STAT_FIELDS = {
    "state": 0,
    "ppid": 1,
    "pgrp": 2,
    "session": 3,
    "tty_nr": 4,
    "tpgid": 5,
    "utime": 11,
    "stime": 12,
    "cutime": 13,
    "cstime": 14,
    "priority": 15,
    "nice": 16,
    "num_threads": 17,
    "starttime": 19,
    "vsize": 20,
    "rss": 21,
    "rsslim": 22,
    "processor": 36,
    "rt_priority": 37,
}
_STAT_MIN_FIELDS = max(STAT_FIELDS.values()) + 1

STATM_SHARED_FIELD = 2


@dataclass(slots=True, frozen=True)
class Credentials:
    """Real, effective, saved set and filesystem ids from the status file."""

    real_uid: int
    effective_uid: int
    saved_uid: int
    fs_uid: int
    real_gid: int
    effective_gid: int
    saved_gid: int
    fs_gid: int


def decode_tty(tty_nr: int) -> str | None:
    """
    Name the controlling terminal packed in the `tty_nr` stat field.

    The major number is bits 8-15; the minor is bits 0-7 combined with
    bits 20-31 shifted down to start at bit 8.
    """
    major = (tty_nr >> 8) & 0xFF
    minor = ((tty_nr >> 20) << 8) | (tty_nr & 0xFF)
    if major == TTY_MAJOR:
        if minor < TTY_SERIAL_MINOR_OFFSET:
            return f"tty{minor}"
        return f"ttyS{minor - TTY_SERIAL_MINOR_OFFSET}"
    if major in PTS_MAJORS:
        return f"pts/{minor}"
    return None


def _id_line(tokens: list[str], label: str, source: str) -> tuple[int, int, int, int]:
    names = ("real", "effective", "saved_set", "fs")
    if len(tokens) < len(names):
        raise ParseError(source, f"{names[len(tokens)]}_{label.lower()}")
    return tuple(  # type: ignore[return-value]
        parse_int(tokens[i], source, f"{name}_{label.lower()}") for i, name in enumerate(names)
    )


def parse_status(text: str, source: str = "status") -> Credentials:
    """Read the Uid and Gid lines of /proc/<pid>/status."""
    ids: dict[str, tuple[int, int, int, int]] = {}
    for line in text.splitlines():
        label, sep, rest = line.partition(":")
        if sep and label in ("Uid", "Gid"):
            ids[label] = _id_line(rest.split(), label, source)
            if len(ids) == 2:
                break
    for label in ("Uid", "Gid"):
        if label not in ids:
            raise ParseError(source, label.lower(), "is not found")
    uid, gid = ids["Uid"], ids["Gid"]
    return Credentials(*uid, *gid)


def _split_stat(text: str, source: str) -> tuple[str, list[str]]:
    """Return the command name and the fields that follow it."""
    start = text.find("(")
    end = text.rfind(")")
    if start < 0 or end < start:
        raise ParseError(source, "comm")
    return text[start + 1 : end], text[end + 1 :].split()


def _stat_field(fields: list[str], name: str, source: str) -> int:
    return parse_int(fields[STAT_FIELDS[name]], source, name)


def parse_process_times(text: str, source: str = "stat") -> ProcessTimes:
    """Read only utime and stime from /proc/<pid>/stat."""
    _, fields = _split_stat(text, source)
    if len(fields) <= STAT_FIELDS["stime"]:
        raise ParseError(source, "stime")
    return ProcessTimes(
        utime=_stat_field(fields, "utime", source),
        stime=_stat_field(fields, "stime", source),
    )


def parse_statm_shared(text: str, source: str = "statm") -> int:
    """Return the resident shared page count of /proc/<pid>/statm."""
    tokens = text.split()
    if len(tokens) <= STATM_SHARED_FIELD:
        raise ParseError(source, "shared")
    return parse_int(tokens[STATM_SHARED_FIELD], source, "shared")


def parse_cmdline(raw: str) -> str:
    return raw.rstrip("\x00").replace("\x00", " ")


def build_process_snapshot(
    pid: int,
    credentials: Credentials,
    stat_text: str,
    shared_pages: int,
    cmdline: str,
    boot_time: int,
    ticks_per_second: int,
    page_bytes: int,
    source: str = "stat",
) -> ProcessSnapshot:
    """Combine the parsed per-pid files into a ProcessSnapshot."""
    comm, fields = _split_stat(stat_text, source)
    if len(fields) < _STAT_MIN_FIELDS:
        raise ParseError(source, "rt_priority", "is not found")

    state = ProcessState.from_code(fields[STAT_FIELDS["state"]])
    if state is None:
        raise ParseError(source, "state")

    values = {name: _stat_field(fields, name, source) for name in STAT_FIELDS if name != "state"}

    rss = values["rss"] * page_bytes
    shared = shared_pages * page_bytes
    start_ticks = values["starttime"]
    start_time = datetime.fromtimestamp(boot_time + start_ticks / ticks_per_second, tz=timezone.utc)

    return ProcessSnapshot(
        pid=pid,
        ppid=values["ppid"],
        pgrp=values["pgrp"],
        session=values["session"],
        real_uid=credentials.real_uid,
        effective_uid=credentials.effective_uid,
        saved_uid=credentials.saved_uid,
        fs_uid=credentials.fs_uid,
        real_gid=credentials.real_gid,
        effective_gid=credentials.effective_gid,
        saved_gid=credentials.saved_gid,
        fs_gid=credentials.fs_gid,
        state=state,
        comm=comm,
        cmdline=cmdline,
        tty=decode_tty(values["tty_nr"]),
        tpgid=values["tpgid"] if values["tpgid"] >= 0 else None,
        priority=values["priority"],
        nice=values["nice"],
        threads=values["num_threads"],
        vsz=values["vsize"],
        rss=rss,
        shared=shared,
        rss_anon=rss - shared,
        start_ticks=start_ticks,
        start_time=start_time,
        utime=values["utime"],
        stime=values["stime"],
        cutime=values["cutime"],
        cstime=values["cstime"],
        rsslim=values["rsslim"],
        processor=values["processor"],
        rt_priority=values["rt_priority"],
    )


class ProcessReader:
    """
    Reads process snapshots below a proc root.

    Boot time, clock ticks and page size are read once per reader since
    they cannot change while the system is up.
    """

    def __init__(
        self,
        proc_root: Path,
        ticks_per_second: int | None = None,
        page_bytes: int | None = None,
    ) -> None:
        self._proc_root = Path(proc_root)
        self._ticks = ticks_per_second or clock_ticks()
        self._page_bytes = page_bytes or page_size()
        self._boot_time: int | None = None

    @property
    def boot_time(self) -> int:
        if self._boot_time is None:
            self._boot_time = read_boot_time(self._proc_root)
        return self._boot_time

    def pids(self) -> list[int]:
        """List the numeric entries of the proc root in ascending order."""
        try:
            names = os.listdir(self._proc_root)
        except OSError as exc:
            raise ResourceUnavailableError(self._proc_root, exc.strerror) from exc
        return sorted(int(name) for name in names if name.isdigit())

    def read(self, pid: int) -> ProcessSnapshot:
        """
        Read one process.

        Raises:
            ResourceUnavailableError: The process is gone or unreadable.
            ParseError: One of its files is malformed.
        """
        base = self._proc_root / str(pid)
        credentials = parse_status(read_text(base / "status"), str(base / "status"))
        cmdline = parse_cmdline(read_text(base / "cmdline"))
        stat_text = read_text(base / "stat")
        shared_pages = parse_statm_shared(read_text(base / "statm"), str(base / "statm"))
        return build_process_snapshot(
            pid,
            credentials,
            stat_text,
            shared_pages,
            cmdline,
            boot_time=self.boot_time,
            ticks_per_second=self._ticks,
            page_bytes=self._page_bytes,
            source=str(base / "stat"),
        )

    def read_all(self, pid: int | None = None) -> list[ProcessSnapshot]:
        """
        Read every process, or only `pid` when given.

        A process that exits while being read is left out of the result.
        """
        # Resolved up front so a missing stat file fails the whole scan.
        _ = self.boot_time
        if pid is not None:
            candidates = [pid] if (self._proc_root / str(pid)).is_dir() else []
        else:
            candidates = self.pids()

        processes: list[ProcessSnapshot] = []
        for candidate in candidates:
            try:
                processes.append(self.read(candidate))
            except ResourceUnavailableError as exc:
                logger.debug("Skipping pid %d: %s", candidate, exc)
        return processes

    def read_times(self, pid: int) -> ProcessTimes:
        path = self._proc_root / str(pid) / "stat"
        return parse_process_times(read_text(path), str(path))

    def read_times_for(self, pids: Iterable[int]) -> dict[int, ProcessTimes]:
        """
        Re-read the CPU times of `pids`.

        Processes that exited since their snapshot are missing from the result.
        """
        times: dict[int, ProcessTimes] = {}
        for pid in pids:
            try:
                times[pid] = self.read_times(pid)
            except ResourceUnavailableError:
                logger.debug("Process %d exited during sampling", pid)
        return times
