"""Filtering and ordering of process views."""

from __future__ import annotations

import grp
import pwd
import re
from collections.abc import Iterable
from dataclasses import dataclass

from procprobe.errors import FilterError
from procprobe.models import ProcessSnapshot, ProcessUsage

# CPU shares at or below this are ordered by memory instead of by CPU.
NOISE_FLOOR = 0.01


def _compile(pattern: str | re.Pattern[str] | None, name: str) -> re.Pattern[str] | None:
    if pattern is None or isinstance(pattern, re.Pattern):
        return pattern
    try:
        return re.compile(pattern)
    except re.error as exc:
        raise FilterError(f"Invalid {name} pattern {pattern!r}: {exc}") from exc


def resolve_uid(user: str | int) -> int:
    """Return the uid of a user name (numeric ids pass through)."""
    if isinstance(user, int):
        return user
    try:
        return pwd.getpwnam(user).pw_uid
    except KeyError:
        raise FilterError(f"Cannot find the user `{user}`.") from None


def resolve_gid(group: str | int) -> int:
    """Return the gid of a group name (numeric ids pass through)."""
    if isinstance(group, int):
        return group
    try:
        return grp.getgrnam(group).gr_gid
    except KeyError:
        raise FilterError(f"Cannot find the group `{group}`.") from None


@dataclass(frozen=True)
class ProcessFilter:
    """
    Conjunction of optional process criteria.

    Attributes:
        pid: Exact process id.
        uid: Matches the real, effective, saved set or filesystem uid.
        gid: Matches the effective gid only.
        program: Searched in the command line, then in the command name.
        tty: Searched in the terminal name; processes without one never match.
    """

    pid: int | None = None
    uid: int | None = None
    gid: int | None = None
    program: re.Pattern[str] | None = None
    tty: re.Pattern[str] | None = None

    @classmethod
    def build(
        cls,
        pid: int | None = None,
        user: str | int | None = None,
        group: str | int | None = None,
        program: str | re.Pattern[str] | None = None,
        tty: str | re.Pattern[str] | None = None,
    ) -> ProcessFilter:
        """Build a filter from user/group names and pattern strings."""
        return cls(
            pid=pid,
            uid=None if user is None else resolve_uid(user),
            gid=None if group is None else resolve_gid(group),
            program=_compile(program, "program"),
            tty=_compile(tty, "tty"),
        )

    @property
    def is_empty(self) -> bool:
        return all(value is None for value in (self.pid, self.uid, self.gid, self.program, self.tty))

    def matches(self, process: ProcessSnapshot) -> bool:
        if self.pid is not None and process.pid != self.pid:
            return False

        if self.uid is not None and self.uid not in (
            process.real_uid,
            process.effective_uid,
            process.saved_uid,
            process.fs_uid,
        ):
            return False

        if self.gid is not None and process.effective_gid != self.gid:
            return False

        if self.tty is not None:
            if process.tty is None or not self.tty.search(process.tty):
                return False

        if self.program is not None:
            if not self.program.search(process.cmdline) and not self.program.search(process.comm):
                return False

        return True

    def apply(self, processes: Iterable[ProcessSnapshot]) -> list[ProcessSnapshot]:
        return [process for process in processes if self.matches(process)]


def _usage_key(usage: ProcessUsage) -> tuple[float, int]:
    share = usage.cpu_percent or 0.0
    ranked_share = share if share > NOISE_FLOOR else 0.0
    return (-ranked_share, -usage.process.vsz)


def rank(usages: Iterable[ProcessUsage], only_information: bool = False) -> list[ProcessUsage]:
    """
    Order processes for display.

    Normal mode sorts by CPU share descending, treating every share at or
    below NOISE_FLOOR as tied at the bottom, then by virtual size
    descending. Information-only mode sorts by virtual size alone.
    """
    if only_information:
        return sorted(usages, key=lambda usage: -usage.process.vsz)
    return sorted(usages, key=_usage_key)


def truncate(usages: list[ProcessUsage], top: int | None) -> list[ProcessUsage]:
    """Keep the first `top` entries; None keeps all and a non-positive count none."""
    if top is None:
        return usages
    return usages[: max(top, 0)]


def rank_and_truncate(
    usages: Iterable[ProcessUsage],
    top: int | None = None,
    only_information: bool = False,
) -> list[ProcessUsage]:
    return truncate(rank(usages, only_information), top)
