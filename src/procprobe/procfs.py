"""Shared helpers for reading and tokenizing kernel text files."""

from __future__ import annotations

import os
from pathlib import Path

from procprobe.errors import ParseError, ResourceUnavailableError

SECTOR_SIZE = 512


def read_text(path: Path) -> str:
    """
    Read a whole procfs file.

    Raises:
        ResourceUnavailableError: The file is missing or unreadable.
    """
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        raise ResourceUnavailableError(path, exc.strerror) from exc


def parse_int(value: str, source: Path | str, field: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise ParseError(source, field, "has incorrect value") from None


def parse_float(value: str, source: Path | str, field: str) -> float:
    try:
        return float(value)
    except ValueError:
        raise ParseError(source, field, "has incorrect value") from None


def labeled_value(line: str, label: str, source: Path | str) -> str:
    """Return the trimmed text after the colon that follows `label`."""
    rest = line[len(label):]
    colon = rest.find(":")
    if colon < 0:
        raise ParseError(source, label, "has no colon")
    return rest[colon + 1:].strip()


def clock_ticks() -> int:
    """Kernel clock ticks per second (USER_HZ)."""
    return os.sysconf("SC_CLK_TCK")


def page_size() -> int:
    return os.sysconf("SC_PAGE_SIZE")
