"""Mounted block devices from /proc/mounts and /proc/diskstats."""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Callable
from pathlib import Path

from procprobe.errors import ParseError
from procprobe.models import VolumeSnapshot
from procprobe.procfs import SECTOR_SIZE, parse_int, read_text

logger = logging.getLogger(__name__)

MOUNTS_FILE = "mounts"
DISKSTATS_FILE = "diskstats"

DEVICE_PREFIX = "/dev/"
MAPPER_PREFIX = "mapper/"

# Zero-based token positions in a /proc/diskstats line.
DEVICE_FIELD = 2
SECTORS_READ_FIELD = 5
SECTORS_WRITTEN_FIELD = 9
IO_TIME_FIELD = 12

_OCTAL_ESCAPE = re.compile(r"\\([0-7]{3})")

StatvfsFunc = Callable[[str], os.statvfs_result]


def _unescape(field: str) -> str:
    """Decode the octal escapes (`\\040` for a space) used in /proc/mounts."""
    return _OCTAL_ESCAPE.sub(lambda match: chr(int(match.group(1), 8)), field)


def _device_name(device_path: str) -> str:
    device = device_path[len(DEVICE_PREFIX):]
    if device.startswith(MAPPER_PREFIX):
        return os.path.basename(os.path.realpath(device_path))
    return device


def parse_mounts(text: str, source: str = "/proc/mounts") -> dict[str, list[str]]:
    """Map each `/dev/*` device name to its mount points, in mount order."""
    mounts: dict[str, list[str]] = {}
    for line in text.splitlines():
        tokens = line.split()
        if not tokens or not tokens[0].startswith(DEVICE_PREFIX):
            continue
        device = _device_name(tokens[0])
        if len(tokens) < 2:
            raise ParseError(source, device, "has no mount point")
        mounts.setdefault(device, []).append(_unescape(tokens[1]))
    return mounts


def filesystem_usage(mount_point: str, statvfs: StatvfsFunc = os.statvfs) -> tuple[int, int]:
    """Return (size, used) in bytes of the filesystem mounted at `mount_point`."""
    stats = statvfs(mount_point)
    size = stats.f_bsize * stats.f_blocks
    used = stats.f_bsize * (stats.f_blocks - stats.f_bavail)
    return size, used


def parse_diskstats(
    text: str,
    mounts: dict[str, list[str]],
    source: str = "/proc/diskstats",
    statvfs: StatvfsFunc = os.statvfs,
) -> list[VolumeSnapshot]:
    """
    Build a VolumeSnapshot for each mounted device with I/O activity.

    Devices that never spent time doing I/O are not volumes and are
    skipped. A mount point that can no longer be queried (the volume was
    unmounted after the mount table was read) drops only that device.
    """
    remaining = {device: list(points) for device, points in mounts.items()}
    volumes: list[VolumeSnapshot] = []

    for line in text.splitlines():
        tokens = line.split()
        if not tokens:
            continue
        if len(tokens) <= DEVICE_FIELD:
            raise ParseError(source, "device")
        device = tokens[DEVICE_FIELD]
        points = remaining.pop(device, None)
        if points is None:
            continue
        if len(tokens) <= IO_TIME_FIELD:
            raise ParseError(source, device)

        read_bytes = parse_int(tokens[SECTORS_READ_FIELD], source, device) * SECTOR_SIZE
        write_bytes = parse_int(tokens[SECTORS_WRITTEN_FIELD], source, device) * SECTOR_SIZE
        time_spent = parse_int(tokens[IO_TIME_FIELD], source, device)
        if time_spent == 0:
            continue

        try:
            size, used = filesystem_usage(points[0], statvfs)
        except OSError as exc:
            logger.debug("Skipping volume %s: cannot stat %s (%s)", device, points[0], exc)
            continue

        volumes.append(
            VolumeSnapshot(
                device=device,
                read_bytes=read_bytes,
                write_bytes=write_bytes,
                size=size,
                used=used,
                mount_points=tuple(points),
            )
        )
    return volumes


def read_volume_snapshots(proc_root: Path, statvfs: StatvfsFunc = os.statvfs) -> list[VolumeSnapshot]:
    mounts_path = proc_root / MOUNTS_FILE
    mounts = parse_mounts(read_text(mounts_path), str(mounts_path))
    diskstats_path = proc_root / DISKSTATS_FILE
    return parse_diskstats(read_text(diskstats_path), mounts, str(diskstats_path), statvfs)
