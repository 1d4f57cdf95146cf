"""procprobe - Linux host telemetry from /proc."""

import logging

from procprobe.cache import ResourceKind, StatCache
from procprobe.config import ProbeConfig
from procprobe.errors import (
    ConfigError,
    FilterError,
    ParseError,
    ProbeError,
    ResourceUnavailableError,
)
from procprobe.monitor import Monitor, SystemReport
from procprobe.ranking import ProcessFilter
from procprobe.reader import SnapshotReader
from procprobe.sampler import Sampler

__all__ = [
    "ConfigError",
    "FilterError",
    "Monitor",
    "ParseError",
    "ProbeConfig",
    "ProbeError",
    "ProcessFilter",
    "ResourceKind",
    "ResourceUnavailableError",
    "Sampler",
    "SnapshotReader",
    "StatCache",
    "SystemReport",
    "create_sampler",
]

logging.getLogger(__name__).addHandler(logging.NullHandler())


def create_sampler(config: ProbeConfig | None = None) -> Sampler:
    """Build a Sampler over the proc root and interval of `config`."""
    config = config or ProbeConfig()
    return Sampler(SnapshotReader(config.proc_root), interval=config.interval)
