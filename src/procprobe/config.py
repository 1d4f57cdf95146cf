"""Configuration values for procprobe."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from procprobe.errors import ConfigError

DEFAULT_INTERVAL = 1.0  # seconds
MIN_INTERVAL = 0.1  # seconds
DEFAULT_PROC_ROOT = Path("/proc")

ENV_INTERVAL = "PROCPROBE_INTERVAL"
ENV_PROC_ROOT = "PROCPROBE_PROC_ROOT"


def floor_interval(value: float) -> float:
    """Clamp a sampling interval to the supported minimum."""
    return max(MIN_INTERVAL, float(value))


@dataclass(frozen=True)
class ProbeConfig:
    """Sampling interval and the root of the process filesystem."""

    interval: float = DEFAULT_INTERVAL
    proc_root: Path = DEFAULT_PROC_ROOT

    def __post_init__(self) -> None:
        try:
            interval = float(self.interval)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid sampling interval {self.interval!r}") from exc
        if interval != interval:  # NaN
            raise ConfigError("The sampling interval cannot be NaN")
        object.__setattr__(self, "interval", floor_interval(interval))
        object.__setattr__(self, "proc_root", Path(self.proc_root))

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> ProbeConfig:
        """Build a configuration from ``PROCPROBE_*`` environment variables."""
        env = os.environ if environ is None else environ
        kwargs: dict[str, object] = {}
        if env.get(ENV_INTERVAL):
            kwargs["interval"] = env[ENV_INTERVAL]
        if env.get(ENV_PROC_ROOT):
            kwargs["proc_root"] = env[ENV_PROC_ROOT]
        return cls(**kwargs)  # type: ignore[arg-type]
