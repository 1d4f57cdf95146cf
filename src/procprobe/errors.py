"""Exception hierarchy for procprobe."""

from pathlib import Path


class ProbeError(Exception):
    """Base class for every error raised by the probe."""


class ResourceUnavailableError(ProbeError):
    """A kernel source file is missing or unreadable."""

    def __init__(self, path: Path | str, reason: str | None = None) -> None:
        self.path = Path(path)
        message = f"Cannot read `{self.path}`"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class ParseError(ProbeError, ValueError):
    """A kernel source file does not have the expected layout."""

    def __init__(self, source: Path | str, field: str, detail: str = "is not correct") -> None:
        self.source = str(source)
        self.field = field
        super().__init__(f"The item `{field}` in `{self.source}` {detail}.")


class ConfigError(ProbeError, ValueError):
    """Invalid probe configuration."""


class FilterError(ProbeError, ValueError):
    """A process filter names an unknown user or group, or has a bad pattern."""
