"""Shared cache of sampled values for many concurrent consumers."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from procprobe.sampler import Sampler

logger = logging.getLogger(__name__)


class ResourceKind(Enum):
    """Resource kinds with an independent cache entry."""

    CPU = "cpu"
    CPU_CORES = "cpu_cores"
    MEMORY = "memory"
    NETWORK = "network"
    VOLUME = "volume"
    PROCESS = "process"


@dataclass
class _CacheEntry:
    value: Any = None
    refreshing: bool = False
    last_start: float | None = None
    error: Exception | None = None
    lock: threading.Lock = field(default_factory=threading.Lock)
    published: threading.Condition = field(init=False)

    def __post_init__(self) -> None:
        self.published = threading.Condition(self.lock)


class StatCache:
    """
    One guarded entry per resource kind, refreshed in the background.

    A refresh request starts a sampling thread only when none is in flight
    for that kind; concurrent requests reuse the running one and read the
    last published value. Refreshes are never cancelled once started.
    """

    def __init__(
        self,
        sampler: Sampler,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._sampler = sampler
        self._sleep = sleep
        self._clock = clock
        self._entries = {kind: _CacheEntry() for kind in ResourceKind}
        self._threads: list[threading.Thread] = []
        self._threads_lock = threading.Lock()
        self._sources: dict[ResourceKind, Callable[[], Any]] = {
            ResourceKind.CPU: sampler.cpu_usage,
            ResourceKind.CPU_CORES: sampler.cpu_core_usage,
            ResourceKind.MEMORY: sampler.reader.memory,
            ResourceKind.NETWORK: sampler.network_speeds,
            ResourceKind.VOLUME: sampler.volume_speeds,
            ResourceKind.PROCESS: sampler.process_view,
        }

    @property
    def interval(self) -> float:
        return self._sampler.interval

    def get(self, kind: ResourceKind) -> Any:
        """Return the last published value of `kind`, or None before the first."""
        entry = self._entries[kind]
        with entry.lock:
            return entry.value

    def last_error(self, kind: ResourceKind) -> Exception | None:
        """Return the error of the latest refresh of `kind` if it failed."""
        entry = self._entries[kind]
        with entry.lock:
            return entry.error

    def is_refreshing(self, kind: ResourceKind) -> bool:
        entry = self._entries[kind]
        with entry.lock:
            return entry.refreshing

    def last_refresh_start(self, kind: ResourceKind) -> float | None:
        entry = self._entries[kind]
        with entry.lock:
            return entry.last_start

    def request_refresh(self, kind: ResourceKind) -> bool:
        """
        Start a background refresh of `kind` unless one is already running.

        Returns:
            True if this call started a new refresh.
        """
        entry = self._entries[kind]
        with entry.lock:
            if entry.refreshing:
                return False
            entry.refreshing = True
            entry.last_start = self._clock()

        thread = threading.Thread(
            target=self._refresh,
            args=(kind,),
            daemon=True,
            name=f"StatCache-{kind.value}",
        )
        with self._threads_lock:
            self._threads = [t for t in self._threads if t.is_alive()]
            self._threads.append(thread)
        logger.debug("Refreshing %s", kind.value)
        thread.start()
        return True

    def _refresh(self, kind: ResourceKind) -> None:
        entry = self._entries[kind]
        try:
            value = self._sources[kind]()
        except Exception as exc:
            logger.exception("Refreshing %s failed", kind.value)
            with entry.lock:
                entry.error = exc
                entry.refreshing = False
                entry.published.notify_all()
            return

        with entry.lock:
            entry.value = value
            entry.error = None
            entry.refreshing = False
            entry.published.notify_all()
        logger.debug("Published %s", kind.value)

    def wait_fresh(self, kinds: Iterable[ResourceKind]) -> float:
        """
        Sleep until the newest refresh of `kinds` is one interval old.

        Returns:
            The number of seconds slept.
        """
        starts = [start for start in map(self.last_refresh_start, kinds) if start is not None]
        if not starts:
            return 0.0
        remaining = self.interval - (self._clock() - max(starts))
        if remaining <= 0:
            return 0.0
        self._sleep(remaining)
        return remaining

    def _wait_first_value(self, kind: ResourceKind, timeout: float) -> None:
        entry = self._entries[kind]
        with entry.published:
            entry.published.wait_for(
                lambda: entry.value is not None or not entry.refreshing,
                timeout=timeout,
            )

    def fetch(self, kinds: Iterable[ResourceKind]) -> dict[ResourceKind, Any]:
        """
        Refresh `kinds` and return their values no older than one interval.

        Kinds that were never published yet wait for their first refresh.
        """
        kinds = list(dict.fromkeys(kinds))
        for kind in kinds:
            self.request_refresh(kind)
        self.wait_fresh(kinds)
        for kind in kinds:
            if self.get(kind) is None:
                self._wait_first_value(kind, timeout=self.interval * 2)
        return {kind: self.get(kind) for kind in kinds}

    def join(self, timeout: float | None = None) -> None:
        """Wait for the background refreshes started so far."""
        with self._threads_lock:
            threads = list(self._threads)
        for thread in threads:
            thread.join(timeout=timeout)
