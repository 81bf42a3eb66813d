"""Stale-file tracking for the currently selected configuration.

``FileMonitor`` is poll-based: callers drive it with ``maybe_poll(now)`` from
their own loop (or call ``check_now()`` directly). Each check compares the
``(last_modified, size)`` pair recorded at scan time with the file on disk and
emits the full list of out-of-date paths. Deleted or unreadable files count as
out of date. Starting and stopping emit an empty list so listeners can clear
their markers.

``StalenessReconciler`` holds the stale set and replaces it wholesale with
each update.
"""

from __future__ import annotations

import logging
import os
import stat as stat_module
import threading
import time
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field

from .errors import MonitorError
from .tree_model import WatchedFile

logger = logging.getLogger(__name__)

DEFAULT_POLL_SECONDS = 30.0

StaleListener = Callable[[list[str]], None]


@dataclass
class StalenessReconciler:
    stale: frozenset[str] = field(default_factory=frozenset)

    def apply_update(self, paths: Iterable[str]) -> frozenset[str]:
        """Replace the stale set with exactly ``paths``."""
        self.stale = frozenset(paths)
        return self.stale

    def clear(self) -> frozenset[str]:
        self.stale = frozenset()
        return self.stale


def _modified_seconds(stat_result: os.stat_result) -> int:
    return int(stat_result.st_mtime)


def find_stale_files(
    files: Mapping[str, WatchedFile],
    *,
    stat: Callable[[str], os.stat_result] = os.stat,
) -> list[str]:
    """Return paths whose on-disk mtime (seconds) or size differ from ``files``.

    Missing paths and paths whose metadata cannot be read are reported too.
    Directories are skipped. Output is sorted for stable emission.
    """
    out: list[str] = []
    for path, recorded in files.items():
        try:
            st = stat(path)
        except FileNotFoundError:
            out.append(path)
            continue
        except OSError as exc:
            logger.debug("Could not stat %s: %s", path, exc)
            out.append(path)
            continue
        if stat_module.S_ISDIR(st.st_mode):
            continue
        if _modified_seconds(st) != recorded.last_modified or int(st.st_size) != recorded.size:
            out.append(path)
    out.sort()
    return out


class FileMonitor:
    """Polls one configuration's file snapshot and reports stale paths."""

    def __init__(
        self,
        *,
        poll_seconds: float = DEFAULT_POLL_SECONDS,
        stat: Callable[[str], os.stat_result] = os.stat,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self.poll_seconds = poll_seconds
        self._stat = stat
        self._monotonic = monotonic
        self._lock = threading.Lock()
        self._listeners: list[StaleListener] = []
        self._configuration_id: str | None = None
        self._files: dict[str, WatchedFile] = {}
        self._last_poll = 0.0

    @property
    def configuration_id(self) -> str | None:
        return self._configuration_id

    @property
    def active(self) -> bool:
        return self._configuration_id is not None

    def watched_paths(self) -> list[str]:
        with self._lock:
            return sorted(self._files)

    def subscribe(self, listener: StaleListener) -> Callable[[], None]:
        """Register ``listener``; the returned callable unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, paths: list[str]) -> None:
        for listener in list(self._listeners):
            try:
                listener(list(paths))
            except Exception:
                logger.exception("Stale-file listener failed")

    def start(self, configuration_id: str, files: Mapping[str, WatchedFile]) -> None:
        """Replace the watched snapshot and emit an empty update.

        Raises ``MonitorError`` when ``configuration_id`` is empty.
        """
        if not configuration_id:
            raise MonitorError("configuration id is required to start monitoring")
        with self._lock:
            self._configuration_id = str(configuration_id)
            self._files = dict(files)
            self._last_poll = self._monotonic()
        logger.info("Monitoring %d file(s) for %s", len(files), configuration_id)
        self._emit([])

    def stop(self) -> None:
        """Forget the watched snapshot and emit an empty update."""
        with self._lock:
            previous = self._configuration_id
            self._configuration_id = None
            self._files = {}
        if previous is not None:
            logger.info("Stopped monitoring %s", previous)
        self._emit([])

    def check_now(self) -> list[str]:
        """Run one freshness check, emitting when anything is stale."""
        with self._lock:
            if self._configuration_id is None or not self._files:
                return []
            files = dict(self._files)
        stale = find_stale_files(files, stat=self._stat)
        if stale:
            logger.debug("%d stale file(s) detected", len(stale))
            self._emit(stale)
        return stale

    def maybe_poll(self, now: float | None = None) -> list[str] | None:
        """Check when ``poll_seconds`` elapsed since the last check.

        Returns the stale list for a performed check, ``None`` otherwise.
        """
        if now is None:
            now = self._monotonic()
        with self._lock:
            if self._configuration_id is None:
                return None
            if (now - self._last_poll) < self.poll_seconds:
                return None
            self._last_poll = now
        return self.check_now()


__all__ = [
    "DEFAULT_POLL_SECONDS",
    "StaleListener",
    "StalenessReconciler",
    "find_stale_files",
    "FileMonitor",
]
