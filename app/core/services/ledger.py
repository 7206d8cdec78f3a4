"""Sliding-window event ledger used for request and error volume."""

from dataclasses import dataclass, field
import threading
from typing import Any, Protocol

# Trailing window kept by every ledger sequence: one hour
WINDOW_MS = 3_600_000


class TimestampedEntry(Protocol):
    timestamp: int


@dataclass(frozen=True)
class RequestEntry:
    endpoint: str
    source: str
    timestamp: int
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ErrorEntry:
    type: str
    message: str
    timestamp: int


class TimeWindowLedger:
    """
    Named, self-pruning sequences of timestamped entries.

    ``record`` appends an entry and then drops every entry of that window
    that is not strictly newer than ``entry.timestamp - window_ms``. The
    reference point is the written entry's own timestamp, so a window with
    no writes keeps its stale entries until the next write.

    Each window has its own lock, making append-then-prune atomic when the
    ledger is shared between threads (e.g. sync route handlers running in
    the threadpool next to the event loop).
    """

    def __init__(self, window_ms: int = WINDOW_MS):
        self.window_ms = window_ms
        self._windows: dict[str, list[Any]] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def _lock_for(self, window: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(window)
            if lock is None:
                lock = self._locks[window] = threading.Lock()
                self._windows[window] = []
            return lock

    def record(self, window: str, entry: TimestampedEntry) -> int:
        """
        Append ``entry`` to ``window`` and prune relative to its timestamp.

        Returns:
            int: Length of the window after pruning.
        """
        with self._lock_for(window):
            threshold = entry.timestamp - self.window_ms
            kept = [e for e in self._windows[window] if e.timestamp > threshold]
            kept.append(entry)
            self._windows[window] = kept
            return len(kept)

    def count(self, window: str) -> int:
        """Current number of entries in ``window``."""
        with self._lock_for(window):
            return len(self._windows[window])

    def entries(self, window: str) -> list[Any]:
        """Snapshot copy of ``window``, oldest first."""
        with self._lock_for(window):
            return list(self._windows[window])
