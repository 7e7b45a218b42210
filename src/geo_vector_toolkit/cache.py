"""
Best-effort in-memory cache of file summaries, keyed by path.

Nothing depends on the cache for correctness; it only remembers what was
loaded so callers can list it.
"""

from abc import ABC, abstractmethod
from threading import Lock
from typing import Any


class SummaryCache(ABC):
    """Cache interface."""

    @abstractmethod
    def get(self, path: str) -> Any | None:
        """Cached summary for a path, or None."""

    @abstractmethod
    def put(self, path: str, summary: Any) -> None:
        """Store or replace the summary for a path."""

    @abstractmethod
    def values(self) -> list[Any]:
        """All cached summaries."""

    @abstractmethod
    def clear(self) -> None:
        """Drop every entry."""


class InMemorySummaryCache(SummaryCache):
    """Dict-backed cache guarded by a single lock."""

    def __init__(self) -> None:
        self._entries: dict[str, Any] = {}
        self._lock = Lock()

    def get(self, path: str) -> Any | None:
        with self._lock:
            return self._entries.get(path)

    def put(self, path: str, summary: Any) -> None:
        with self._lock:
            self._entries[path] = summary

    def values(self) -> list[Any]:
        with self._lock:
            return list(self._entries.values())

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
