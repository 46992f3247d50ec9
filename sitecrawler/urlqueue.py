"""Thread-safe FIFO work queue and a set of visited URLs."""

from __future__ import annotations

import hashlib
import threading
from collections import deque
from typing import Deque, Generic, Optional, Set, TypeVar

T = TypeVar("T")


def hash_url(url: str) -> str:
    """Return the hex SHA-256 digest of ``url``."""
    return hashlib.sha256(url.encode("utf-8")).hexdigest()


def _normalise(url: str) -> str:
    return url[:-1] if url.endswith("/") else url


class Queue(Generic[T]):
    """First-in first-out queue safe to share between threads."""

    def __init__(self) -> None:
        self._items: Deque[T] = deque()
        self._lock = threading.Lock()
        self.total_size = 0

    def enqueue(self, item: T) -> None:
        with self._lock:
            self._items.append(item)
            self.total_size += 1

    def dequeue(self) -> Optional[T]:
        """Remove and return the oldest item, or None when the queue is empty."""
        with self._lock:
            if not self._items:
                return None
            return self._items.popleft()

    def is_empty(self) -> bool:
        with self._lock:
            return not self._items

    def size(self) -> int:
        with self._lock:
            return len(self._items)

    def __len__(self) -> int:
        return self.size()


class VisitedSet:
    """URLs already fetched, compared with one trailing slash ignored."""

    def __init__(self) -> None:
        self._hashes: Set[str] = set()
        self._lock = threading.Lock()

    def mark(self, url: str) -> None:
        digest = hash_url(_normalise(url))
        with self._lock:
            self._hashes.add(digest)

    def __contains__(self, url: object) -> bool:
        if not isinstance(url, str):
            return False
        digest = hash_url(_normalise(url))
        with self._lock:
            return digest in self._hashes

    def __len__(self) -> int:
        with self._lock:
            return len(self._hashes)