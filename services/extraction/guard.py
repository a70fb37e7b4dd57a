import threading
from abc import ABC, abstractmethod


class RefreshGuard(ABC):
    """At-most-one-run-per-feed lock.

    try_acquire() never blocks: a feed that is already held is reported as
    busy and the caller gives up. A multi-instance deployment swaps in an
    implementation backed by shared storage (a lease row, a redis key).
    """

    @abstractmethod
    def try_acquire(self, feed_id: str) -> bool:
        ...

    @abstractmethod
    def release(self, feed_id: str) -> None:
        ...

    @abstractmethod
    def is_held(self, feed_id: str) -> bool:
        ...


class LocalRefreshGuard(RefreshGuard):
    """Process-local guard. Two processes polling the same feeds will overlap."""

    def __init__(self):
        self._lock = threading.Lock()
        self._running: set[str] = set()

    def try_acquire(self, feed_id):
        with self._lock:
            if feed_id in self._running:
                return False
            self._running.add(feed_id)
            return True

    def release(self, feed_id):
        with self._lock:
            self._running.discard(feed_id)

    def is_held(self, feed_id):
        with self._lock:
            return feed_id in self._running
