"""Per-order mutual exclusion.

The Order and its Payments are the unit of locking. Every operation that
mutates them runs its whole unit of work while holding the order's lock, so a
status check and the write that depends on it cannot interleave with another
request for the same order.

This registry serialises requests inside one process. Deployments running
several workers need a database row lock or a shared lock service behind the
same ``hold()`` interface.
"""

import threading
from contextlib import contextmanager

import structlog

from storefront.errors import ConcurrentUpdate

logger = structlog.get_logger(__name__)


class KeyedLocks:
    """Hands out one lock per key.

    An entry lives only while someone holds or waits for its lock, so the
    registry does not grow with every order ever touched.
    """

    def __init__(self) -> None:
        self._locks: dict[str, threading.Lock] = {}
        self._users: dict[str, int] = {}
        self._registry_lock = threading.Lock()

    def _checkout(self, key: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.setdefault(key, threading.Lock())
            self._users[key] = self._users.get(key, 0) + 1
            return lock

    def _checkin(self, key: str) -> None:
        with self._registry_lock:
            self._users[key] -= 1
            if not self._users[key]:
                del self._users[key]
                del self._locks[key]

    @contextmanager
    def hold(self, key: str, timeout: float = 30.0):
        """Hold the lock for ``key`` for the duration of the block.

        Raises ConcurrentUpdate when the lock cannot be acquired in time.
        """
        key = str(key)
        lock = self._checkout(key)
        try:
            if not lock.acquire(timeout=timeout):
                logger.warning("Timed out waiting for order lock", key=key, timeout=timeout)
                raise ConcurrentUpdate(key)
            try:
                yield
            finally:
                lock.release()
        finally:
            self._checkin(key)

    def is_held(self, key: str) -> bool:
        with self._registry_lock:
            lock = self._locks.get(str(key))
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._locks)


order_locks = KeyedLocks()
