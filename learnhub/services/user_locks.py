"""
Per-user serialization of progress read-modify-write cycles.

Two requests for the same user (e.g. two quiz submissions landing together)
would otherwise both read the same record and one commit would drop the
other's XP. Within one process the lock serializes them; across processes the
record's version counter turns the race into a StaleDataError that the
service retries once.

Locks are held weakly: an entry lives only while some caller references its
lock, so the registry does not grow with every user id ever seen.
"""

import threading
import weakref
from contextlib import contextmanager
from typing import Iterator


class UserLockRegistry:
    def __init__(self):
        self._guard = threading.Lock()
        self._locks: "weakref.WeakValueDictionary[int, threading.Lock]" = weakref.WeakValueDictionary()

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    def lock_for(self, user_id: int) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(user_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[user_id] = lock
            return lock

    @contextmanager
    def hold(self, user_id: int) -> Iterator[None]:
        lock = self.lock_for(user_id)
        with lock:
            yield


user_locks = UserLockRegistry()
