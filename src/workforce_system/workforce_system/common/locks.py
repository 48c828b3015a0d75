from __future__ import annotations

import threading
import weakref
from collections.abc import Hashable
from contextlib import contextmanager
from typing import Iterator


class KeyedLock:
    """One re-entrant lock per key (e.g. per employee).

    Serialises check-then-act sequences of a single worker process; the
    database constraints cover concurrent processes. A key's lock lives only
    while some caller holds or waits on it.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: weakref.WeakValueDictionary = weakref.WeakValueDictionary()

    def _lock_for(self, key: Hashable) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock

    def __len__(self) -> int:
        return len(self._locks)

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        lock = self._lock_for(key)
        with lock:
            yield
