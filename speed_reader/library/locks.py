from __future__ import annotations

import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, Union


class DocumentLocks:
    """
    One exclusive lock per backing document, keyed by absolute path.

    Upserts to ``projects.json`` and ``sessions.json`` only serialize against
    writers of the same document. This guards threads inside one process;
    two processes sharing a data directory are not coordinated.
    """

    def __init__(self):
        self._locks: Dict[str, threading.Lock] = {}
        self._meta_lock = threading.Lock()  # protects _locks

    def _lock_for(self, path: Union[str, Path]) -> threading.Lock:
        key = str(Path(path).resolve())
        with self._meta_lock:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, path: Union[str, Path]) -> Iterator[None]:
        lock = self._lock_for(path)
        with lock:
            yield
