# src/Services/worker_locks.py
"""
Per-worker mutual exclusion for journey mutations.

Purpose:
- Serialize start/append/finalize of the same worker inside this process
- Let different workers proceed in parallel (one lock per worker)

Architecture:
- Thread-safe registry (threading.Lock guards the dict of worker locks)
- A worker's entry lives only while some thread holds or waits for its
  lock; the last one out removes it, so the registry holds at most one
  entry per worker with an operation in flight
- Cross-instance safety comes from the database (row lock + version
  counter + open-journey unique index), not from this registry

Journey rows are never cached here; every operation re-reads the open
journey from the database inside the lock.
"""

import threading
from contextlib import contextmanager
from typing import Dict, Iterator


class _WorkerLock:
    """A worker's lock plus the number of threads holding or waiting for it."""

    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = threading.Lock()
        self.users = 0


class WorkerLockRegistry:
    """
    Registry of one ``threading.Lock`` per worker id.
    """

    def __init__(self):
        self._locks: Dict[str, _WorkerLock] = {}
        self._registry_lock = threading.Lock()

    def _acquire_entry(self, worker_id: str) -> _WorkerLock:
        with self._registry_lock:
            entry = self._locks.get(worker_id)
            if entry is None:
                entry = _WorkerLock()
                self._locks[worker_id] = entry
            entry.users += 1
            return entry

    def _release_entry(self, worker_id: str, entry: _WorkerLock):
        with self._registry_lock:
            entry.users -= 1
            if entry.users == 0:
                del self._locks[worker_id]

    @contextmanager
    def hold(self, worker_id: str) -> Iterator[None]:
        """
        Hold the worker's lock for the duration of the block.

        Example:
            with worker_locks.hold("W-001"):
                journey = find_open_journey(db, "W-001", for_update=True)
                ...
        """
        entry = self._acquire_entry(worker_id)
        try:
            with entry.lock:
                yield
        finally:
            self._release_entry(worker_id, entry)

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._locks)


# ============================================================
# GLOBAL REGISTRY INSTANCE
# ============================================================
worker_locks = WorkerLockRegistry()
