"""
Per-(member, household) locks for stats recomputation.

Reading a member's history and replacing their stats row must not interleave
with another recompute for the same key, or a stale snapshot can overwrite a
fresh one. Request handlers and background jobs share this registry.
"""

import threading
from contextlib import contextmanager

_registry_lock = threading.Lock()
_locks = {}


def _lock_for(user_id: int, household_id: int) -> threading.Lock:
    key = (user_id, household_id)
    with _registry_lock:
        lock = _locks.get(key)
        if lock is None:
            lock = threading.Lock()
            _locks[key] = lock
        return lock


@contextmanager
def stats_lock(user_id: int, household_id: int):
    """Hold the recompute lock for one member in one household."""
    lock = _lock_for(user_id, household_id)
    with lock:
        yield
