"""
Per-key mutual exclusion for check-then-write sequences

Balance checks and daily-completion checks must not interleave with a
concurrent request for the same member/chore. On PostgreSQL the use cases
also take a row lock (SELECT ... FOR UPDATE); the in-process lock covers
SQLite and any request served by this worker.

Locks live in a weak registry: an entry disappears once no request holds
or waits on it.
"""
import threading
import weakref
from contextlib import contextmanager
from typing import Iterator


class KeyedLock:
    """threading.Lock cannot be weakly referenced; this wrapper can"""
    __slots__ = ("_lock", "__weakref__")

    def __init__(self):
        self._lock = threading.Lock()

    def __enter__(self):
        self._lock.acquire()
        return self

    def __exit__(self, *exc):
        self._lock.release()


_registry_guard = threading.Lock()
_locks: "weakref.WeakValueDictionary[tuple[str, int], KeyedLock]" = weakref.WeakValueDictionary()


def _lock_for(scope: str, key: int) -> KeyedLock:
    with _registry_guard:
        lock = _locks.get((scope, key))
        if lock is None:
            lock = KeyedLock()
            _locks[(scope, key)] = lock
        return lock


def registry_size() -> int:
    with _registry_guard:
        return len(_locks)


@contextmanager
def keyed_lock(scope: str, key: int) -> Iterator[None]:
    lock = _lock_for(scope, key)  # strong reference for the whole block
    with lock:
        yield


def member_lock(member_id: int):
    return keyed_lock("member", member_id)


def chore_lock(chore_id: int):
    return keyed_lock("chore", chore_id)
