"""
Reader-Writer Lock

Shared read access, exclusive write access. The write lock is re-entrant, and
a thread holding it may also take the read lock. A thread holding only a read
lock must release it before asking for the write lock.

Writers are preferred: once a writer is waiting, new readers queue behind it.
A thread that already holds a read lock may still nest further read locks.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict


class ReadWriteLock:
    """Writer-preferring reader-writer lock built on a condition variable."""

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers: Dict[int, int] = {}
        self._writer = None
        self._writer_depth = 0
        self._writers_waiting = 0

    def is_write_locked(self) -> bool:
        """True if the calling thread holds the write lock."""
        with self._cond:
            return self._writer == threading.get_ident()

    @property
    def reader_count(self) -> int:
        with self._cond:
            return len(self._readers)

    @contextmanager
    def read_lock(self):
        me = threading.get_ident()
        with self._cond:
            nested = self._writer == me
            if nested:
                self._writer_depth += 1
            else:
                if me not in self._readers:
                    while self._writer is not None or self._writers_waiting:
                        self._cond.wait()
                self._readers[me] = self._readers.get(me, 0) + 1
        try:
            yield
        finally:
            with self._cond:
                if nested:
                    self._writer_depth -= 1
                else:
                    self._readers[me] -= 1
                    if not self._readers[me]:
                        del self._readers[me]
                    if not self._readers:
                        self._cond.notify_all()

    @contextmanager
    def write_lock(self):
        me = threading.get_ident()
        with self._cond:
            if self._writer == me:
                self._writer_depth += 1
            else:
                self._writers_waiting += 1
                try:
                    while self._writer is not None or self._readers:
                        self._cond.wait()
                finally:
                    self._writers_waiting -= 1
                self._writer = me
                self._writer_depth = 1
        try:
            yield
        finally:
            with self._cond:
                self._writer_depth -= 1
                if self._writer_depth == 0:
                    self._writer = None
                    self._cond.notify_all()
