"""
Synchronization Primitives

- ReadWriteLock: many concurrent readers or one writer, writer-preferring
- AtomicCounter: independently locked integer counter

Both are built on ``threading`` only. Counters never share a lock with the
category store, so instrumentation cannot hold up the writer path.
"""

from __future__ import annotations
from contextlib import contextmanager
from typing import Iterator
import threading


class ReadWriteLock:
    """
    Writer-preferring reader/writer lock.

    Readers share access; a writer waits for active readers to drain and
    blocks new readers while it is queued. Not reentrant: a thread holding
    the write side must not request either side again.
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer_active = False
        self._writers_waiting = 0

    def acquire_read(self) -> None:
        with self._cond:
            while self._writer_active or self._writers_waiting:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            if self._readers <= 0:
                raise RuntimeError("release_read() without matching acquire_read()")
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer_active or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer_active = True

    def release_write(self) -> None:
        with self._cond:
            if not self._writer_active:
                raise RuntimeError("release_write() without matching acquire_write()")
            self._writer_active = False
            self._cond.notify_all()

    @contextmanager
    def read_locked(self) -> Iterator[None]:
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write_locked(self) -> Iterator[None]:
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()

    @property
    def readers(self) -> int:
        """Number of readers currently holding the lock."""
        return self._readers

    @property
    def write_held(self) -> bool:
        return self._writer_active


class AtomicCounter:
    """Integer counter whose increments are atomic across threads."""

    __slots__ = ("_value", "_lock")

    def __init__(self, initial: int = 0):
        self._value = initial
        self._lock = threading.Lock()

    def increment(self, amount: int = 1) -> int:
        with self._lock:
            self._value += amount
            return self._value

    def get(self) -> int:
        return self._value

    def set(self, value: int) -> None:
        with self._lock:
            self._value = value

    def __repr__(self) -> str:
        return f"AtomicCounter({self._value})"
