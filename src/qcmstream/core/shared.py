"""Reader/writer lock and the shared store handed to the display thread."""

from __future__ import annotations

from contextlib import contextmanager
import threading
import time
from typing import Iterator, Optional

from .timeseries_buffer import DEFAULT_BUFFER_SIZE, DataContainer, DataSnapshot


class LockTimeout(RuntimeError):
    """Raised when a lock could not be acquired within the given timeout."""


class RWLock:
    """Writer-preferring reader/writer lock.

    Any number of readers may hold the lock together; a writer waits for them
    to leave and blocks new readers while it waits. Not reentrant.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    def acquire_read(self, timeout: Optional[float] = None) -> bool:
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._cond:
            while self._writer or self._writers_waiting:
                if not self._wait(deadline):
                    return False
            self._readers += 1
            return True

    def release_read(self) -> None:
        with self._cond:
            if self._readers <= 0:
                raise RuntimeError("release_read() without matching acquire_read()")
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self, timeout: Optional[float] = None) -> bool:
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    if not self._wait(deadline):
                        return False
                self._writer = True
                return True
            finally:
                self._writers_waiting -= 1
                if not self._writer:
                    # A timed-out writer may have been holding readers back.
                    self._cond.notify_all()

    def release_write(self) -> None:
        with self._cond:
            if not self._writer:
                raise RuntimeError("release_write() without matching acquire_write()")
            self._writer = False
            self._cond.notify_all()

    def _wait(self, deadline: Optional[float]) -> bool:
        if deadline is None:
            self._cond.wait()
            return True
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            return False
        self._cond.wait(remaining)
        return True


class SharedStore:
    """
    Owns the process-wide :class:`DataContainer` behind an :class:`RWLock`.

    The ingest loop is the only writer and keeps each write short (one packet
    or one control command). Display code reads through :meth:`read` or takes
    a :meth:`snapshot`. A busy reader can delay the writer by up to its lock
    timeout; the writer then retries on its next tick.
    """

    def __init__(self, container: DataContainer | None = None, *, capacity: int = DEFAULT_BUFFER_SIZE) -> None:
        self._container = container or DataContainer(capacity)
        self._lock = RWLock()

    @contextmanager
    def read(self, timeout: Optional[float] = None) -> Iterator[DataContainer]:
        """Hold a shared lock; callers must not mutate the yielded container."""
        if not self._lock.acquire_read(timeout):
            raise LockTimeout("timed out waiting for read access")
        try:
            yield self._container
        finally:
            self._lock.release_read()

    @contextmanager
    def write(self, timeout: Optional[float] = None) -> Iterator[DataContainer]:
        if not self._lock.acquire_write(timeout):
            raise LockTimeout("timed out waiting for write access")
        try:
            yield self._container
        finally:
            self._lock.release_write()

    def snapshot(self, timeout: Optional[float] = None) -> DataSnapshot:
        with self.read(timeout) as container:
            return container.snapshot()
