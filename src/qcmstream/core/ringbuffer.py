from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Iterator
from typing import Deque, Generic, TypeVar

T = TypeVar("T")


class SlidingWindow(Generic[T]):
    """
    Bounded FIFO sequence for streaming data.
    Drops the oldest entries once the length exceeds ``capacity``.

    Changing ``capacity`` is not retroactive: the window is trimmed to the new
    size on the next :meth:`append`.
    """

    __slots__ = ("_capacity", "_data")

    def __init__(self, capacity: int, items: Iterable[T] = ()) -> None:
        self._capacity = _check_capacity(capacity)
        self._data: Deque[T] = deque(items)

    @property
    def capacity(self) -> int:
        return self._capacity

    @capacity.setter
    def capacity(self, value: int) -> None:
        self._capacity = _check_capacity(value)

    def append(self, item: T) -> None:
        self._data.append(item)
        while len(self._data) > self._capacity:
            self._data.popleft()

    def clear(self) -> None:
        self._data.clear()

    def to_list(self) -> list[T]:
        return list(self._data)

    def __len__(self) -> int:  # pragma: no cover - trivial
        return len(self._data)

    def __getitem__(self, index: int) -> T:
        """Support win[i] and win[-1] indexing, oldest first."""
        if not self._data:
            raise IndexError("SlidingWindow is empty")
        return self._data[index]

    def __iter__(self) -> Iterator[T]:
        return iter(self._data)

    def __repr__(self) -> str:
        return f"SlidingWindow(capacity={self._capacity}, len={len(self._data)})"


def _check_capacity(value: int) -> int:
    capacity = int(value)
    if capacity <= 0:
        raise ValueError("capacity must be positive")
    return capacity
