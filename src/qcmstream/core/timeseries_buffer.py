"""Sliding-window store shared between the ingest loop and the display."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Sequence

import numpy as np

from .models import Packet
from .ringbuffer import SlidingWindow

logger = logging.getLogger(__name__)

DEFAULT_BUFFER_SIZE = 5000
DEFAULT_RAW_TRAFFIC_LEN = 1000


def default_names(width: int) -> list[str]:
    """Return ``["Column 0", "Column 1", ...]`` for ``max(width, 1)`` channels."""
    return [f"Column {i}" for i in range(max(width, 1))]


@dataclass(frozen=True)
class DataSnapshot:
    """Read-only copy of a :class:`DataContainer`.

    ``dataset`` has shape ``(channels, samples)``.
    """

    names: tuple[str, ...]
    time: np.ndarray
    absolute_time: np.ndarray
    dataset: np.ndarray
    raw_traffic: tuple[Packet, ...]

    @property
    def n_samples(self) -> int:
        return int(self.time.size)

    @property
    def n_channels(self) -> int:
        return int(self.dataset.shape[0])

    def channel(self, name: str) -> np.ndarray:
        """Return the samples of the channel called ``name``."""
        try:
            idx = self.names.index(name)
        except ValueError:
            raise KeyError(name) from None
        return self.dataset[idx]


class DataContainer:
    """
    Names, timestamps and per-channel samples held in sliding windows.

    ``time``, ``absolute_time`` and every channel of ``dataset`` are appended
    to together and share one capacity, so they always have equal length.
    ``raw_traffic`` keeps the last received packets under its own limit.

    The container itself is not thread-safe; wrap it in
    :class:`~qcmstream.core.shared.SharedStore` to share it.
    """

    def __init__(self, capacity: int = DEFAULT_BUFFER_SIZE) -> None:
        self._capacity = int(capacity)
        self.names: list[str] = []
        self.time: SlidingWindow[float] = SlidingWindow(self._capacity)
        self.absolute_time: SlidingWindow[float] = SlidingWindow(self._capacity)
        self.dataset: list[SlidingWindow[float]] = []
        self.raw_traffic: SlidingWindow[Packet] = SlidingWindow(DEFAULT_RAW_TRAFFIC_LEN)

    # ------------------------------------------------------------------ config
    @property
    def capacity(self) -> int:
        return self._capacity

    def set_capacity(self, capacity: int) -> None:
        """Change the data window size; applied on the next append."""
        self.time.capacity = capacity
        self.absolute_time.capacity = capacity
        for column in self.dataset:
            column.capacity = capacity
        self._capacity = int(capacity)

    # ------------------------------------------------------------------ ingest
    @property
    def width(self) -> int:
        return len(self.dataset)

    def is_consistent(self) -> bool:
        """True when the first channel holds as many samples as ``time``."""
        if not self.dataset:
            return True
        return len(self.dataset[0]) == len(self.time)

    def append_row(self, relative_time: float, absolute_time: float, values: Sequence[float]) -> None:
        if len(values) != len(self.dataset):
            raise ValueError(
                f"row has {len(values)} values but the store has {len(self.dataset)} channels"
            )
        for column, value in zip(self.dataset, values):
            column.append(float(value))
        self.time.append(float(relative_time))
        self.absolute_time.append(float(absolute_time))

    def push_raw(self, packet: Packet, max_len: int) -> None:
        """Keep ``packet`` in the raw window, trimmed to the last ``max_len`` packets."""
        if max_len <= 0:
            self.raw_traffic.clear()
            return
        self.raw_traffic.capacity = int(max_len)
        self.raw_traffic.append(packet)

    def reset_columns(self, width: int) -> None:
        """
        Drop all samples and reallocate ``max(width, 1)`` empty channels.

        Names are regenerated as ``Column i`` only when their count differs
        from the new channel count, so labels installed by a command survive
        the reset.
        """
        channels = max(width, 1)
        self.time.clear()
        self.absolute_time.clear()
        self.dataset = [SlidingWindow(self._capacity) for _ in range(channels)]
        if len(self.names) != channels:
            self.names = default_names(width)
        logger.debug("Reset dataset to %d channel(s)", channels)

    def clear(self) -> None:
        """Return to the freshly constructed state, keeping the capacity."""
        self.names = []
        self.time.clear()
        self.absolute_time.clear()
        self.dataset = []
        self.raw_traffic.clear()

    # ------------------------------------------------------------------- query
    def snapshot(self) -> DataSnapshot:
        n = len(self.time)
        if self.dataset:
            dataset = np.array([column.to_list() for column in self.dataset], dtype=np.float64)
        else:
            dataset = np.empty((0, n), dtype=np.float64)
        return DataSnapshot(
            names=tuple(self.names),
            time=np.fromiter(self.time, dtype=np.float64, count=n),
            absolute_time=np.fromiter(self.absolute_time, dtype=np.float64, count=len(self.absolute_time)),
            dataset=dataset,
            raw_traffic=tuple(self.raw_traffic),
        )
