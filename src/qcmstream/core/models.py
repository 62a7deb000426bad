"""Shared dataclasses for packets, recorded samples and file options."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
import time
from typing import Optional, Sequence


@dataclass(frozen=True)
class Packet:
    """One line received from the instrument link.

    ``relative_time`` is seconds since the stream started, ``absolute_time``
    is wall-clock seconds since the UNIX epoch.
    """

    payload: str
    relative_time: float
    absolute_time: float

    @classmethod
    def now(cls, payload: str, started_at: float) -> "Packet":
        """Stamp ``payload`` with the current clock; ``started_at`` is a ``time.time()`` value."""
        absolute = time.time()
        return cls(payload=payload, relative_time=absolute - started_at, absolute_time=absolute)


@dataclass
class RecordData:
    time: float
    datas: list[float]


@dataclass(frozen=True)
class RawTrafficOptions:
    enable: bool = False
    max_len: int = 1000


@dataclass(frozen=True)
class FileOptions:
    """Destination and column selection for a CSV export.

    ``names`` restricts the exported channels; ``None`` exports all of them.
    """

    file_path: Path
    save_absolute_time: bool = False
    names: Optional[Sequence[str]] = field(default=None)


class DisplayWindow(Enum):
    """Which view the user has open.

    ``RAW_UART`` passes ``$`` lines through untouched; every other window
    decodes them as instrument commands.
    """

    RAW_UART = "raw_uart"
    QCM_CONTROL = "qcm_control"
    PLOT = "plot"

    @property
    def decodes_commands(self) -> bool:
        return self is not DisplayWindow.RAW_UART
