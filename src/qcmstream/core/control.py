"""Configuration commands sent by the display and how they are applied."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Callable, Optional, Sequence, Union

from ..tools.debug import time_block
from .console import Console, Print
from .models import DisplayWindow, FileOptions, RawTrafficOptions
from .schema import ChannelSchema
from .shared import SharedStore
from .timeseries_buffer import DataSnapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SetRawTrafficOptions:
    options: RawTrafficOptions


@dataclass(frozen=True)
class SetBufferSize:
    size: int


@dataclass(frozen=True)
class SetNames:
    names: Sequence[str]

    def __post_init__(self) -> None:
        object.__setattr__(self, "names", tuple(self.names))


@dataclass(frozen=True)
class SaveCsv:
    options: FileOptions


@dataclass(frozen=True)
class SetDisplayWindow:
    window: DisplayWindow


@dataclass(frozen=True)
class Clear:
    pass


ControlCommand = Union[SetRawTrafficOptions, SetBufferSize, SetNames, SaveCsv, SetDisplayWindow, Clear]
CsvSaver = Callable[[DataSnapshot, FileOptions], object]


@dataclass
class EngineState:
    """Settings owned by the ingest loop rather than the shared store."""

    raw_traffic: RawTrafficOptions = field(default_factory=RawTrafficOptions)
    display_window: DisplayWindow = DisplayWindow.RAW_UART
    schema: ChannelSchema = field(default_factory=ChannelSchema)


class ControlApplier:
    """Applies one :data:`ControlCommand` at a time against the store.

    Lock timeouts propagate as :class:`~qcmstream.core.shared.LockTimeout` so
    the caller can retry the command on its next tick.
    """

    def __init__(
        self,
        store: SharedStore,
        state: EngineState,
        console: Console,
        *,
        saver: Optional[CsvSaver] = None,
        lock_timeout: Optional[float] = None,
    ) -> None:
        if saver is None:
            from ..dataio.csv_writer import save_to_csv as saver
        self._store = store
        self._state = state
        self._console = console
        self._saver = saver
        self._lock_timeout = lock_timeout

    def apply(self, command: ControlCommand) -> None:
        if isinstance(command, SetRawTrafficOptions):
            self._state.raw_traffic = command.options
        elif isinstance(command, SetBufferSize):
            size = max(1, int(command.size))
            with self._store.write(self._lock_timeout) as data:
                data.set_capacity(size)
        elif isinstance(command, SetNames):
            with self._store.write(self._lock_timeout) as data:
                data.names = list(command.names)
        elif isinstance(command, SaveCsv):
            self._save(command.options)
        elif isinstance(command, SetDisplayWindow):
            self._state.display_window = command.window
        elif isinstance(command, Clear):
            with self._store.write(self._lock_timeout) as data:
                data.clear()
                self._state.schema.clear()
        else:
            raise TypeError(f"unsupported control command {command!r}")

    def _save(self, options: FileOptions) -> None:
        snapshot = self._store.snapshot(self._lock_timeout)
        try:
            with time_block(f"csv export to {options.file_path}"):
                self._saver(snapshot, options)
        except (OSError, ValueError) as exc:
            logger.warning("CSV export to %s failed", options.file_path, exc_info=True)
            self._console.push(Print.error(f"failed to save file to {options.file_path}: {exc}"))
        else:
            self._console.push(Print.ok(f"saved data file to {options.file_path}"))
