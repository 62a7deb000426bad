"""Background writer that appends accepted samples to a CSV recording."""

from __future__ import annotations

import csv
from dataclasses import dataclass
import logging
from pathlib import Path
from queue import Empty, Queue
import threading
from typing import IO, Optional

from ..core.console import Console, Print
from ..core.models import RecordData
from ..core.relay import RecordingRelay
from ..core.shared import SharedStore

logger = logging.getLogger(__name__)

TIMESTAMP_HEADER = "timestamp"


@dataclass(frozen=True)
class RecordOptions:
    enable: bool = False
    file_path: Optional[Path] = None


class RecordingWorker:
    """
    Drains a :class:`RecordingRelay` and writes each sample as a CSV row.

    Options arrive through :meth:`set_options` and are applied between
    samples. Samples received while recording is off are discarded. Any I/O
    error is reported on the console and switches recording off; ingestion is
    never affected.
    """

    def __init__(
        self,
        relay: RecordingRelay,
        store: SharedStore,
        console: Console,
        *,
        poll_interval_s: float = 0.05,
        lock_timeout_s: float = 1.0,
    ) -> None:
        self._relay = relay
        self._store = store
        self._console = console
        self._poll_interval_s = max(0.001, float(poll_interval_s))
        self._lock_timeout_s = lock_timeout_s
        self._options_queue: Queue[RecordOptions] = Queue()
        self._file: Optional[IO[str]] = None
        self._writer = None
        self.path: Optional[Path] = None
        self.rows_written = 0

    @property
    def recording(self) -> bool:
        return self._file is not None

    def set_options(self, options: RecordOptions) -> None:
        self._options_queue.put(options)

    # ------------------------------------------------------------------ worker
    def step(self, timeout: Optional[float] = None) -> bool:
        """Apply pending options and write at most one sample.

        Returns ``True`` if a sample was taken from the relay.
        """
        self._drain_options()
        sample = self._relay.get(timeout=timeout)
        if sample is None:
            return False
        if self._file is not None:
            self._write(sample)
        return True

    def run(self, stop_event: threading.Event) -> None:
        try:
            while not stop_event.is_set():
                self.step(timeout=self._poll_interval_s)
            # Flush whatever the engine already handed over.
            while self.step(timeout=0.0):
                pass
        finally:
            self._close()

    def start(self, *, thread_name: Optional[str] = None) -> "RecordingHandle":
        stop_event = threading.Event()
        thread = threading.Thread(
            target=self.run,
            args=(stop_event,),
            name=thread_name or "QcmRecorder",
            daemon=True,
        )
        thread.start()
        return RecordingHandle(thread=thread, stop_event=stop_event, worker=self)

    # ----------------------------------------------------------------- helpers
    def _drain_options(self) -> None:
        while True:
            try:
                options = self._options_queue.get_nowait()
            except Empty:
                return
            self._apply_options(options)

    def _apply_options(self, options: RecordOptions) -> None:
        if not options.enable or options.file_path is None:
            if self._file is not None:
                self._console.push(Print.ok(f"stopped recording to {self.path}"))
            self._close()
            return
        path = Path(options.file_path)
        if self._file is not None and path == self.path:
            return
        self._close()
        self._open(path)

    def _open(self, path: Path) -> None:
        try:
            names = self._store.snapshot(self._lock_timeout_s).names
        except Exception:
            logger.debug("Could not read channel names for %s", path, exc_info=True)
            names = ()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fh = path.open("w", newline="", encoding="utf-8")
        except OSError as exc:
            logger.warning("Cannot open recording file %s", path, exc_info=True)
            self._console.push(Print.error(f"failed to start recording to {path}: {exc}"))
            return
        self._file = fh
        self._writer = csv.writer(fh)
        self.path = path
        self._writer.writerow([TIMESTAMP_HEADER, *names])
        self._console.push(Print.ok(f"recording to {path}"))

    def _write(self, sample: RecordData) -> None:
        try:
            self._writer.writerow([sample.time, *sample.datas])
            self.rows_written += 1
        except OSError as exc:
            logger.warning("Recording to %s failed", self.path, exc_info=True)
            self._console.push(Print.error(f"failed to record to {self.path}: {exc}"))
            self._close()

    def _close(self) -> None:
        fh = self._file
        self._file = None
        self._writer = None
        if fh is None:
            return
        try:
            fh.close()
        except OSError:
            logger.warning("Error closing recording file %s", self.path, exc_info=True)


@dataclass
class RecordingHandle:
    thread: threading.Thread
    stop_event: threading.Event
    worker: RecordingWorker

    def stop(self, *, join: bool = False, timeout: Optional[float] = None) -> None:
        self.stop_event.set()
        if join:
            self.thread.join(timeout)

    def is_alive(self) -> bool:
        return self.thread.is_alive()
