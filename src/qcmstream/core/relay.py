"""Non-blocking hand-off of accepted samples to the recording thread."""

from __future__ import annotations

import logging
from queue import Empty, Full, Queue
import threading
from typing import Optional

from .models import RecordData

logger = logging.getLogger(__name__)

DEFAULT_RECORD_QUEUE_SIZE = 1024


def offer_queue(queue: Queue, item: object) -> bool:
    """Best-effort put that drops the oldest payload when the queue is full.

    Returns ``False`` if the item could not be queued at all.
    """
    try:
        queue.put_nowait(item)
        return True
    except Full:
        try:
            queue.get_nowait()
        except Empty:
            pass
        try:
            queue.put_nowait(item)
            return True
        except Full:
            return False


class RecordingRelay:
    """Forwards :class:`RecordData` to a bounded queue without ever blocking.

    When the consumer falls behind the oldest samples are discarded; after
    :meth:`close` offers are ignored.
    """

    def __init__(self, maxsize: int = DEFAULT_RECORD_QUEUE_SIZE) -> None:
        self.queue: Queue[RecordData] = Queue(maxsize=max(1, int(maxsize)))
        self._closed = threading.Event()
        self.dropped = 0

    def offer(self, sample: RecordData) -> None:
        if self._closed.is_set():
            return
        if self.queue.full():
            self.dropped += 1
        if not offer_queue(self.queue, sample):
            logger.debug("Recording queue rejected sample at %.3f", sample.time)

    def get(self, timeout: Optional[float] = None) -> Optional[RecordData]:
        """Return the next sample, or ``None`` if none arrived within ``timeout``."""
        try:
            return self.queue.get(timeout=timeout)
        except Empty:
            return None

    def close(self) -> None:
        self._closed.set()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()
