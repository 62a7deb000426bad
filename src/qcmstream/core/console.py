"""Leveled, user-visible message list shown in the console panel."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
import threading

from .ringbuffer import SlidingWindow

logger = logging.getLogger(__name__)

DEFAULT_CONSOLE_LEN = 2000


class PrintLevel(Enum):
    EMPTY = "empty"
    OK = "ok"
    ERROR = "error"
    DEBUG = "debug"


_LOG_LEVELS = {
    PrintLevel.EMPTY: logging.DEBUG,
    PrintLevel.OK: logging.INFO,
    PrintLevel.ERROR: logging.ERROR,
    PrintLevel.DEBUG: logging.DEBUG,
}


@dataclass(frozen=True)
class Print:
    level: PrintLevel
    text: str = ""

    @classmethod
    def ok(cls, text: str) -> "Print":
        return cls(PrintLevel.OK, text)

    @classmethod
    def error(cls, text: str) -> "Print":
        return cls(PrintLevel.ERROR, text)

    @classmethod
    def debug(cls, text: str) -> "Print":
        return cls(PrintLevel.DEBUG, text)

    @classmethod
    def empty(cls) -> "Print":
        return cls(PrintLevel.EMPTY)


class Console:
    """Thread-safe bounded list of :class:`Print` messages.

    Every message is also forwarded to :mod:`logging`.
    """

    def __init__(self, max_len: int = DEFAULT_CONSOLE_LEN) -> None:
        self._messages: SlidingWindow[Print] = SlidingWindow(max_len, [Print.empty()])
        self._lock = threading.Lock()

    def push(self, message: Print) -> None:
        with self._lock:
            self._messages.append(message)
        if message.level is not PrintLevel.EMPTY:
            logger.log(_LOG_LEVELS[message.level], "%s", message.text)

    def messages(self) -> list[Print]:
        with self._lock:
            return self._messages.to_list()

    def __len__(self) -> int:
        with self._lock:
            return len(self._messages)
