"""Line classification and numeric payload parsing."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
from typing import Optional

logger = logging.getLogger(__name__)

DEBUG_MARKER = "#"
COMMAND_MARKER = "$"
GROUP_SEPARATOR = ":"
VALUE_SEPARATOR = ","


class LineKind(Enum):
    DEBUG = "debug"
    COMMAND = "command"
    DATA = "data"


@dataclass(frozen=True)
class ClassifiedLine:
    kind: LineKind
    body: str
    tokens: tuple[str, ...] = ()


def classify_line(payload: str) -> Optional[ClassifiedLine]:
    """Route a raw line by its first character.

    ``#`` lines carry a debug message, ``$`` lines a ``$``-separated command
    and anything else is treated as data. Empty lines return ``None``.
    """
    if not payload:
        return None
    head = payload[0]
    if head == DEBUG_MARKER:
        return ClassifiedLine(LineKind.DEBUG, payload[1:])
    if head == COMMAND_MARKER:
        body = payload[1:]
        return ClassifiedLine(LineKind.COMMAND, body, tuple(body.split(COMMAND_MARKER)))
    return ClassifiedLine(LineKind.DATA, payload)


def parse_number(token: str) -> float:
    """Parse one trimmed decimal token. Digit separators and non-ASCII digits are rejected."""
    return float(_plain_token(token))


def parse_integer(token: str) -> int:
    return int(_plain_token(token), 10)


def _plain_token(token: str) -> str:
    text = token.strip()
    if "_" in text or not text.isascii():
        raise ValueError(f"not a plain decimal number: {token!r}")
    return text


def split_payload(payload: str) -> list[float]:
    """
    Split ``payload`` into floats.

    Groups are separated by ``:`` and values inside a group by ``,``. Tokens
    that do not parse as a float are dropped, the rest keep their order.
    """
    values: list[float] = []
    dropped = 0
    for group in payload.split(GROUP_SEPARATOR):
        for token in group.split(VALUE_SEPARATOR):
            try:
                values.append(parse_number(token))
            except ValueError:
                dropped += 1
    if dropped:
        logger.debug("Dropped %d non-numeric token(s) from %r", dropped, payload)
    return values
