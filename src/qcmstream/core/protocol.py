"""Decoder for ``$``-prefixed QCM instrument command lines.

A command line looks like ``$OPCODE$arg``. The opcode vocabulary is closed;
anything outside it, or with a missing or malformed argument, decodes to
``None`` and is silently dropped by the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
from typing import Callable, Mapping, Optional, Sequence, Union

from .parsing import parse_integer, parse_number

logger = logging.getLogger(__name__)

EventValue = Union[int, float, None]


class QcmEventKind(Enum):
    BIAS_DETECT_START = "bias_detect_start"
    BIAS_RESULT = "bias_result"
    PHASE_BASE_DETECT_START = "phase_base_detect_start"
    PHASE_BASE_RESULT = "phase_base_result"
    SHOT_IQ_START = "shot_iq_start"
    SHOT_IQ_FINISH = "shot_iq_finish"
    REALTIME_IQ_START = "realtime_iq_start"
    REALTIME_IQ_FINISH = "realtime_iq_finish"
    TRACK_START = "track_start"
    MULTI_PARAMS_START = "multi_params_start"


INT32_MIN, INT32_MAX = -(2**31), 2**31 - 1
INDEX_MAX = 2**64 - 1


def _parse_int(token: str) -> int:
    value = parse_integer(token)
    if not INT32_MIN <= value <= INT32_MAX:
        raise ValueError(f"{value} does not fit in 32 bits")
    return value


def _parse_index(token: str) -> int:
    value = parse_integer(token)
    if not 0 <= value <= INDEX_MAX:
        raise ValueError(f"index {value} out of range")
    return value


def _parse_float(token: str) -> float:
    return parse_number(token)


ArgParser = Optional[Callable[[str], EventValue]]


@dataclass(frozen=True)
class OpcodeSpec:
    kind: QcmEventKind
    parse_arg: ArgParser = None


OPCODES: Mapping[str, OpcodeSpec] = {
    "BIASST": OpcodeSpec(QcmEventKind.BIAS_DETECT_START),
    "BIAS": OpcodeSpec(QcmEventKind.BIAS_RESULT, _parse_int),
    "PHAST": OpcodeSpec(QcmEventKind.PHASE_BASE_DETECT_START),
    "PHABASE": OpcodeSpec(QcmEventKind.PHASE_BASE_RESULT, _parse_float),
    "SHOTST": OpcodeSpec(QcmEventKind.SHOT_IQ_START, _parse_index),
    "SHOTFIN": OpcodeSpec(QcmEventKind.SHOT_IQ_FINISH, _parse_index),
    "RTST": OpcodeSpec(QcmEventKind.REALTIME_IQ_START, _parse_index),
    "RTFIN": OpcodeSpec(QcmEventKind.REALTIME_IQ_FINISH, _parse_index),
    "TRACKST": OpcodeSpec(QcmEventKind.TRACK_START, _parse_index),
    "MULPARAST": OpcodeSpec(QcmEventKind.MULTI_PARAMS_START, _parse_index),
}

# Label sets installed when a measurement starts; the next data line must
# match their width.
CHANNEL_LABELS: Mapping[QcmEventKind, tuple[str, ...]] = {
    QcmEventKind.BIAS_DETECT_START: ("Cur. Bias", "Avg. Bias"),
    QcmEventKind.PHASE_BASE_DETECT_START: ("Cur. Phase", "Avg. Phase", "Cur. Amp"),
    QcmEventKind.SHOT_IQ_START: ("Freq.", "G Resp.", "B Resp."),
    QcmEventKind.REALTIME_IQ_START: ("Freq.", "Resp."),
    QcmEventKind.TRACK_START: ("Cur. Reson. Freq.", "Cur. B Resp."),
    QcmEventKind.MULTI_PARAMS_START: ("Cur. Reson. Freq.", "Max. G Resp.", "Q Factor"),
}


@dataclass(frozen=True)
class QcmEvent:
    kind: QcmEventKind
    value: EventValue = None

    @property
    def channel_labels(self) -> Optional[tuple[str, ...]]:
        """Label set this event installs, or ``None`` for result/finish events."""
        return CHANNEL_LABELS.get(self.kind)

    @property
    def starts_measurement(self) -> bool:
        return self.kind in CHANNEL_LABELS


def decode_command(tokens: Sequence[str]) -> Optional[QcmEvent]:
    """Map ``[opcode, *args]`` to a :class:`QcmEvent`, or ``None`` if it is not one."""
    if not tokens:
        return None
    spec = OPCODES.get(tokens[0])
    if spec is None:
        logger.debug("Unknown opcode %r", tokens[0])
        return None
    if spec.parse_arg is None:
        return QcmEvent(spec.kind)
    if len(tokens) < 2:
        logger.debug("Opcode %s is missing its argument", tokens[0])
        return None
    try:
        value = spec.parse_arg(tokens[1])
    except ValueError as exc:
        logger.debug("Bad argument for %s: %r (%s)", tokens[0], tokens[1], exc)
        return None
    return QcmEvent(spec.kind, value)
