"""Channel-count tracking for the incoming data stream.

Each parsed data line is judged against the current dataset width:

* ``RESET``    – the store is empty, too many consecutive lines had a
  different width, or a command asked for a fresh table. The store is
  reallocated to the line's width and the line itself is consumed.
* ``ACCEPT``   – the width matches; the caller appends the values.
* ``TOLERATE`` – the width differs but the mismatch streak is still within
  :data:`MISMATCH_THRESHOLD`; the line is dropped. The line that pushes the
  streak past the threshold resets the store instead.
"""

from __future__ import annotations

from enum import Enum
import logging

from .timeseries_buffer import DataContainer

logger = logging.getLogger(__name__)

MISMATCH_THRESHOLD = 10
# Any value above the threshold works; it only has to trip the next check.
FORCED_RESET_COUNT = 20


class SchemaDecision(Enum):
    RESET = "reset"
    ACCEPT = "accept"
    TOLERATE = "tolerate"


class ChannelSchema:
    def __init__(self) -> None:
        self.mismatch_count = 0

    def evaluate(self, container: DataContainer, width: int) -> SchemaDecision:
        if (
            not container.dataset
            or self.mismatch_count > MISMATCH_THRESHOLD
            or not container.is_consistent()
        ):
            logger.debug(
                "Resetting dataset: width %d -> %d (mismatches=%d)",
                container.width,
                width,
                self.mismatch_count,
            )
            container.reset_columns(width)
            self.mismatch_count = 0
            return SchemaDecision.RESET

        if width == container.width:
            self.mismatch_count = 0
            return SchemaDecision.ACCEPT

        self.mismatch_count += 1
        if self.mismatch_count > MISMATCH_THRESHOLD:
            logger.debug("Width %d persisted for %d lines, adopting it", width, self.mismatch_count)
            container.reset_columns(width)
            self.mismatch_count = 0
            return SchemaDecision.RESET

        logger.debug(
            "Width mismatch: line has %d values, store has %d (streak %d)",
            width,
            container.width,
            self.mismatch_count,
        )
        return SchemaDecision.TOLERATE

    def force_reset(self) -> None:
        """Make the next :meth:`evaluate` start a fresh table."""
        self.mismatch_count = FORCED_RESET_COUNT

    def clear(self) -> None:
        self.mismatch_count = 0
