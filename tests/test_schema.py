from __future__ import annotations

from qcmstream.core.schema import (
    FORCED_RESET_COUNT,
    MISMATCH_THRESHOLD,
    ChannelSchema,
    SchemaDecision,
)
from qcmstream.core.timeseries_buffer import DataContainer


def _accept(schema: ChannelSchema, data: DataContainer, values: list[float], t: float = 0.0) -> SchemaDecision:
    decision = schema.evaluate(data, len(values))
    if decision is SchemaDecision.ACCEPT:
        data.append_row(t, t, values)
    return decision


def test_first_line_resets_then_matching_lines_accept() -> None:
    schema = ChannelSchema()
    data = DataContainer()
    assert _accept(schema, data, [1.0, 2.0]) is SchemaDecision.RESET
    assert data.width == 2
    assert len(data.time) == 0
    assert _accept(schema, data, [1.0, 2.0]) is SchemaDecision.ACCEPT
    assert len(data.time) == 1


def test_mismatches_are_tolerated_up_to_threshold() -> None:
    schema = ChannelSchema()
    data = DataContainer()
    _accept(schema, data, [1.0, 2.0])
    _accept(schema, data, [1.0, 2.0])

    for i in range(MISMATCH_THRESHOLD):
        assert _accept(schema, data, [1.0, 2.0, 3.0]) is SchemaDecision.TOLERATE
        assert schema.mismatch_count == i + 1
    assert data.width == 2
    assert len(data.dataset[0]) == 1

    assert _accept(schema, data, [1.0, 2.0, 3.0]) is SchemaDecision.RESET
    assert data.width == 3
    assert all(len(col) == 0 for col in data.dataset)
    assert len(data.time) == 0
    assert schema.mismatch_count == 0


def test_matching_line_clears_mismatch_streak() -> None:
    schema = ChannelSchema()
    data = DataContainer()
    _accept(schema, data, [1.0])
    for _ in range(5):
        _accept(schema, data, [1.0, 2.0])
    assert schema.mismatch_count == 5
    assert _accept(schema, data, [3.0]) is SchemaDecision.ACCEPT
    assert schema.mismatch_count == 0


def test_force_reset_trips_next_evaluation() -> None:
    schema = ChannelSchema()
    data = DataContainer()
    _accept(schema, data, [1.0, 2.0])
    _accept(schema, data, [1.0, 2.0])
    schema.force_reset()
    assert schema.mismatch_count == FORCED_RESET_COUNT > MISMATCH_THRESHOLD

    assert _accept(schema, data, [1.0, 2.0]) is SchemaDecision.RESET
    assert len(data.time) == 0
    assert _accept(schema, data, [5.0, 6.0]) is SchemaDecision.ACCEPT


def test_inconsistent_store_is_reset() -> None:
    schema = ChannelSchema()
    data = DataContainer()
    data.reset_columns(1)
    data.dataset[0].append(1.0)
    assert not data.is_consistent()
    assert _accept(schema, data, [1.0]) is SchemaDecision.RESET
    assert data.is_consistent()
