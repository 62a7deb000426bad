from __future__ import annotations

import csv
from pathlib import Path

import pytest

from qcmstream.core.console import Console, PrintLevel
from qcmstream.core.control import (
    Clear,
    ControlApplier,
    EngineState,
    SaveCsv,
    SetBufferSize,
    SetDisplayWindow,
    SetNames,
    SetRawTrafficOptions,
)
from qcmstream.core.models import DisplayWindow, FileOptions, RawTrafficOptions
from qcmstream.core.shared import LockTimeout, SharedStore


def _filled_store(rows: int = 3) -> SharedStore:
    store = SharedStore(capacity=10)
    with store.write() as data:
        data.reset_columns(2)
        data.names = ["a", "b"]
        for i in range(rows):
            data.append_row(0.1 * i, 100.0 + i, [i, 10 * i])
    return store


def _applier(store: SharedStore, **kwargs) -> tuple[ControlApplier, EngineState, Console]:
    state = EngineState()
    console = Console()
    return ControlApplier(store, state, console, lock_timeout=0.05, **kwargs), state, console


def _read_csv(path: Path) -> list[list[str]]:
    with path.open(newline="", encoding="utf-8") as fh:
        return list(csv.reader(fh))


def test_simple_settings() -> None:
    store = _filled_store()
    applier, state, _ = _applier(store)

    applier.apply(SetRawTrafficOptions(RawTrafficOptions(enable=True, max_len=7)))
    applier.apply(SetDisplayWindow(DisplayWindow.QCM_CONTROL))
    applier.apply(SetNames(["x", "y"]))

    assert state.raw_traffic == RawTrafficOptions(enable=True, max_len=7)
    assert state.display_window is DisplayWindow.QCM_CONTROL
    assert store.snapshot().names == ("x", "y")


def test_buffer_size_applies_on_next_append() -> None:
    store = _filled_store(rows=5)
    applier, _, _ = _applier(store)
    applier.apply(SetBufferSize(2))
    with store.read() as data:
        assert data.capacity == 2
    assert store.snapshot().n_samples == 5

    with store.write() as data:
        data.append_row(1.0, 1.0, [7.0, 8.0])
    snap = store.snapshot()
    assert snap.n_samples == 2
    assert snap.dataset.tolist() == [[4.0, 7.0], [40.0, 8.0]]


def test_clear() -> None:
    store = _filled_store()
    applier, state, _ = _applier(store)
    state.schema.force_reset()
    applier.apply(Clear())
    snap = store.snapshot()
    assert snap.n_samples == 0
    assert snap.n_channels == 0
    assert snap.names == ()
    assert state.schema.mismatch_count == 0


def test_save_csv_writes_selected_columns(tmp_path: Path) -> None:
    store = _filled_store()
    applier, _, console = _applier(store)
    target = tmp_path / "out" / "data.csv"

    applier.apply(SaveCsv(FileOptions(file_path=target, save_absolute_time=True, names=["b"])))

    rows = _read_csv(target)
    assert rows[0] == ["time", "absolute time", "b"]
    assert [float(v) for v in rows[2]] == pytest.approx([0.1, 101.0, 10.0])
    assert len(rows) == 4
    last = console.messages()[-1]
    assert last.level is PrintLevel.OK
    assert str(target) in last.text


def test_save_csv_all_channels(tmp_path: Path) -> None:
    store = _filled_store(rows=1)
    applier, _, _ = _applier(store)
    target = tmp_path / "all.csv"
    applier.apply(SaveCsv(FileOptions(file_path=target)))
    assert _read_csv(target) == [["time", "a", "b"], ["0.0", "0.0", "0.0"]]


def test_save_failure_is_reported(tmp_path: Path) -> None:
    store = SharedStore()
    applier, _, console = _applier(store)
    target = tmp_path / "empty.csv"

    applier.apply(SaveCsv(FileOptions(file_path=target)))

    assert not target.exists()
    last = console.messages()[-1]
    assert last.level is PrintLevel.ERROR
    assert "failed to save file to" in last.text
    assert "no data to save" in last.text


def test_save_with_unknown_column_is_reported(tmp_path: Path) -> None:
    store = _filled_store()
    applier, _, console = _applier(store)
    applier.apply(SaveCsv(FileOptions(file_path=tmp_path / "x.csv", names=["nope"])))
    assert console.messages()[-1].level is PrintLevel.ERROR


def test_custom_saver_receives_snapshot(tmp_path: Path) -> None:
    seen = []
    store = _filled_store()
    applier, _, _ = _applier(store, saver=lambda snap, opts: seen.append((snap.n_samples, opts.file_path)))
    applier.apply(SaveCsv(FileOptions(file_path=tmp_path / "y.csv")))
    assert seen == [(3, tmp_path / "y.csv")]


def test_lock_timeout_propagates() -> None:
    store = _filled_store()
    applier, _, _ = _applier(store)
    with store.read():
        with pytest.raises(LockTimeout):
            applier.apply(Clear())
    assert store.snapshot().n_samples == 3
