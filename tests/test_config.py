from __future__ import annotations

from pathlib import Path

import pytest

from qcmstream.config import EngineConfig, config_from_mapping, load_config
from qcmstream.core.models import DisplayWindow


def test_defaults_when_missing(tmp_path: Path) -> None:
    assert load_config(None) == EngineConfig()
    assert load_config(tmp_path / "missing.yaml") == EngineConfig()


def test_load_yaml_with_engine_block(tmp_path: Path) -> None:
    path = tmp_path / "engine.yaml"
    path.write_text(
        "engine:\n  buffer_size: 250\n  raw_traffic_enabled: true\n  display_window: PLOT\nunknown: 1\n",
        encoding="utf-8",
    )
    cfg = load_config(path)
    assert cfg.buffer_size == 250
    assert cfg.raw_traffic.enable is True
    assert cfg.window is DisplayWindow.PLOT


def test_values_are_clamped() -> None:
    cfg = config_from_mapping({"buffer_size": 0, "poll_interval_s": -1, "record_queue_size": 0})
    assert cfg.buffer_size == 1
    assert cfg.poll_interval_s == 0.001
    assert cfg.record_queue_size == 1


def test_bad_window_rejected() -> None:
    with pytest.raises(ValueError):
        config_from_mapping({"display_window": "nope"})


def test_non_mapping_yaml_rejected(tmp_path: Path) -> None:
    path = tmp_path / "list.yaml"
    path.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(path)


def test_zero_poll_interval_gets_floor_and_zero_raw_window_kept() -> None:
    cfg = config_from_mapping({"poll_interval_s": 0, "raw_traffic_max_len": 0})
    assert cfg.poll_interval_s > 0
    assert cfg.raw_traffic.max_len == 0
