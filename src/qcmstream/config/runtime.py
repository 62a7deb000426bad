"""Runtime configuration for the ingest engine."""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping, MutableMapping

import yaml

from ..core.models import DisplayWindow, RawTrafficOptions


@dataclass(slots=True)
class EngineConfig:
    """
    Tuning knobs for buffering, polling and the hand-off queues.

    The defaults keep roughly the last 5000 samples per channel and poll the
    input queues every millisecond.
    """

    buffer_size: int = 5000
    raw_traffic_enabled: bool = False
    raw_traffic_max_len: int = 1000

    # Consumer loop
    poll_interval_s: float = 0.001
    lock_timeout_s: float = 0.05

    # Thread bridge sizing
    record_queue_size: int = 1024
    event_queue_size: int = 256
    console_max_len: int = 2000

    display_window: str = DisplayWindow.RAW_UART.value

    def sanitized(self) -> EngineConfig:
        """Return a copy with limits applied."""
        window = str(self.display_window).strip().lower()
        if window not in {w.value for w in DisplayWindow}:
            raise ValueError(f"Unknown display_window {self.display_window!r}")
        return EngineConfig(
            buffer_size=max(1, int(self.buffer_size)),
            raw_traffic_enabled=bool(self.raw_traffic_enabled),
            raw_traffic_max_len=max(0, int(self.raw_traffic_max_len)),
            poll_interval_s=max(0.001, float(self.poll_interval_s)),
            lock_timeout_s=max(0.001, float(self.lock_timeout_s)),
            record_queue_size=max(1, int(self.record_queue_size)),
            event_queue_size=max(1, int(self.event_queue_size)),
            console_max_len=max(1, int(self.console_max_len)),
            display_window=window,
        )

    @property
    def window(self) -> DisplayWindow:
        return DisplayWindow(self.display_window)

    @property
    def raw_traffic(self) -> RawTrafficOptions:
        return RawTrafficOptions(enable=self.raw_traffic_enabled, max_len=self.raw_traffic_max_len)


def _recognized_fields() -> set[str]:
    """Return the dataclass field names accepted by :class:`EngineConfig`."""
    return {f.name for f in fields(EngineConfig)}


def _normalize_mapping(data: Mapping[str, Any]) -> MutableMapping[str, Any]:
    """Flatten a top-level ``engine`` block into the root mapping."""
    if "engine" in data and isinstance(data["engine"], Mapping):
        merged: MutableMapping[str, Any] = {}
        for key, value in data.items():
            if key == "engine":
                merged.update(value)
            else:
                merged[key] = value
        return merged
    return dict(data)


def config_from_mapping(data: Mapping[str, Any] | None) -> EngineConfig:
    """Build :class:`EngineConfig` from ``data`` (ignoring unknown keys)."""
    if not data:
        return EngineConfig()
    normalized = _normalize_mapping(data)
    known = _recognized_fields()
    payload = {key: normalized[key] for key in normalized.keys() & known}
    return EngineConfig(**payload).sanitized()


def load_config(path: str | Path | None) -> EngineConfig:
    """
    Load configuration from ``path``.

    Missing files fall back to default :class:`EngineConfig`.
    """
    if path is None:
        return EngineConfig()
    cfg_path = Path(path)
    if not cfg_path.exists():
        return EngineConfig()
    with cfg_path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh) or {}
    if not isinstance(raw, Mapping):
        raise ValueError(f"Expected mapping in {cfg_path}, got {type(raw).__name__}")
    return config_from_mapping(raw)


__all__ = ["EngineConfig", "config_from_mapping", "load_config"]
