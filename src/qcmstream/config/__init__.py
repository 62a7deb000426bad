"""Configuration objects and helpers for qcmstream.

:mod:`runtime` loads an optional YAML file into :class:`EngineConfig`, which
sizes the sliding windows, the hand-off queues and the consumer poll rate.
"""

from .runtime import EngineConfig, config_from_mapping, load_config

__all__ = ["EngineConfig", "config_from_mapping", "load_config"]
