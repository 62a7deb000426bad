"""Core ingest engine: line parsing, the QCM command protocol and buffers.

This package sits between the transport that yields raw lines and the display
that reads the shared store. It classifies lines, decodes instrument commands,
tracks the channel layout and keeps the sliding-window time series.
"""

# Data structures shared by the engine and its readers
from .ringbuffer import SlidingWindow
from .timeseries_buffer import DataContainer, DataSnapshot
from .shared import LockTimeout, RWLock, SharedStore

# Protocol and parsing
from .models import DisplayWindow, FileOptions, Packet, RawTrafficOptions, RecordData
from .parsing import ClassifiedLine, LineKind, classify_line, split_payload
from .protocol import CHANNEL_LABELS, QcmEvent, QcmEventKind, decode_command
from .schema import ChannelSchema, SchemaDecision

# Controllers and wiring
from .console import Console, Print, PrintLevel
from .control import (
    Clear,
    ControlApplier,
    ControlCommand,
    EngineState,
    SaveCsv,
    SetBufferSize,
    SetDisplayWindow,
    SetNames,
    SetRawTrafficOptions,
)
from .relay import RecordingRelay
from .engine import CLOSED, EngineHandle, IngestEngine, start_engine

__all__ = [
    "SlidingWindow",
    "DataContainer",
    "DataSnapshot",
    "LockTimeout",
    "RWLock",
    "SharedStore",
    "DisplayWindow",
    "FileOptions",
    "Packet",
    "RawTrafficOptions",
    "RecordData",
    "ClassifiedLine",
    "LineKind",
    "classify_line",
    "split_payload",
    "CHANNEL_LABELS",
    "QcmEvent",
    "QcmEventKind",
    "decode_command",
    "ChannelSchema",
    "SchemaDecision",
    "Console",
    "Print",
    "PrintLevel",
    "Clear",
    "ControlApplier",
    "ControlCommand",
    "EngineState",
    "SaveCsv",
    "SetBufferSize",
    "SetDisplayWindow",
    "SetNames",
    "SetRawTrafficOptions",
    "RecordingRelay",
    "CLOSED",
    "EngineHandle",
    "IngestEngine",
    "start_engine",
]
