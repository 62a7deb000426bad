"""Feed a captured instrument log through the ingest engine.

Stands in for the serial transport: each line of the input file (or stdin)
becomes a :class:`~qcmstream.core.models.Packet`. Console messages are
printed once the replay ends and the final store can be exported to CSV.
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Iterable, Sequence, TextIO

from ..config import EngineConfig, load_config
from ..core.console import PrintLevel
from ..core.control import SaveCsv, SetDisplayWindow
from ..core.engine import IngestEngine, start_engine
from ..core.models import DisplayWindow, FileOptions, Packet
from ..dataio.recording import RecordingWorker, RecordOptions

logger = logging.getLogger(__name__)

_PREFIX = {
    PrintLevel.OK: "[OK]",
    PrintLevel.ERROR: "[ERROR]",
    PrintLevel.DEBUG: "[DEBUG]",
}


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Replay a QCM serial log through the ingest engine.")
    parser.add_argument(
        "input",
        nargs="?",
        default="-",
        help="Log file to replay, one line per packet (default: stdin).",
    )
    parser.add_argument("--config", type=Path, help="Optional YAML file with EngineConfig overrides")
    parser.add_argument("--buffer-size", type=int, help="Samples kept per channel")
    parser.add_argument(
        "--window",
        choices=[w.value for w in DisplayWindow],
        help="Display window; 'raw_uart' ignores $ command lines",
    )
    parser.add_argument(
        "--rate",
        type=float,
        default=0.0,
        help="Lines per second to replay at (default: as fast as possible)",
    )
    parser.add_argument("--save", type=Path, help="Export the final store to this CSV file")
    parser.add_argument(
        "--absolute-time",
        action="store_true",
        help="Include the absolute timestamp column in --save output",
    )
    parser.add_argument("--record", type=Path, help="Record every accepted sample to this CSV file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def _resolve_config(args: argparse.Namespace) -> EngineConfig:
    cfg = load_config(args.config) if args.config else EngineConfig()
    if args.buffer_size is not None:
        cfg.buffer_size = int(args.buffer_size)
    return cfg.sanitized()


def _open_input(name: str) -> TextIO:
    if name == "-":
        return sys.stdin
    return open(name, "r", encoding="utf-8", errors="replace")


def feed_lines(engine: IngestEngine, lines: Iterable[str], *, rate: float = 0.0) -> int:
    """Submit each line as a packet and close the packet channel. Returns the line count."""
    started_at = time.time()
    delay = 1.0 / rate if rate > 0 else 0.0
    count = 0
    for raw in lines:
        engine.submit_packet(Packet.now(raw.rstrip("\r\n"), started_at))
        count += 1
        if delay:
            time.sleep(delay)
    engine.close_packets()
    return count


def _wait_for_packets(engine: IngestEngine, timeout: float = 30.0) -> None:
    deadline = time.monotonic() + timeout
    while engine.packets_pending and time.monotonic() < deadline:
        time.sleep(0.01)


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_arg_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        cfg = _resolve_config(args)
    except ValueError as exc:
        parser.error(str(exc))
    if args.input != "-" and not Path(args.input).exists():
        parser.error(f"Log file not found: {args.input}")

    engine = IngestEngine(config=cfg)
    if args.window is not None:
        engine.submit_control(SetDisplayWindow(DisplayWindow(args.window)))

    recorder_handle = None
    if args.record is not None:
        worker = RecordingWorker(engine.relay, engine.store, engine.console)
        worker.set_options(RecordOptions(enable=True, file_path=args.record))
        recorder_handle = worker.start()

    handle = start_engine(engine)
    shown = 1  # the console starts with one empty entry
    try:
        with _open_input(args.input) as stream:
            count = feed_lines(engine, stream, rate=args.rate)
        _wait_for_packets(engine)
        if args.save is not None:
            engine.submit_control(
                SaveCsv(FileOptions(file_path=args.save, save_absolute_time=args.absolute_time))
            )
        engine.close_controls()
        handle.thread.join(timeout=30.0)
    except KeyboardInterrupt:
        return 130
    finally:
        handle.stop(join=True, timeout=5.0)
        if recorder_handle is not None:
            recorder_handle.stop(join=True, timeout=5.0)

    for message in engine.console.messages()[shown:]:
        prefix = _PREFIX.get(message.level)
        if prefix is not None:
            print(f"{prefix} {message.text}")

    snapshot = engine.store.snapshot()
    print(
        f"replayed {count} line(s): {snapshot.n_channels} channel(s) "
        f"[{', '.join(snapshot.names)}], {snapshot.n_samples} sample(s) buffered"
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
