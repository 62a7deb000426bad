"""
Consumer loop that turns raw instrument lines into the shared store.

Two producers feed the engine: the transport thread submits
:class:`~qcmstream.core.models.Packet` objects and the display thread submits
control commands. A single consumer thread drains both queues, one item per
queue per tick, and is the only writer of the :class:`SharedStore`.

Polling: each tick takes at most one control command without blocking and
then waits up to ``poll_interval_s`` for a packet. Packets are handled as soon
as they arrive; control commands wait at most one poll interval. A shorter
interval lowers command latency at the cost of more idle wake-ups.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from queue import Empty, Queue
import threading
import time
from typing import TYPE_CHECKING, Optional

from ..tools.debug import RateLogger, debug_enabled
from .console import Console, Print
from .control import ControlApplier, ControlCommand, CsvSaver, EngineState
from .models import DisplayWindow, Packet, RecordData
from .parsing import LineKind, classify_line, split_payload
from .protocol import QcmEvent, decode_command
from .relay import RecordingRelay, offer_queue
from .schema import ChannelSchema, SchemaDecision
from .shared import LockTimeout, SharedStore

if TYPE_CHECKING:  # config.runtime imports core.models
    from ..config.runtime import EngineConfig

logger = logging.getLogger(__name__)


class _Closed:
    def __repr__(self) -> str:
        return "CLOSED"


# Submitted by a producer to say it will send nothing more.
CLOSED = _Closed()


class IngestEngine:
    def __init__(
        self,
        store: SharedStore | None = None,
        *,
        config: EngineConfig | None = None,
        console: Console | None = None,
        relay: RecordingRelay | None = None,
        events: Queue[QcmEvent] | None = None,
        saver: Optional[CsvSaver] = None,
    ) -> None:
        from ..config.runtime import EngineConfig

        cfg = (config or EngineConfig()).sanitized()
        self.config = cfg
        self.store = store or SharedStore(capacity=cfg.buffer_size)
        self.console = console or Console(cfg.console_max_len)
        self.relay = relay or RecordingRelay(cfg.record_queue_size)
        self.events: Queue[QcmEvent] = events if events is not None else Queue(maxsize=cfg.event_queue_size)
        self.state = EngineState(
            raw_traffic=cfg.raw_traffic,
            display_window=cfg.window,
        )
        with self.store.write() as data:
            data.set_capacity(cfg.buffer_size)

        self._applier = ControlApplier(
            self.store,
            self.state,
            self.console,
            saver=saver,
            lock_timeout=cfg.lock_timeout_s,
        )
        self._packets: Queue[object] = Queue()
        self._controls: Queue[object] = Queue()
        self._packets_open = True
        self._controls_open = True
        self._pending_packet: Optional[Packet] = None
        self._pending_control: Optional[ControlCommand] = None
        self._rate = RateLogger("packets") if debug_enabled() else None

    # ---------------------------------------------------------------- producers
    def submit_packet(self, packet: Packet) -> None:
        self._packets.put(packet)

    def submit_control(self, command: ControlCommand) -> None:
        self._controls.put(command)

    def close_packets(self) -> None:
        self._packets.put(CLOSED)

    def close_controls(self) -> None:
        self._controls.put(CLOSED)

    # ------------------------------------------------------------------- state
    @property
    def schema(self) -> ChannelSchema:
        return self.state.schema

    @property
    def display_window(self) -> DisplayWindow:
        return self.state.display_window

    @property
    def packets_pending(self) -> bool:
        """True until the packet channel is closed and fully processed."""
        return self._packets_open or self._pending_packet is not None

    @property
    def finished(self) -> bool:
        """True once both producers closed and nothing is left to process."""
        return (
            not self._packets_open
            and not self._controls_open
            and self._pending_packet is None
            and self._pending_control is None
        )

    # -------------------------------------------------------------- processing
    def process_packet(self, packet: Packet) -> None:
        """Handle one received line.

        Raises :class:`LockTimeout` if the store could not be locked; the
        packet has then had no effect and may be submitted again.
        """
        line = classify_line(packet.payload)
        if line is None:
            return

        if line.kind is LineKind.DEBUG:
            self.console.push(Print.debug(line.body))
            return

        if line.kind is LineKind.COMMAND:
            if self.state.display_window.decodes_commands:
                self._handle_command(line.tokens)
            return

        self._handle_data(packet, line.body)

    def _handle_command(self, tokens: tuple[str, ...]) -> None:
        event = decode_command(tokens)
        if event is None:
            return
        labels = event.channel_labels
        if labels is not None:
            with self.store.write(self.config.lock_timeout_s) as data:
                data.names = list(labels)
                self.schema.force_reset()
        offer_queue(self.events, event)

    def _handle_data(self, packet: Packet, payload: str) -> None:
        values = split_payload(payload)
        with self.store.write(self.config.lock_timeout_s) as data:
            if self.state.raw_traffic.enable:
                data.push_raw(packet, self.state.raw_traffic.max_len)
            decision = self.schema.evaluate(data, len(values))
            if decision is SchemaDecision.ACCEPT:
                data.append_row(packet.relative_time, packet.absolute_time, values)
        if decision is SchemaDecision.ACCEPT:
            self.relay.offer(RecordData(time=packet.absolute_time, datas=values))
            if self._rate is not None:
                self._rate.tick()

    def apply_control(self, command: ControlCommand) -> None:
        self._applier.apply(command)

    # -------------------------------------------------------------------- loop
    def tick(self) -> bool:
        """Run one iteration of the consumer loop.

        Returns ``True`` if a packet or command was handled.
        """
        worked = False

        if self._pending_control is None and self._controls_open:
            try:
                item = self._controls.get_nowait()
            except Empty:
                item = None
            if item is CLOSED:
                logger.debug("Control channel closed")
                self._controls_open = False
            elif item is not None:
                self._pending_control = item  # type: ignore[assignment]

        if self._pending_control is not None:
            command = self._pending_control
            try:
                self.apply_control(command)
            except LockTimeout:
                logger.debug("Store busy, retrying %r next tick", command)
            except Exception:
                logger.exception("Failed to apply control command %r", command)
                self._pending_control = None
            else:
                self._pending_control = None
                worked = True

        if self._pending_packet is None and self._packets_open:
            timeout = 0.0 if worked or self._pending_control is not None else self.config.poll_interval_s
            try:
                if timeout > 0:
                    item = self._packets.get(timeout=timeout)
                else:
                    item = self._packets.get_nowait()
            except Empty:
                item = None
            if item is CLOSED:
                logger.debug("Packet channel closed")
                self._packets_open = False
            elif item is not None:
                self._pending_packet = item  # type: ignore[assignment]

        if self._pending_packet is not None:
            packet = self._pending_packet
            try:
                self.process_packet(packet)
            except LockTimeout:
                logger.debug("Store busy, retrying packet %r next tick", packet.payload)
            except Exception:
                logger.exception("Failed to process packet %r", packet.payload)
                self._pending_packet = None
            else:
                self._pending_packet = None
                worked = True

        return worked

    def run(self, stop_event: Optional[threading.Event] = None) -> None:
        """Tick until ``stop_event`` is set or both producers have closed."""
        while not self.finished:
            if stop_event is not None and stop_event.is_set():
                break
            if not self.tick() and not self._packets_open:
                # Only the control channel is left; avoid spinning on it.
                time.sleep(max(self.config.poll_interval_s, 0.001))
        logger.debug("Ingest loop stopped")


@dataclass
class EngineHandle:
    thread: threading.Thread
    stop_event: threading.Event
    engine: IngestEngine

    def stop(self, *, join: bool = False, timeout: Optional[float] = None) -> None:
        self.stop_event.set()
        if join:
            self.thread.join(timeout)

    def is_alive(self) -> bool:
        return self.thread.is_alive()


def start_engine(
    engine: IngestEngine | None = None,
    *,
    config: EngineConfig | None = None,
    thread_name: Optional[str] = None,
) -> EngineHandle:
    """
    Start a background thread running :meth:`IngestEngine.run`.
    """
    eng = engine or IngestEngine(config=config)
    stop_event = threading.Event()

    def _target() -> None:
        eng.run(stop_event)

    thread = threading.Thread(
        target=_target,
        name=thread_name or "QcmIngestEngine",
        daemon=True,
    )
    thread.start()
    return EngineHandle(thread=thread, stop_event=stop_event, engine=eng)
