"""Session controller: start/stop orchestration, reconnection and status."""

from __future__ import annotations

import collections
import dataclasses
import datetime
import functools
import logging
import threading
import time
import uuid
from collections.abc import Callable, Mapping
from typing import Any

from .channel import DatagramChannel, TransportError
from .config import SessionConfig
from .constants import ERROR_HISTORY_SIZE, ERROR_TIMESTAMP_FORMAT, RECONNECT_DELAY_SEC
from .custom_thread import NmeaTimerThread, Scheduler
from .models import ChannelState, ConnectionStatus, HeadingSample, PositionSample
from .nmea_sentences import heading_sentence, heading_value, position_sentences
from .sources import SampleSource
from .throttle import SchedulerLike, UpdateThrottler

_STATUS_BY_STATE: dict[ChannelState, ConnectionStatus] = {
    ChannelState.IDLE: ConnectionStatus.CONNECTING,
    ChannelState.CONNECTING: ConnectionStatus.CONNECTING,
    ChannelState.READY: ConnectionStatus.CONNECTED,
    ChannelState.WAITING: ConnectionStatus.DISCONNECTED,
    ChannelState.FAILED: ConnectionStatus.FAILED,
    ChannelState.CANCELLED: ConnectionStatus.DISCONNECTED,
}


@dataclasses.dataclass(frozen=True)
class SessionStatus:
    """Read-only snapshot of a session, handed to observers."""

    is_sending: bool = False
    connection_status: ConnectionStatus = ConnectionStatus.DISCONNECTED
    last_sent_sentences: Mapping[str, str] = dataclasses.field(default_factory=dict)
    last_sent_time: datetime.datetime | None = None
    last_sent_latitude: float | None = None
    last_sent_longitude: float | None = None
    last_sent_heading: float | None = None
    errors: tuple[str, ...] = ()


class ErrorLog:
    """The last few errors, each prefixed with the local time it was recorded."""

    def __init__(
        self,
        size: int = ERROR_HISTORY_SIZE,
        now: Callable[[], datetime.datetime] = datetime.datetime.now,
    ) -> None:
        self._entries: collections.deque[str] = collections.deque(maxlen=size)
        self._now = now

    def add(self, message: str) -> str:
        entry = f"[{self._now().strftime(ERROR_TIMESTAMP_FORMAT)}] {message}"
        self._entries.append(entry)
        return entry

    def clear(self) -> None:
        self._entries.clear()

    @property
    def entries(self) -> tuple[str, ...]:
        return tuple(self._entries)


class SessionController:
    """Owns one sending session and the datagram channel it writes to.

    Samples arrive from the source's threads, timer ticks from the timer
    thread, channel callbacks from channel worker threads and reconnects from
    scheduler threads. All of them take the same lock before touching session
    state, and observers are notified with a snapshot while it is held.

    A failed or waiting channel is never repaired: after RECONNECT_DELAY_SEC a
    brand new channel is opened against the same endpoint, for as long as the
    session wants to send. stop() clears that wish, which turns any pending
    reconnect into a no-op.
    """

    def __init__(
        self,
        config: SessionConfig,
        source: SampleSource,
        channel_factory: Callable[..., DatagramChannel] = DatagramChannel,
        scheduler: SchedulerLike | None = None,
        clock: Callable[[], float] = time.monotonic,
        timer_factory: Callable[..., NmeaTimerThread] = NmeaTimerThread,
        now: Callable[[], datetime.datetime] = datetime.datetime.now,
    ) -> None:
        """Initialize a stopped session.

        Args:
            config: Session settings, validated here
            source: Provider of position and heading samples
            channel_factory: Callable(endpoint, on_state_change) returning a channel
            scheduler: Runs delayed tasks (busy window clear, reconnect)
            clock: Monotonic clock used by the heading throttle
            timer_factory: Callable(interval, function, name=...) returning a periodic timer
            now: Wall clock used to timestamp errors

        Raises:
            ValueError: If the configuration is invalid

        """
        config.validate()
        self.config: SessionConfig = config
        self.source: SampleSource = source
        self._channel_factory = channel_factory
        self._scheduler: SchedulerLike = scheduler or Scheduler()
        self._timer_factory = timer_factory
        self._lock: threading.RLock = threading.RLock()
        self._throttler: UpdateThrottler = UpdateThrottler(self._scheduler, clock)
        self._errors: ErrorLog = ErrorLog(now=now)
        self._observers: list[Callable[[SessionStatus], Any]] = []
        self._should_send: bool = False
        self._is_sending: bool = False
        self._connection_status: ConnectionStatus = ConnectionStatus.DISCONNECTED
        self._channel: DatagramChannel | None = None
        self._timer: NmeaTimerThread | None = None
        self._reconnect: Any = None
        self._reset_last_sent()

    @property
    def should_send(self) -> bool:
        with self._lock:
            return self._should_send

    @property
    def is_sending(self) -> bool:
        with self._lock:
            return self._is_sending

    @property
    def status(self) -> SessionStatus:
        with self._lock:
            return self._snapshot()

    def add_observer(self, observer: Callable[[SessionStatus], Any]) -> None:
        with self._lock:
            self._observers.append(observer)

    def remove_observer(self, observer: Callable[[SessionStatus], Any]) -> None:
        with self._lock:
            self._observers.remove(observer)

    def start(self) -> None:
        """Open the channel, start the sample source and, if enabled, the timer."""
        with self._lock:
            if self._should_send:
                logging.warning("Session already started")
                return
            self._should_send = True
            self._reset_last_sent()
            self._errors.clear()
            self._throttler.reset()
            if self.config.timer_enabled:
                self._throttler.set_timer_interval(self.config.timer_interval)
            else:
                self._throttler.set_timer_interval(None)
            logging.info(f"Sending NMEA data - UDP stream to {self.config.endpoint}")
            self._open_channel()
            self.source.start(self)
            if self.config.timer_enabled:
                self._timer = self._timer_factory(
                    self.config.timer_interval,
                    self.request_position_send,
                    name=f"nmea_timer{uuid.uuid4().hex}",
                )
                self._timer.start()
            self._notify()

    def stop(self) -> None:
        """Stop sampling, cancel the channel and timer, abandon pending reconnects."""
        with self._lock:
            if not self._should_send and self._channel is None:
                return
            self._should_send = False
            self.source.stop()
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            if self._reconnect is not None:
                self._reconnect.cancel()
                self._reconnect = None
            if self._channel is not None:
                self._channel.cancel()
                self._channel = None
            self._is_sending = False
            self._connection_status = ConnectionStatus.DISCONNECTED
            self._throttler.reset()
            logging.info("Sending stopped")
            self._notify()

    def toggle(self) -> None:
        with self._lock:
            if self._should_send:
                self.stop()
            else:
                self.start()

    def on_position(self, sample: PositionSample) -> None:
        """Send a position pushed by the source, unless throttled."""
        with self._lock:
            if not self._can_send():
                return
            if not self._throttler.try_acquire_position():
                return
            self._send_position(sample)

    def on_heading(self, sample: HeadingSample) -> None:
        """Send a heading pushed by the source, at most every 100 ms."""
        with self._lock:
            if not self._can_send() or not self.config.heading_enabled:
                return
            if not self._throttler.accept_heading():
                return
            self._send_heading(sample)

    def request_position_send(self) -> None:
        """Timer tick: resend the last known position and heading."""
        position = self.source.last_position
        heading = self.source.last_heading
        with self._lock:
            if not self._can_send() or position is None:
                return
            if not self._throttler.try_acquire_position():
                return
            self._send_position(position)
        if heading is not None:
            self.on_heading(heading)

    def _can_send(self) -> bool:
        # A waiting or failed channel refuses every write until the reconnect replaces it
        return self._is_sending and self._connection_status not in (
            ConnectionStatus.DISCONNECTED,
            ConnectionStatus.FAILED,
        )

    def _reset_last_sent(self) -> None:
        self._last_sent_sentences: dict[str, str] = {}
        self._last_sent_time: datetime.datetime | None = None
        self._last_sent_latitude: float | None = None
        self._last_sent_longitude: float | None = None
        self._last_sent_heading: float | None = None

    def _snapshot(self) -> SessionStatus:
        return SessionStatus(
            is_sending=self._is_sending,
            connection_status=self._connection_status,
            last_sent_sentences=dict(self._last_sent_sentences),
            last_sent_time=self._last_sent_time,
            last_sent_latitude=self._last_sent_latitude,
            last_sent_longitude=self._last_sent_longitude,
            last_sent_heading=self._last_sent_heading,
            errors=self._errors.entries,
        )

    def _notify(self) -> None:
        snapshot = self._snapshot()
        for observer in list(self._observers):
            try:
                observer(snapshot)
            except Exception:
                logging.exception("Session observer failed")

    def _record_error(self, message: str) -> None:
        logging.warning(message)
        self._errors.add(message)

    def _open_channel(self) -> None:
        self._channel = self._channel_factory(self.config.endpoint, self._on_channel_state)
        self._channel.open()

    def _on_channel_state(
        self,
        channel: DatagramChannel,
        state: ChannelState,
        error: TransportError | None,
    ) -> None:
        with self._lock:
            if channel is not self._channel:
                logging.debug(f"Ignoring {state.value} from an abandoned channel")
                return
            self._connection_status = _STATUS_BY_STATE[state]
            if state is ChannelState.READY:
                self._is_sending = True
            elif state in (ChannelState.WAITING, ChannelState.FAILED):
                self._record_error(f"Connection failed: {error}")
                self._attempt_reconnect()
            self._notify()

    def _attempt_reconnect(self) -> None:
        if not self._should_send or self._reconnect is not None:
            return
        self._record_error("Attempting to reconnect...")
        self._reconnect = self._scheduler.call_later(
            RECONNECT_DELAY_SEC, functools.partial(self._reconnect_now, self._channel)
        )

    def _reconnect_now(self, failed_channel: DatagramChannel | None) -> None:
        with self._lock:
            # The session may have been stopped, or stopped and restarted, since scheduling
            if not self._should_send or failed_channel is not self._channel:
                logging.debug("Reconnect skipped, the channel it was scheduled for is gone")
                return
            self._reconnect = None
            self._channel = None
            if failed_channel is not None:
                failed_channel.cancel()
            logging.info(f"Reconnecting to {self.config.endpoint}")
            self._open_channel()
            self._notify()

    def _send_position(self, sample: PositionSample) -> None:
        channel = self._channel
        if channel is None:
            return
        for sentence in position_sentences(sample):
            line = str(sentence)
            channel.send(
                line,
                functools.partial(self._on_position_sent, channel, sample, sentence.sentence_id, line),
            )

    def _send_heading(self, sample: HeadingSample) -> None:
        channel = self._channel
        if channel is None:
            return
        sentence = heading_sentence(sample, self.config.heading_mode, self.config.swap_heading_fields)
        value = heading_value(sample, self.config.heading_mode, self.config.swap_heading_fields)
        line = str(sentence)
        channel.send(
            line,
            functools.partial(self._on_heading_sent, channel, value, sentence.sentence_id, line),
        )

    def _on_position_sent(
        self,
        channel: DatagramChannel,
        sample: PositionSample,
        sentence_id: str,
        line: str,
        error: TransportError | None,
    ) -> None:
        with self._lock:
            if channel is not self._channel:
                return
            if error is not None:
                self._record_error(f"Send error: {error}")
            else:
                self._last_sent_sentences[sentence_id] = line.strip()
                self._last_sent_time = sample.timestamp
                self._last_sent_latitude = sample.latitude
                self._last_sent_longitude = sample.longitude
            self._notify()

    def _on_heading_sent(
        self,
        channel: DatagramChannel,
        value: float,
        sentence_id: str,
        line: str,
        error: TransportError | None,
    ) -> None:
        with self._lock:
            if channel is not self._channel:
                return
            if error is not None:
                self._record_error(f"Send error: {error}")
            else:
                self._last_sent_sentences[sentence_id] = line.strip()
                self._last_sent_heading = value
            self._notify()
