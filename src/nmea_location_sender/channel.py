"""Outbound UDP channel with an explicit connection state machine."""

from __future__ import annotations

import errno
import logging
import queue
import socket
import threading
import uuid
from collections.abc import Callable
from typing import Any

from .constants import MAX_PORT, MIN_PORT
from .models import ChannelState, Endpoint


class TransportError(Exception):
    """Base class of the errors reported by a datagram channel."""


class TransportOpenError(TransportError):
    """The channel could not be set up (bad endpoint, socket refused)."""


class TransportWaitingError(TransportError):
    """A network condition that may clear up by itself."""


class TransportFatalError(TransportError):
    """The channel broke while sending and cannot be used any more."""


class SendCompletionError(TransportError):
    """A single write was not delivered to the network."""


# Errors worth waiting out: the network or the peer may come back
RECOVERABLE_ERRNOS: frozenset[int] = frozenset(
    {
        errno.ENETUNREACH,
        errno.ENETDOWN,
        errno.EHOSTUNREACH,
        errno.EHOSTDOWN,
        errno.ECONNREFUSED,
    }
)

StateHandler = Callable[["DatagramChannel", ChannelState, TransportError | None], Any]
Completion = Callable[[TransportError | None], Any]


def describe(err: BaseException) -> str:
    """Return a short human readable description of a socket error."""
    if isinstance(err, OSError) and err.strerror:
        return err.strerror
    return str(err) or err.__class__.__name__


def is_recoverable(err: OSError) -> bool:
    return isinstance(err, socket.gaierror) or err.errno in RECOVERABLE_ERRNOS


class DatagramChannel:
    """A connected UDP socket owned by one worker thread.

    State transitions:

        IDLE -> CONNECTING            open()
        CONNECTING -> READY           socket resolved, created and connected
        CONNECTING/READY -> WAITING   recoverable network error
        CONNECTING/READY -> FAILED    any other error
        any -> CANCELLED              cancel(), terminal

    Every transition is reported to on_state_change(channel, state, error) from
    the thread that caused it. The channel never reconnects by itself: once
    WAITING or FAILED it refuses further writes and the owner replaces it.
    """

    def __init__(
        self,
        endpoint: Endpoint,
        on_state_change: StateHandler,
        socket_factory: Callable[..., socket.socket] = socket.socket,
    ) -> None:
        """Initialize an idle channel.

        Args:
            endpoint: Destination host and port, fixed for the channel lifetime
            on_state_change: Callback receiving (channel, new state, error or None)
            socket_factory: Callable creating the socket, socket.socket by default

        """
        self.endpoint: Endpoint = endpoint
        self._on_state_change: StateHandler = on_state_change
        self._socket_factory: Callable[..., socket.socket] = socket_factory
        self._lock: threading.Lock = threading.Lock()
        self._state: ChannelState = ChannelState.IDLE
        self._error: TransportError | None = None
        self._accepting: bool = True
        self._queue: queue.Queue[tuple[bytes, Completion | None] | None] = queue.Queue()
        self._thread: threading.Thread | None = None

    @property
    def state(self) -> ChannelState:
        with self._lock:
            return self._state

    @property
    def error(self) -> TransportError | None:
        with self._lock:
            return self._error

    def open(self) -> None:
        """Start connecting in the background. Only valid on an idle channel."""
        if self.state is not ChannelState.IDLE:
            logging.warning(f"Channel to {self.endpoint} already opened")
            return
        if not self._set_state(ChannelState.CONNECTING):
            return
        self._thread = threading.Thread(
            target=self._run,
            name=f"nmea_channel{uuid.uuid4().hex}",
            daemon=True,
        )
        self._thread.start()

    def cancel(self) -> None:
        """Move to CANCELLED. Writes already handed to the socket are not aborted."""
        if self._set_state(ChannelState.CANCELLED):
            self._queue.put(None)
            if self._thread is None:
                self._close_queue()

    def send(self, line: str, completion: Completion | None = None) -> None:
        """Queue one wire-ready sentence.

        Never raises. completion(None) is called once the datagram is handed to
        the network, completion(error) when it could not be.
        """
        with self._lock:
            if self._accepting and self._state in (
                ChannelState.IDLE,
                ChannelState.CONNECTING,
                ChannelState.READY,
            ):
                self._queue.put((line.encode("ascii"), completion))
                return
            state = self._state
        if completion is not None:
            completion(SendCompletionError(f"Channel is {state.value}"))

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def _set_state(self, state: ChannelState, error: TransportError | None = None) -> bool:
        with self._lock:
            if self._state is ChannelState.CANCELLED or self._state is state:
                return False
            self._state = state
            self._error = error
        if error is None:
            logging.info(f"Channel to {self.endpoint}: {state.value}")
        else:
            logging.warning(f"Channel to {self.endpoint}: {state.value} ({error})")
        self._on_state_change(self, state, error)
        return True

    def _connect(self) -> socket.socket:
        if not MIN_PORT <= self.endpoint.port <= MAX_PORT:
            raise TransportOpenError(f"Invalid port {self.endpoint.port}")
        family, sock_type, proto, _, address = socket.getaddrinfo(
            self.endpoint.host, self.endpoint.port, type=socket.SOCK_DGRAM
        )[0]
        sock = self._socket_factory(family, sock_type, proto)
        try:
            # Connected UDP socket: fixed peer, and ICMP errors surface on send
            sock.connect(address)
        except OSError:
            sock.close()
            raise
        return sock

    def _run(self) -> None:
        try:
            sock = self._connect()
        except TransportOpenError as err:
            self._set_state(ChannelState.FAILED, err)
            self._close_queue()
            return
        except OSError as err:
            if is_recoverable(err):
                self._set_state(ChannelState.WAITING, TransportWaitingError(describe(err)))
            else:
                self._set_state(ChannelState.FAILED, TransportOpenError(describe(err)))
            self._close_queue()
            return
        except ValueError as err:
            self._set_state(ChannelState.FAILED, TransportOpenError(describe(err)))
            self._close_queue()
            return

        with sock:
            # Cancelled while connecting: nothing queued so far may go out
            if self._set_state(ChannelState.READY):
                self._send_loop(sock)
        self._close_queue()

    def _send_loop(self, sock: socket.socket) -> None:
        while True:
            item = self._queue.get()
            if item is None:
                return
            data, completion = item
            try:
                sock.send(data)
            except OSError as err:
                if completion is not None:
                    completion(SendCompletionError(describe(err)))
                if is_recoverable(err):
                    self._set_state(ChannelState.WAITING, TransportWaitingError(describe(err)))
                else:
                    self._set_state(ChannelState.FAILED, TransportFatalError(describe(err)))
                return
            logging.debug(f"Sent to {self.endpoint}: {data.decode('ascii').strip()}")
            if completion is not None:
                completion(None)

    def _close_queue(self) -> None:
        with self._lock:
            self._accepting = False
            state = self._state
        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                return
            if item is not None and item[1] is not None:
                item[1](SendCompletionError(f"Channel is {state.value}"))
