"""
WebSocket client transport for touchrelay.

This module owns the connection lifecycle, state notifications, heartbeat
writes and the receive loop for the single local control channel. It never
retries on its own: every transport error becomes a state transition that
the liveness supervisor acts on.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Iterator, Optional

from websockets.exceptions import ConnectionClosed, WebSocketException
from websockets.sync.client import connect as websocket_connect

from touchrelay.common.settings import settings
from touchrelay.common.types import ConnectionState

logger = logging.getLogger(__name__)

StateListener = Callable[[ConnectionState], None]
FrameListener = Callable[[str], None]


class TransportNotReadyError(ConnectionError):
    """Raised when sending while the session is not ready."""


class TransportSendError(ConnectionError):
    """Raised when a frame could not be written to the connection."""


def frames_iterate(connection: Any) -> Iterator[str]:
    """
    Yield text frames from a connection until it closes.

    Binary frames are decoded as UTF-8; undecodable ones are skipped. The
    generator ends by raising the connection's close or error exception and
    cannot be restarted.

    Args:
        connection: Open websockets connection.

    Yields:
        Each received text frame in arrival order.
    """
    while True:
        message = connection.recv()
        if isinstance(message, bytes):
            try:
                message = message.decode("utf-8")
            except UnicodeDecodeError:
                logger.debug("Skipping undecodable binary frame (%s bytes)", len(message))
                continue
        yield message


class TransportSession:
    """
    One outbound WebSocket connection to a fixed local endpoint.

    Each `connection_open()` starts a new connection generation on its own
    receiver thread. Transitions reported by a generation that has since
    been replaced or cancelled are discarded.
    """

    def __init__(
        self,
        url: str,
        subprotocol: str | None = None,
        open_timeout: float = 5.0,
        connection_factory: Callable[..., Any] = websocket_connect,
    ) -> None:
        """
        Initialize transport configuration.

        Args:
            url:
                WebSocket endpoint, e.g. `ws://127.0.0.1:8088`.
            subprotocol:
                Optional sub-protocol requested during the upgrade.
            open_timeout:
                Connect and handshake timeout in seconds.
            connection_factory:
                Callable opening a connection; defaults to the websockets
                synchronous client.
        """
        self.url: str = url
        self.subprotocol: str | None = subprotocol
        self.open_timeout: float = open_timeout
        self._connection_factory: Callable[..., Any] = connection_factory

        self._lock: threading.Lock = threading.Lock()
        self._state: ConnectionState = ConnectionState.IDLE
        self._connection: Any = None
        self._generation: int = 0
        self._receiver: Optional[threading.Thread] = None

        self._state_listeners: list[StateListener] = []
        self._frame_listeners: list[FrameListener] = []

    def stateListener_add(self, listener: StateListener) -> None:
        """
        Register a callback for state transitions.

        Args:
            listener:
                Called with the new state after every transition.
        """
        self._state_listeners.append(listener)

    def frameListener_add(self, listener: FrameListener) -> None:
        """
        Register a callback for inbound text frames.

        Args:
            listener:
                Called on the receiver thread for each frame, in order.
        """
        self._frame_listeners.append(listener)

    def state_get(self) -> ConnectionState:
        """
        Return current connection state.

        Returns:
            Current state.
        """
        with self._lock:
            return self._state

    def connection_open(self) -> None:
        """
        Start connecting unless already connecting or ready.

        The connect itself runs on a new receiver thread; its outcome is
        reported as a transition to `READY` or `FAILED`.
        """
        with self._lock:
            if self._state in (ConnectionState.CONNECTING, ConnectionState.READY):
                return
            self._generation += 1
            generation: int = self._generation
            self._state = ConnectionState.CONNECTING
            receiver = threading.Thread(
                target=self._session_run,
                args=(generation,),
                name=f"touchrelay-transport-{generation}",
                daemon=True,
            )
            self._receiver = receiver

        logger.debug("Connecting to %s (generation %s)", self.url, generation)
        self._listeners_notify(ConnectionState.CONNECTING)
        receiver.start()

    def connection_close(self) -> None:
        """
        Cancel the connection and release the socket.

        Waits for the receiver thread before reporting `CANCELLED`, so no
        frame from the closed connection reaches a listener afterwards.
        This method is idempotent.
        """
        with self._lock:
            if self._state == ConnectionState.CANCELLED:
                return
            self._generation += 1
            connection: Any = self._connection
            self._connection = None
            receiver: Optional[threading.Thread] = self._receiver
            self._receiver = None
            self._state = ConnectionState.CANCELLED

        if connection is not None:
            self._connection_release(connection)
        self._receiver_join(receiver)
        logger.info("Connection closed")
        self._listeners_notify(ConnectionState.CANCELLED)

    def text_send(self, payload: str) -> None:
        """
        Send one text frame.

        Args:
            payload:
                Frame text.

        Raises:
            TransportNotReadyError:
                Raised when the session is not ready.
            TransportSendError:
                Raised when the write fails; the session is then `FAILED`.
        """
        with self._lock:
            if self._state != ConnectionState.READY or self._connection is None:
                raise TransportNotReadyError(f"Not connected to {self.url} ({self._state.value})")
            connection: Any = self._connection
            generation: int = self._generation

        try:
            connection.send(payload)
        except (ConnectionClosed, WebSocketException, OSError) as exc:
            logger.warning("Send to %s failed: %s", self.url, exc)
            self._connectionFailed_handle(generation)
            raise TransportSendError(f"Failed to send frame: {exc}") from exc

    def _session_run(self, generation: int) -> None:
        """
        Receiver thread body: connect, then publish frames until closed.

        Whatever ends the thread, its generation is reported `FAILED`
        unless it was already replaced or cancelled.

        Args:
            generation:
                Generation this thread belongs to.
        """
        try:
            connection: Any = self._connection_factory(
                self.url,
                subprotocols=[self.subprotocol] if self.subprotocol else None,
                open_timeout=self.open_timeout,
                ping_interval=None,
            )
            if self._connection_adopt(generation, connection):
                logger.info("Connected to %s", self.url)
                self._listeners_notify(ConnectionState.READY)
                self._frames_receive(generation, connection)
        except ConnectionClosed as exc:
            logger.info("Connection to %s closed: %s", self.url, exc)
        except (WebSocketException, OSError) as exc:
            logger.warning("Connection to %s failed: %s", self.url, exc)
        except Exception as exc:
            logger.error("Transport thread for %s failed: %s", self.url, exc, exc_info=True)
        finally:
            self._connectionFailed_handle(generation)

    def _connection_adopt(self, generation: int, connection: Any) -> bool:
        """
        Install a freshly opened connection if its generation is current.

        Args:
            generation:
                Generation that opened the connection.
            connection:
                Open connection.

        Returns:
            True when the session is now `READY` on this connection.
        """
        with self._lock:
            current: bool = (
                generation == self._generation and self._state == ConnectionState.CONNECTING
            )
            if current:
                self._connection = connection
                self._state = ConnectionState.READY
        if not current:
            logger.debug("Discarding connection from stale generation %s", generation)
            self._connection_release(connection)
        return current

    def _frames_receive(self, generation: int, connection: Any) -> None:
        """
        Publish frames to listeners while the generation stays current.

        Args:
            generation:
                Generation owning the connection.
            connection:
                Open connection.
        """
        for frame in frames_iterate(connection):
            if not self._generation_isCurrent(generation):
                logger.debug("Dropping frame from stale generation %s", generation)
                return
            self._frame_publish(frame)

    def _frame_publish(self, frame: str) -> None:
        """Hand one frame to every frame listener."""
        for listener in self._frame_listeners:
            try:
                listener(frame)
            except Exception as exc:
                logger.error("Frame listener failed: %s", exc, exc_info=True)

    def _generation_isCurrent(self, generation: int) -> bool:
        """Check whether a generation still owns the ready connection."""
        with self._lock:
            return generation == self._generation and self._state == ConnectionState.READY

    def _connectionFailed_handle(self, generation: int) -> None:
        """
        Tear down a connecting or live generation and report `FAILED`.

        Ignored when the generation is stale (e.g. after connection_close())
        or has already failed. Waits for the receiver thread before
        notifying, unless called from it.

        Args:
            generation:
                Generation reporting the failure.
        """
        with self._lock:
            if generation != self._generation or self._state not in (
                ConnectionState.CONNECTING,
                ConnectionState.READY,
            ):
                return
            connection: Any = self._connection
            self._connection = None
            receiver: Optional[threading.Thread] = self._receiver
            self._state = ConnectionState.FAILED

        if connection is not None:
            self._connection_release(connection)
        self._receiver_join(receiver)
        self._listeners_notify(ConnectionState.FAILED)

    def _receiver_join(self, receiver: Optional[threading.Thread]) -> None:
        """
        Wait for a receiver thread to finish, unless it is the caller.

        Args:
            receiver:
                Receiver thread, or None.
        """
        if receiver is None or receiver.ident is None or receiver is threading.current_thread():
            return
        receiver.join(timeout=settings.THREAD_JOIN_TIMEOUT_SEC)
        if receiver.is_alive():
            logger.warning(
                "Receiver %s did not stop within %ss",
                receiver.name,
                settings.THREAD_JOIN_TIMEOUT_SEC,
            )

    def _listeners_notify(self, state: ConnectionState) -> None:
        """
        Push a state transition to listeners.

        Args:
            state:
                New state.
        """
        logger.debug("Connection state: %s", state.value)
        for listener in self._state_listeners:
            try:
                listener(state)
            except Exception as exc:
                logger.error("State listener failed: %s", exc, exc_info=True)

    @staticmethod
    def _connection_release(connection: Any) -> None:
        """
        Close a connection handle.

        Close errors are logged only because the caller is already tearing
        the connection down.
        """
        try:
            connection.close()
        except (WebSocketException, OSError) as exc:
            logger.debug("Error closing connection: %s", exc)
