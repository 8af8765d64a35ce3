"""
Liveness supervision for the touchrelay control channel.

A fixed-period tick sends the heartbeat while the session is ready and
otherwise asks the session to reconnect. There is no backoff: reconnect
attempts are rate limited by the tick period alone, which is enough for a
loopback endpoint.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional, Protocol

from touchrelay.common.settings import settings
from touchrelay.common.types import ConnectionState

logger = logging.getLogger(__name__)


class SupervisedSession(Protocol):
    """Transport operations the supervisor relies on."""

    def stateListener_add(self, listener: Callable[[ConnectionState], None]) -> None:
        """Register a state transition callback."""

    def state_get(self) -> ConnectionState:
        """Return current connection state."""

    def connection_open(self) -> None:
        """Start connecting unless already connecting or ready."""

    def connection_close(self) -> None:
        """Cancel the connection."""

    def text_send(self, payload: str) -> None:
        """Send one text frame, raising ConnectionError on failure."""


class FlushableTracker(Protocol):
    """Tracker operation the supervisor relies on."""

    def gestures_flushAll(self) -> None:
        """Cancel every live gesture."""


class LivenessSupervisor:
    """Heartbeat timer and reconnect policy for one transport session."""

    def __init__(
        self,
        session: SupervisedSession,
        tracker: FlushableTracker,
        interval: float = settings.DEFAULT_TICK_INTERVAL_SEC,
        heartbeat_payload: str = settings.HEARTBEAT_PAYLOAD,
    ) -> None:
        """
        Initialize supervisor.

        Args:
            session: Transport session to supervise.
            tracker: Gesture tracker flushed on transport loss.
            interval: Tick period in seconds.
            heartbeat_payload: Text frame sent on each ready tick.
        """
        self._session: SupervisedSession = session
        self._tracker: FlushableTracker = tracker
        self._interval: float = interval
        self._heartbeat_payload: str = heartbeat_payload
        self._stop_event: threading.Event = threading.Event()
        self._timer: Optional[threading.Thread] = None
        session.stateListener_add(self.stateChange_handle)

    def stateChange_handle(self, state: ConnectionState) -> None:
        """
        Session state listener: flush gestures when the channel goes down.

        Args:
            state: New session state.
        """
        if state.isDown():
            logger.info("Channel %s, cancelling active gestures", state.value)
            self._tracker.gestures_flushAll()

    def start(self) -> None:
        """Start the tick timer; the first tick runs immediately."""
        if self._timer is not None and self._timer.is_alive():
            return
        self._stop_event.clear()
        self._timer = threading.Thread(
            target=self._timer_run, name="touchrelay-liveness", daemon=True
        )
        self._timer.start()

    def tick(self) -> None:
        """
        Run one liveness check.

        Ready: send the heartbeat, reconnecting if the send fails.
        Anything else: reconnect without sending.
        """
        state: ConnectionState = self._session.state_get()
        if state != ConnectionState.READY:
            logger.debug("Tick in state %s, connecting", state.value)
            self._session.connection_open()
            return

        try:
            self._session.text_send(self._heartbeat_payload)
        except ConnectionError as exc:
            logger.warning("Heartbeat send failed: %s", exc)
            self._session.connection_open()

    def shutdown(self) -> None:
        """
        Stop the timer, cancel live gestures, then close the session.

        This method is idempotent.
        """
        self._stop_event.set()
        if self._timer is not None:
            if self._timer is not threading.current_thread():
                self._timer.join(timeout=settings.THREAD_JOIN_TIMEOUT_SEC)
            self._timer = None
        self._tracker.gestures_flushAll()
        self._session.connection_close()

    def _timer_run(self) -> None:
        """Timer thread body."""
        while not self._stop_event.is_set():
            try:
                self.tick()
            except Exception as exc:
                logger.error("Liveness tick failed: %s", exc, exc_info=True)
            if self._stop_event.wait(self._interval):
                break
