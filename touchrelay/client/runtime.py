"""
touchrelay runtime composition.

`TouchRelay` wires one transport session, one gesture tracker and one
liveness supervisor together. It is built and owned by the caller; nothing
here is process-wide state.
"""

from __future__ import annotations

import logging

from touchrelay.client.supervisor import LivenessSupervisor
from touchrelay.client.transport import TransportSession
from touchrelay.gesture.tracker import GestureTracker
from touchrelay.protocol.message import touchEventRecord_parse

logger = logging.getLogger(__name__)


class TouchRelay:
    """Inbound touch frames in, synthetic gestures out."""

    def __init__(
        self,
        session: TransportSession,
        tracker: GestureTracker,
        supervisor: LivenessSupervisor,
    ) -> None:
        """
        Wire components together.

        Args:
            session: Transport session delivering frames.
            tracker: Gesture tracker receiving parsed records.
            supervisor: Liveness supervisor for the session.
        """
        self.session: TransportSession = session
        self.tracker: GestureTracker = tracker
        self.supervisor: LivenessSupervisor = supervisor
        self._running: bool = False
        session.frameListener_add(self.frame_handle)

    def frame_handle(self, frame: str) -> None:
        """
        Frame listener: parse and enqueue onto the touch queue.

        Runs on the transport receiver thread, so enqueue order matches
        wire order.

        Args:
            frame: Inbound text frame.
        """
        record = touchEventRecord_parse(frame)
        if record is None:
            return
        self.tracker.record_apply(record)

    def start(self) -> None:
        """Start the touch queue, then the liveness timer."""
        if self._running:
            return
        self._running = True
        self.tracker.start()
        self.supervisor.start()
        logger.info("Relay started for %s", self.session.url)

    def shutdown(self) -> None:
        """
        Cancel live gestures, close the channel and stop the touch queue.

        The flush is enqueued before the queue's stop sentinel, so it runs
        before the worker exits.
        """
        if not self._running:
            return
        self._running = False
        self.supervisor.shutdown()
        self.tracker.stop()
        logger.info("Relay stopped")
