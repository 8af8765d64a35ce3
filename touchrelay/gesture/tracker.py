"""
Gesture tracking on a single serial touch queue.

The tracker maps the remote source's event ids onto gestures confirmed by
the injection sink. Every mutation of the gesture table, and every sink
call, runs on one worker thread fed by a FIFO queue. That queue is the
only ordering mechanism: records for one id are applied in the order they
were enqueued, and a flush sits between the applies enqueued before and
after it.
"""

from __future__ import annotations

import logging
import queue
import threading
from concurrent.futures import Future
from dataclasses import replace
from typing import Callable, Optional, TypeVar

from touchrelay.common.settings import settings
from touchrelay.common.types import (
    ActiveGesture,
    Confirmed,
    Pending,
    Point,
    TouchEventRecord,
    TouchPhase,
)
from touchrelay.input.backend import GestureSink, ScreenBackend

logger = logging.getLogger(__name__)

T = TypeVar("T")

_Command = Callable[[], None]


class GestureTracker:
    """
    Owner of the active-gesture table.

    Public methods only enqueue work; they are safe to call from any
    thread. The table itself is touched exclusively by the worker.
    """

    def __init__(self, sink: GestureSink, screen_backend: ScreenBackend) -> None:
        """
        Initialize tracker.

        Args:
            sink: Touch injection sink.
            screen_backend: Screen geometry source for denormalizing points.
        """
        self._sink: GestureSink = sink
        self._screen_backend: ScreenBackend = screen_backend
        self._queue: queue.Queue[Optional[_Command]] = queue.Queue()
        self._gestures: dict[int, ActiveGesture] = {}
        self._worker: Optional[threading.Thread] = None

    def start(self) -> None:
        """Start the touch queue worker. No-op when already running."""
        if self._worker is not None and self._worker.is_alive():
            return
        self._worker = threading.Thread(
            target=self._queue_run, name="touchrelay-touch-queue", daemon=True
        )
        self._worker.start()

    def stop(self) -> None:
        """
        Stop the worker after everything already enqueued has run.

        Work enqueued after stop() is not processed.
        """
        if self._worker is None:
            return
        self._queue.put(None)
        self._worker.join(timeout=settings.THREAD_JOIN_TIMEOUT_SEC)
        if self._worker.is_alive():
            logger.warning("Touch queue did not stop within %ss", settings.THREAD_JOIN_TIMEOUT_SEC)
        self._worker = None

    def record_apply(self, record: TouchEventRecord) -> None:
        """
        Enqueue one touch event record.

        Args:
            record: Parsed touch event.
        """
        self._queue.put(lambda: self._record_process(record))

    def gestures_flushAll(self) -> None:
        """Enqueue cancellation of every live gesture."""
        self._queue.put(self._flush_process)

    def queue_drain(self) -> None:
        """Block until every enqueued command has been processed."""
        self._queue.join()

    def submit(self, func: Callable[[], T]) -> "Future[T]":
        """
        Run a callable on the touch queue.

        Args:
            func: Callable to execute on the worker.

        Returns:
            Future resolved with the callable's result.
        """
        future: Future[T] = Future()

        def _command() -> None:
            if not future.set_running_or_notify_cancel():
                return
            try:
                future.set_result(func())
            except Exception as exc:
                future.set_exception(exc)

        self._queue.put(_command)
        return future

    def gestures_snapshot(self) -> dict[int, ActiveGesture]:
        """
        Copy the gesture table, read on the touch queue.

        Returns:
            Mapping of external id to gesture state.
        """
        return self.submit(
            lambda: {external_id: replace(gesture) for external_id, gesture in self._gestures.items()}
        ).result()

    def _queue_run(self) -> None:
        """Worker loop: execute commands in FIFO order until sentinel."""
        logger.debug("Touch queue started")
        while True:
            command = self._queue.get()
            try:
                if command is None:
                    break
                command()
            except Exception as exc:
                logger.error("Touch queue command failed: %s", exc, exc_info=True)
            finally:
                self._queue.task_done()
        logger.debug("Touch queue stopped")

    def _record_process(self, record: TouchEventRecord) -> None:
        """
        Apply one record to the table and the sink. Touch queue only.

        Args:
            record: Touch event record.
        """
        point: Point = self._screen_backend.screenGeometry_get().denormalize(record.point)
        key: str = str(record.id)

        if record.phase == TouchPhase.BEGAN:
            gesture = self._gestures.get(record.id)
            if gesture is None:
                gesture = ActiveGesture(external_id=record.id, state=Pending(), last_point=point)
                self._gestures[record.id] = gesture
            token = self._sink_call(point, TouchPhase.BEGAN, gesture.token_get(), key)
            gesture.last_point = point
            if token is None:
                logger.debug("Sink declined gesture %s", key)
                del self._gestures[record.id]
            else:
                gesture.state = Confirmed(token)
            return

        gesture = self._gestures.get(record.id)
        current_token = gesture.token_get() if gesture is not None else None
        if gesture is None or current_token is None:
            logger.debug("Dropping %s for unconfirmed gesture %s", record.phase.value, key)
            return

        token = self._sink_call(point, record.phase, current_token, key)
        gesture.last_point = point

        if record.phase.isTerminal() or token is None:
            del self._gestures[record.id]
        else:
            gesture.state = Confirmed(token)

    def _flush_process(self) -> None:
        """Swap out the table and cancel each confirmed gesture. Touch queue only."""
        flushed, self._gestures = self._gestures, {}
        cancelled: int = 0
        for external_id, gesture in flushed.items():
            token = gesture.token_get()
            if token is None:
                continue
            self._sink_call(gesture.last_point, TouchPhase.CANCELLED, token, str(external_id))
            cancelled += 1
        if cancelled:
            logger.info("Cancelled %s active gesture(s)", cancelled)

    def _sink_call(
        self, point: Point, phase: TouchPhase, token: int | None, key: str
    ) -> int | None:
        """
        Call the sink, treating a sink failure as a declined gesture.

        Returns:
            Token returned by the sink, or None on failure.
        """
        try:
            return self._sink.gesture_apply(point, phase, token, key)
        except Exception as exc:
            logger.error("Sink failed on %s for gesture %s: %s", phase.value, key, exc, exc_info=True)
            return None
