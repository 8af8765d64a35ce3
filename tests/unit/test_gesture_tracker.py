"""Unit tests for gesture tracking on the serial touch queue."""

from __future__ import annotations

from typing import Iterator

import pytest

from touchrelay.common.types import (
    ActiveGesture,
    Confirmed,
    NormalizedPoint,
    Pending,
    Point,
    TouchEventRecord,
    TouchPhase,
)
from touchrelay.gesture.tracker import GestureTracker
from touchrelay.input.screen import StaticScreenBackend


class _RecordingSink:
    """Fake sink recording calls and returning scripted tokens."""

    def __init__(self) -> None:
        """Initialize sink state."""
        self.calls: list[tuple[Point, TouchPhase, int | None, str]] = []
        self.next_token: int = 100
        self.reject_began: bool = False
        self.drop_on_move: bool = False
        self.fail_next: bool = False

    def gesture_apply(
        self, point: Point, phase: TouchPhase, token: int | None, key: str
    ) -> int | None:
        """Record call and return a token according to the script."""
        self.calls.append((point, phase, token, key))
        if self.fail_next:
            self.fail_next = False
            raise RuntimeError("simulated sink failure")
        if phase == TouchPhase.BEGAN:
            if self.reject_began:
                return None
            if token is not None:
                return token
            self.next_token += 1
            return self.next_token
        if phase == TouchPhase.MOVED:
            return None if self.drop_on_move else token
        return None

    def close(self) -> None:
        """Nothing to release."""

    def phases(self) -> list[TouchPhase]:
        """Return recorded phases in call order."""
        return [call[1] for call in self.calls]


def _record(event_id: int, phase: TouchPhase, x: float = 0.5, y: float = 0.5) -> TouchEventRecord:
    """Build a touch event record."""
    return TouchEventRecord(id=event_id, phase=phase, point=NormalizedPoint(x=x, y=y))


@pytest.fixture
def sink() -> _RecordingSink:
    """Recording sink."""
    return _RecordingSink()


@pytest.fixture
def tracker(sink: _RecordingSink) -> Iterator[GestureTracker]:
    """Started tracker over a 1000x500 screen."""
    gesture_tracker = GestureTracker(sink=sink, screen_backend=StaticScreenBackend(1000, 500))
    gesture_tracker.start()
    yield gesture_tracker
    gesture_tracker.stop()


class TestGestureOrdering:
    """Tests for begin/move/end ordering per external id."""

    def test_began_moves_ended_reach_sink_in_order(
        self, tracker: GestureTracker, sink: _RecordingSink
    ) -> None:
        """One began, k moves with the stored token, one ended."""
        tracker.record_apply(_record(1, TouchPhase.BEGAN, 0.1, 0.2))
        for step in range(3):
            tracker.record_apply(_record(1, TouchPhase.MOVED, 0.2 + step * 0.1, 0.2))
        tracker.record_apply(_record(1, TouchPhase.ENDED, 0.5, 0.2))
        tracker.queue_drain()

        assert sink.phases() == [
            TouchPhase.BEGAN,
            TouchPhase.MOVED,
            TouchPhase.MOVED,
            TouchPhase.MOVED,
            TouchPhase.ENDED,
        ]
        assert sink.calls[0][2] is None
        assert all(call[2] == 101 for call in sink.calls[1:])
        assert all(call[3] == "1" for call in sink.calls)
        assert tracker.gestures_snapshot() == {}

    def test_points_are_denormalized_to_screen(
        self, tracker: GestureTracker, sink: _RecordingSink
    ) -> None:
        """Normalized fractions are scaled by current screen size."""
        tracker.record_apply(_record(2, TouchPhase.BEGAN, 0.25, 0.5))
        tracker.queue_drain()

        assert sink.calls[0][0] == Point(x=250.0, y=250.0)

    def test_interleaved_ids_keep_separate_tokens(
        self, tracker: GestureTracker, sink: _RecordingSink
    ) -> None:
        """Two concurrent gestures each move with their own token."""
        tracker.record_apply(_record(1, TouchPhase.BEGAN))
        tracker.record_apply(_record(2, TouchPhase.BEGAN))
        tracker.record_apply(_record(2, TouchPhase.MOVED))
        tracker.record_apply(_record(1, TouchPhase.MOVED))
        tracker.queue_drain()

        moves = [(call[3], call[2]) for call in sink.calls if call[1] == TouchPhase.MOVED]
        assert moves == [("2", 102), ("1", 101)]
        assert set(tracker.gestures_snapshot()) == {1, 2}


class TestDropPolicy:
    """Tests for records that must not reach the sink."""

    def test_move_and_end_before_began_are_dropped(
        self, tracker: GestureTracker, sink: _RecordingSink
    ) -> None:
        """No confirmed gesture means no sink call and no table change."""
        tracker.record_apply(_record(7, TouchPhase.MOVED))
        tracker.record_apply(_record(7, TouchPhase.ENDED))
        tracker.record_apply(_record(7, TouchPhase.CANCELLED))
        tracker.queue_drain()

        assert sink.calls == []
        assert tracker.gestures_snapshot() == {}

    def test_sink_rejection_drops_following_moves(
        self, tracker: GestureTracker, sink: _RecordingSink
    ) -> None:
        """A declined began leaves no entry; the next move is ignored."""
        sink.reject_began = True
        tracker.record_apply(_record(3, TouchPhase.BEGAN))
        tracker.record_apply(_record(3, TouchPhase.MOVED))
        tracker.queue_drain()

        assert sink.phases() == [TouchPhase.BEGAN]
        assert tracker.gestures_snapshot() == {}

    def test_new_began_after_rejection_is_processed(
        self, tracker: GestureTracker, sink: _RecordingSink
    ) -> None:
        """A fresh began after rejection starts tracking again."""
        sink.reject_began = True
        tracker.record_apply(_record(3, TouchPhase.BEGAN))
        tracker.queue_drain()
        sink.reject_began = False
        tracker.record_apply(_record(3, TouchPhase.BEGAN))
        tracker.record_apply(_record(3, TouchPhase.MOVED))
        tracker.queue_drain()

        assert sink.phases() == [TouchPhase.BEGAN, TouchPhase.BEGAN, TouchPhase.MOVED]
        assert tracker.gestures_snapshot()[3].state == Confirmed(101)

    def test_move_without_token_from_sink_removes_entry(
        self, tracker: GestureTracker, sink: _RecordingSink
    ) -> None:
        """When the sink stops returning a token on move, tracking ends."""
        tracker.record_apply(_record(4, TouchPhase.BEGAN))
        tracker.queue_drain()
        sink.drop_on_move = True
        tracker.record_apply(_record(4, TouchPhase.MOVED))
        tracker.record_apply(_record(4, TouchPhase.MOVED))
        tracker.queue_drain()

        assert sink.phases() == [TouchPhase.BEGAN, TouchPhase.MOVED]
        assert tracker.gestures_snapshot() == {}

    def test_sink_failure_is_treated_as_rejection(
        self, tracker: GestureTracker, sink: _RecordingSink
    ) -> None:
        """A raising sink does not stop the queue and leaves no entry."""
        sink.fail_next = True
        tracker.record_apply(_record(5, TouchPhase.BEGAN))
        tracker.record_apply(_record(5, TouchPhase.MOVED))
        tracker.record_apply(_record(6, TouchPhase.BEGAN))
        tracker.queue_drain()

        assert sink.phases() == [TouchPhase.BEGAN, TouchPhase.BEGAN]
        assert set(tracker.gestures_snapshot()) == {6}


class TestFlush:
    """Tests for flush-all cancellation."""

    def test_flush_cancels_only_confirmed_gestures(
        self, tracker: GestureTracker, sink: _RecordingSink
    ) -> None:
        """Confirmed A is cancelled at its last point; pending B is not."""
        p1 = Point(x=10.0, y=20.0)
        p2 = Point(x=30.0, y=40.0)

        def _seed() -> None:
            tracker._gestures[1] = ActiveGesture(external_id=1, state=Confirmed(55), last_point=p1)
            tracker._gestures[2] = ActiveGesture(external_id=2, state=Pending(), last_point=p2)

        tracker.submit(_seed).result()
        tracker.gestures_flushAll()
        tracker.queue_drain()

        assert sink.calls == [(p1, TouchPhase.CANCELLED, 55, "1")]
        assert tracker.gestures_snapshot() == {}

    def test_second_flush_issues_no_calls(
        self, tracker: GestureTracker, sink: _RecordingSink
    ) -> None:
        """Flushing twice cancels only on the first flush."""
        tracker.record_apply(_record(1, TouchPhase.BEGAN))
        tracker.gestures_flushAll()
        tracker.gestures_flushAll()
        tracker.queue_drain()

        assert sink.phases() == [TouchPhase.BEGAN, TouchPhase.CANCELLED]

    def test_flush_uses_last_moved_point(
        self, tracker: GestureTracker, sink: _RecordingSink
    ) -> None:
        """Cancellation is synthesized where the gesture last was."""
        tracker.record_apply(_record(9, TouchPhase.BEGAN, 0.1, 0.1))
        tracker.record_apply(_record(9, TouchPhase.MOVED, 0.8, 0.4))
        tracker.gestures_flushAll()
        tracker.queue_drain()

        assert sink.calls[-1] == (Point(x=800.0, y=200.0), TouchPhase.CANCELLED, 101, "9")

    def test_flush_orders_between_applies(
        self, tracker: GestureTracker, sink: _RecordingSink
    ) -> None:
        """Applies after a flush see an empty table."""
        tracker.record_apply(_record(1, TouchPhase.BEGAN))
        tracker.gestures_flushAll()
        tracker.record_apply(_record(1, TouchPhase.MOVED))
        tracker.queue_drain()

        assert sink.phases() == [TouchPhase.BEGAN, TouchPhase.CANCELLED]


class TestTrackerLifecycle:
    """Tests for worker start/stop behavior."""

    def test_stop_runs_pending_work_first(self, sink: _RecordingSink) -> None:
        """Commands enqueued before stop() are executed."""
        gesture_tracker = GestureTracker(sink=sink, screen_backend=StaticScreenBackend(100, 100))
        gesture_tracker.start()
        gesture_tracker.record_apply(_record(1, TouchPhase.BEGAN))
        gesture_tracker.gestures_flushAll()
        gesture_tracker.stop()

        assert sink.phases() == [TouchPhase.BEGAN, TouchPhase.CANCELLED]

    def test_submit_propagates_exceptions(self, tracker: GestureTracker) -> None:
        """Exceptions raised on the queue surface through the future."""

        def _boom() -> None:
            raise ValueError("boom")

        with pytest.raises(ValueError, match="boom"):
            tracker.submit(_boom).result(timeout=2)
