"""Unit tests for backend factories, the static screen and the logging sink."""

from __future__ import annotations

import pytest

from touchrelay.common.types import Point, Screen, TouchPhase
from touchrelay.input.factory import screenBackend_create, touchSink_create
from touchrelay.input.logging_sink import LoggingTouchSink
from touchrelay.input.screen import StaticScreenBackend


class TestScreenBackendFactory:
    """Tests for screen backend selection."""

    def test_static_backend(self) -> None:
        """Static backend reports configured geometry."""
        backend = screenBackend_create("static", None, 1280, 720)
        backend.connection_establish()

        assert backend.screenGeometry_get() == Screen(width=1280, height=720)

    def test_static_backend_requires_dimensions(self) -> None:
        """Static backend without a size is a configuration error."""
        with pytest.raises(ValueError, match="screen.width"):
            screenBackend_create("static", None, None, 720)

    def test_unknown_backend_rejected(self) -> None:
        """Unsupported backend names raise ValueError."""
        with pytest.raises(ValueError, match="Unsupported screen backend"):
            screenBackend_create("wayland", None, None, None)

    def test_static_backend_rejects_zero_size(self) -> None:
        """Non-positive dimensions are rejected."""
        with pytest.raises(ValueError):
            StaticScreenBackend(width=0, height=10)


class TestTouchSinkFactory:
    """Tests for sink selection."""

    def test_log_sink(self) -> None:
        """The log backend needs no device access."""
        sink = touchSink_create("log", Screen(width=10, height=10), "unused", 3)

        assert isinstance(sink, LoggingTouchSink)

    def test_unknown_sink_rejected(self) -> None:
        """Unsupported sink names raise ValueError."""
        with pytest.raises(ValueError, match="Unsupported sink backend"):
            touchSink_create("xtest", Screen(width=10, height=10), "unused", 3)


class TestLoggingTouchSink:
    """Tests for dry-run token semantics."""

    def test_token_lifecycle(self) -> None:
        """Began issues a token, moved keeps it, ended releases it."""
        sink = LoggingTouchSink()
        point = Point(x=1.0, y=2.0)

        token = sink.gesture_apply(point, TouchPhase.BEGAN, None, "1")
        assert token == 1
        assert sink.gesture_apply(point, TouchPhase.MOVED, token, "1") == token
        assert sink.gesture_apply(point, TouchPhase.ENDED, token, "1") is None
        assert sink.gesture_apply(point, TouchPhase.MOVED, token, "1") is None

    def test_contact_limit(self) -> None:
        """Gestures past the limit are declined."""
        sink = LoggingTouchSink(max_contacts=1)
        point = Point(x=1.0, y=2.0)

        assert sink.gesture_apply(point, TouchPhase.BEGAN, None, "1") is not None
        assert sink.gesture_apply(point, TouchPhase.BEGAN, None, "2") is None

    def test_calls_are_logged(self, caplog) -> None:
        """Every call is visible in the log."""
        sink = LoggingTouchSink()

        sink.gesture_apply(Point(x=3.0, y=4.0), TouchPhase.BEGAN, None, "7")

        assert "touch began key=7" in caplog.text
