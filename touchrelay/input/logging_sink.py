"""Dry-run touch sink that only logs."""

from __future__ import annotations

import logging

from touchrelay.common.types import Point, TouchPhase

logger = logging.getLogger(__name__)


class LoggingTouchSink:
    """Sink that records gestures in the log instead of injecting them.

    Tokens are handed out from a counter; at most `max_contacts` gestures
    may be down at once so slot exhaustion behaves like the uinput sink.
    """

    def __init__(self, max_contacts: int = 10) -> None:
        """
        Initialize sink state.

        Args:
            max_contacts: Concurrent gesture limit.
        """
        self._max_contacts: int = max_contacts
        self._next_token: int = 1
        self._active: set[int] = set()

    def gesture_apply(
        self, point: Point, phase: TouchPhase, token: int | None, key: str
    ) -> int | None:
        """Log the call and mirror uinput token semantics."""
        logger.info(
            "touch %s key=%s token=%s at (%.1f, %.1f)", phase.value, key, token, point.x, point.y
        )
        if phase == TouchPhase.BEGAN:
            if token is not None and token in self._active:
                return token
            if len(self._active) >= self._max_contacts:
                return None
            token = self._next_token
            self._next_token += 1
            self._active.add(token)
            return token

        if token is None or token not in self._active:
            return None
        if phase == TouchPhase.MOVED:
            return token
        self._active.discard(token)
        return None

    def close(self) -> None:
        """Forget remaining gestures."""
        if self._active:
            logger.info("Dropping %s open gestures", len(self._active))
        self._active.clear()
