"""Backend protocols for screen lookup and touch injection."""

from __future__ import annotations

from typing import Protocol

from touchrelay.common.types import Point, Screen, TouchPhase


class ScreenBackend(Protocol):
    """Abstract screen geometry source."""

    def connection_establish(self) -> None:
        """
        Establish connection to the screen backend.

        Args:
            None.

        Returns:
            Result value.
        """

    def connection_close(self) -> None:
        """
        Close connection to the screen backend.

        Args:
            None.

        Returns:
            Result value.
        """

    def screenGeometry_get(self) -> Screen:
        """
        Get current screen geometry.

        Args:
            None.

        Returns:
            Screen geometry.
        """


class GestureSink(Protocol):
    """Abstract touch injection interface.

    Implementations are only ever called from the tracker's touch queue,
    so they need no locking of their own.
    """

    def gesture_apply(
        self, point: Point, phase: TouchPhase, token: int | None, key: str
    ) -> int | None:
        """
        Inject one touch phase.

        Args:
            point: Absolute screen coordinate.
            phase: Touch phase to inject.
            token: Token returned for this gesture by an earlier call, or None.
            key: External gesture key for diagnostics.

        Returns:
            Token identifying the gesture after this call, or None when the
            sink declined or the gesture is over.
        """

    def close(self) -> None:
        """
        Release injection resources.

        Args:
            None.

        Returns:
            Result value.
        """
