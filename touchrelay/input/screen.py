"""Fixed-geometry screen backend."""

from __future__ import annotations

from touchrelay.common.types import Screen


class StaticScreenBackend:
    """Screen backend reporting configured dimensions.

    Used on hosts without an X11 display, and in tests.
    """

    def __init__(self, width: int, height: int) -> None:
        """
        Initialize static geometry.

        Args:
            width: Screen width in pixels.
            height: Screen height in pixels.

        Raises:
            ValueError: If either dimension is not positive.
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Invalid screen size {width}x{height}")
        self._screen: Screen = Screen(width=width, height=height)

    def connection_establish(self) -> None:
        """Nothing to connect."""

    def connection_close(self) -> None:
        """Nothing to close."""

    def screenGeometry_get(self) -> Screen:
        """Return configured geometry."""
        return self._screen
