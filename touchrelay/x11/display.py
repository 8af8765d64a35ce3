"""X11 display connection and screen geometry lookup"""

import logging
from typing import Optional

from Xlib import display as xdisplay
from Xlib.display import Display

from touchrelay.common.types import Screen

logger = logging.getLogger(__name__)


class DisplayManager:
    """Manages X11 display connection and screen information"""

    def __init__(self, display_name: Optional[str] = None) -> None:
        """
        Initialize display manager

        Args:
            display_name: X11 display name (e.g., ':0'), None for default
        """
        self._display: Optional[Display] = None
        self._display_name: Optional[str] = display_name

    def connection_establish(self) -> None:
        """Establish connection to X11 display"""
        if self._display is not None:
            return
        self._display = xdisplay.Display(self._display_name)
        logger.debug("Connected to X11 display %s", self._display.get_display_name())

    def connection_close(self) -> None:
        """Close X11 display connection"""
        if self._display is not None:
            self._display.close()
            self._display = None

    def display_get(self) -> Display:
        """
        Get X11 display object

        Returns:
            X11 Display object

        Raises:
            RuntimeError: If not connected to display
        """
        if self._display is None:
            raise RuntimeError("Not connected to X11 display")
        return self._display

    def screenGeometry_get(self) -> Screen:
        """
        Get screen geometry (dimensions) from the root window

        Returns:
            Screen with width and height

        Raises:
            RuntimeError: If not connected to display
        """
        display = self.display_get()
        root = display.screen().root
        geom = root.get_geometry()

        return Screen(width=geom.width, height=geom.height)
