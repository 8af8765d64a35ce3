"""Backend factory functions."""

from __future__ import annotations

from typing import Optional

from touchrelay.common.types import Screen
from touchrelay.input.backend import GestureSink, ScreenBackend
from touchrelay.input.screen import StaticScreenBackend


def screenBackend_create(
    backend_name: str,
    display_name: Optional[str],
    width: Optional[int],
    height: Optional[int],
) -> ScreenBackend:
    """
    Create the screen geometry backend.

    Args:
        backend_name: Backend identifier ("x11" or "static")
        display_name: X11 display name (x11 only)
        width: Screen width override (static only)
        height: Screen height override (static only)

    Returns:
        Screen backend, not yet connected
    """
    backend = backend_name.lower()

    if backend == "x11":
        from touchrelay.x11.display import DisplayManager

        return DisplayManager(display_name=display_name)

    if backend == "static":
        if width is None or height is None:
            raise ValueError("Static screen backend requires screen.width and screen.height")
        return StaticScreenBackend(width=width, height=height)

    raise ValueError(f"Unsupported screen backend '{backend_name}'. Supported: x11, static.")


def touchSink_create(
    backend_name: str,
    screen: Screen,
    device_name: str,
    max_contacts: int,
) -> GestureSink:
    """
    Create the touch injection sink.

    Args:
        backend_name: Sink identifier ("uinput" or "log")
        screen: Screen geometry for device axis ranges
        device_name: uinput device name
        max_contacts: Concurrent contact limit

    Returns:
        Gesture sink
    """
    backend = backend_name.lower()

    if backend == "uinput":
        from touchrelay.input.uinput_sink import UInputTouchSink

        return UInputTouchSink(screen=screen, device_name=device_name, max_contacts=max_contacts)

    if backend == "log":
        from touchrelay.input.logging_sink import LoggingTouchSink

        return LoggingTouchSink(max_contacts=max_contacts)

    raise ValueError(f"Unsupported sink backend '{backend_name}'. Supported: uinput, log.")
