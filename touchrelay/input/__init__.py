"""Backend abstraction layer for screen lookup and touch injection."""

from touchrelay.input.backend import GestureSink, ScreenBackend
from touchrelay.input.factory import screenBackend_create, touchSink_create

__all__ = [
    "GestureSink",
    "ScreenBackend",
    "screenBackend_create",
    "touchSink_create",
]
