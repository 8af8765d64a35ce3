"""Common types and data structures for touchrelay"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union


class TouchPhase(Enum):
    """Lifecycle phase of a single touch gesture"""
    BEGAN = "began"
    MOVED = "moved"
    ENDED = "ended"
    CANCELLED = "cancelled"

    def isTerminal(self) -> bool:
        """Check if this phase ends the gesture"""
        return self in (TouchPhase.ENDED, TouchPhase.CANCELLED)


class ConnectionState(Enum):
    """Transport session connection state"""
    IDLE = "idle"
    CONNECTING = "connecting"
    READY = "ready"
    FAILED = "failed"
    CANCELLED = "cancelled"

    def isDown(self) -> bool:
        """Check if this state means the channel was lost"""
        return self in (ConnectionState.FAILED, ConnectionState.CANCELLED)


@dataclass(frozen=True)
class NormalizedPoint:
    """Resolution-independent point, each axis a fraction in [0, 1]"""
    x: float
    y: float


@dataclass(frozen=True)
class Point:
    """Absolute screen coordinate in pixels"""
    x: float
    y: float


@dataclass(frozen=True)
class Screen:
    """Screen dimensions in pixels"""
    width: int
    height: int

    def denormalize(self, point: NormalizedPoint) -> Point:
        """
        Convert a normalized point to absolute screen coordinates

        Args:
            point: Normalized point

        Returns:
            Point scaled by the screen dimensions
        """
        return Point(x=point.x * self.width, y=point.y * self.height)


@dataclass(frozen=True)
class TouchEventRecord:
    """One touch event as received from the remote source"""
    id: int
    phase: TouchPhase
    point: NormalizedPoint


@dataclass(frozen=True)
class Pending:
    """Gesture began but the sink has not confirmed it"""


@dataclass(frozen=True)
class Confirmed:
    """Gesture confirmed by the sink, carrying the sink's token"""
    token: int


GestureState = Union[Pending, Confirmed]


@dataclass
class ActiveGesture:
    """Tracker state for one live external event id"""
    external_id: int
    state: GestureState
    last_point: Point

    def token_get(self) -> int | None:
        """Return the sink token, or None while the gesture is pending"""
        if isinstance(self.state, Confirmed):
            return self.state.token
        return None
