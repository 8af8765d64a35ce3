"""Gesture lifecycle tracking."""

from touchrelay.gesture.tracker import GestureTracker

__all__ = ["GestureTracker"]
