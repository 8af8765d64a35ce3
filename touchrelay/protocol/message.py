"""Touch-event wire format for touchrelay frames"""

from __future__ import annotations

import json
import logging
import math
from typing import Any

from touchrelay.common.types import NormalizedPoint, TouchEventRecord, TouchPhase

logger = logging.getLogger(__name__)


def touchEventRecord_parse(frame: str | bytes) -> TouchEventRecord | None:
    """
    Parse one inbound text frame into a touch event record

    Frames that do not decode to the expected JSON object are dropped.
    Extra keys are ignored. Coordinates are clamped into [0, 1].

    Args:
        frame: Raw frame payload

    Returns:
        Parsed record, or None when the frame is not a valid touch event
    """
    if isinstance(frame, bytes):
        try:
            frame = frame.decode("utf-8")
        except UnicodeDecodeError:
            logger.debug("Dropping non UTF-8 frame")
            return None

    try:
        data = json.loads(frame)
    except ValueError:
        logger.debug("Dropping non-JSON frame: %.64r", frame)
        return None

    if not isinstance(data, dict):
        logger.debug("Dropping frame that is not a JSON object")
        return None

    event_id = data.get("id")
    if not isinstance(event_id, int) or isinstance(event_id, bool):
        logger.debug("Dropping frame with invalid id: %r", event_id)
        return None

    try:
        phase = TouchPhase(data.get("phase"))
    except ValueError:
        logger.debug("Dropping frame with unknown phase: %r", data.get("phase"))
        return None

    x = _fraction_parse(data.get("x"))
    y = _fraction_parse(data.get("y"))
    if x is None or y is None:
        logger.debug("Dropping frame with invalid coordinates: %r", data)
        return None

    return TouchEventRecord(id=event_id, phase=phase, point=NormalizedPoint(x=x, y=y))


def _fraction_parse(value: Any) -> float | None:
    """Validate a normalized coordinate and clamp it into [0, 1]"""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    fraction = float(value)
    if not math.isfinite(fraction):
        return None
    return min(max(fraction, 0.0), 1.0)
