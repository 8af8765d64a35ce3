"""Multitouch injection through a uinput virtual touchscreen."""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from evdev import AbsInfo, UInput, ecodes

from touchrelay.common.settings import settings
from touchrelay.common.types import Point, Screen, TouchPhase

logger = logging.getLogger(__name__)

# ABS_MT_TOOL_TYPE values from linux/input.h
MT_TOOL_FINGER = 0x00
MT_TOOL_PALM = 0x02
MT_TOOL_MAX = 0x0F


class UInputTouchSink:
    """
    Direct-touch uinput device speaking the type-B multitouch protocol.

    Each confirmed gesture occupies one slot; its tracking id is the token
    handed back to the tracker. A began with no free slot is rejected.
    """

    def __init__(
        self,
        screen: Screen,
        device_name: str = "touchrelay-virtual-touchscreen",
        max_contacts: int = 10,
        uinput_factory: Callable[..., Any] = UInput,
    ) -> None:
        """
        Create the virtual touchscreen.

        Args:
            screen: Screen geometry the device axes are scaled to.
            device_name: uinput device name.
            max_contacts: Number of multitouch slots.
            uinput_factory: UInput constructor, replaceable for tests.
        """
        self._screen: Screen = screen
        self._max_contacts: int = max_contacts
        self._slot_by_token: dict[int, int] = {}
        self._next_tracking_id: int = 0
        self._device = uinput_factory(
            self._capabilities_build(),
            name=device_name,
            input_props=[ecodes.INPUT_PROP_DIRECT],
        )
        logger.info(
            "Created touch device '%s' (%sx%s, %s contacts)",
            device_name,
            screen.width,
            screen.height,
            max_contacts,
        )

    def gesture_apply(
        self, point: Point, phase: TouchPhase, token: int | None, key: str
    ) -> int | None:
        """
        Inject one touch phase.

        Args:
            point: Absolute screen coordinate.
            phase: Touch phase.
            token: Tracking id from the previous call for this gesture.
            key: External gesture key for diagnostics.

        Returns:
            Tracking id while the contact is down, None otherwise.
        """
        if phase == TouchPhase.BEGAN:
            return self._contact_begin(point, token, key)

        if token is None or token not in self._slot_by_token:
            logger.debug("No contact for key %s token %s, ignoring %s", key, token, phase.value)
            return None

        if phase == TouchPhase.MOVED:
            self._position_write(self._slot_by_token[token], point)
            self._device.syn()
            return token

        self._contact_lift(token, cancelled=phase == TouchPhase.CANCELLED)
        return None

    def close(self) -> None:
        """Lift any remaining contacts and destroy the device."""
        for token in list(self._slot_by_token):
            self._contact_lift(token, cancelled=True)
        self._device.close()
        logger.info("Touch device closed")

    def contacts_active(self) -> int:
        """Return number of contacts currently down."""
        return len(self._slot_by_token)

    def _contact_begin(self, point: Point, token: int | None, key: str) -> int | None:
        """
        Put a new contact down, or move an existing one on a repeated began.

        Args:
            point: Contact position.
            token: Existing tracking id, if the gesture is already down.
            key: External gesture key.

        Returns:
            Tracking id, or None when every slot is in use.
        """
        if token is not None and token in self._slot_by_token:
            self._position_write(self._slot_by_token[token], point)
            self._device.syn()
            return token

        slot: Optional[int] = self._slot_allocate()
        if slot is None:
            logger.warning(
                "All %s touch slots in use, rejecting gesture %s", self._max_contacts, key
            )
            return None

        tracking_id: int = self._trackingId_next()
        first_contact: bool = not self._slot_by_token
        self._slot_by_token[tracking_id] = slot

        self._device.write(ecodes.EV_ABS, ecodes.ABS_MT_SLOT, slot)
        self._device.write(ecodes.EV_ABS, ecodes.ABS_MT_TRACKING_ID, tracking_id)
        self._device.write(ecodes.EV_ABS, ecodes.ABS_MT_TOOL_TYPE, MT_TOOL_FINGER)
        self._position_write(slot, point, select_slot=False)
        if first_contact:
            self._device.write(ecodes.EV_KEY, ecodes.BTN_TOUCH, 1)
        self._device.syn()
        logger.debug("Contact down: key=%s slot=%s tracking_id=%s", key, slot, tracking_id)
        return tracking_id

    def _contact_lift(self, token: int, cancelled: bool) -> None:
        """
        Release a contact; cancelled contacts are reported as palms first.

        Args:
            token: Tracking id of the contact.
            cancelled: Whether the gesture was cancelled rather than ended.
        """
        slot: int = self._slot_by_token.pop(token)
        self._device.write(ecodes.EV_ABS, ecodes.ABS_MT_SLOT, slot)
        if cancelled:
            self._device.write(ecodes.EV_ABS, ecodes.ABS_MT_TOOL_TYPE, MT_TOOL_PALM)
            self._device.syn()
        self._device.write(ecodes.EV_ABS, ecodes.ABS_MT_TRACKING_ID, -1)
        if not self._slot_by_token:
            self._device.write(ecodes.EV_KEY, ecodes.BTN_TOUCH, 0)
        self._device.syn()
        logger.debug("Contact up: slot=%s tracking_id=%s cancelled=%s", slot, token, cancelled)

    def _position_write(self, slot: int, point: Point, select_slot: bool = True) -> None:
        """Write multitouch and single-touch position for a slot."""
        x: int = self._axis_clamp(point.x, self._screen.width)
        y: int = self._axis_clamp(point.y, self._screen.height)
        if select_slot:
            self._device.write(ecodes.EV_ABS, ecodes.ABS_MT_SLOT, slot)
        self._device.write(ecodes.EV_ABS, ecodes.ABS_MT_POSITION_X, x)
        self._device.write(ecodes.EV_ABS, ecodes.ABS_MT_POSITION_Y, y)
        self._device.write(ecodes.EV_ABS, ecodes.ABS_X, x)
        self._device.write(ecodes.EV_ABS, ecodes.ABS_Y, y)

    def _slot_allocate(self) -> Optional[int]:
        """Return the lowest free slot, or None."""
        used: set[int] = set(self._slot_by_token.values())
        for slot in range(self._max_contacts):
            if slot not in used:
                return slot
        return None

    def _trackingId_next(self) -> int:
        """Return the next tracking id not held by a live contact."""
        while True:
            tracking_id: int = self._next_tracking_id
            self._next_tracking_id = (tracking_id + 1) % (settings.TRACKING_ID_MAX + 1)
            if tracking_id not in self._slot_by_token:
                return tracking_id

    @staticmethod
    def _axis_clamp(value: float, size: int) -> int:
        """Round a pixel coordinate onto the device axis range."""
        return min(max(int(round(value)), 0), size - 1)

    def _capabilities_build(self) -> dict[int, list[Any]]:
        """
        Build uinput capabilities for a direct-touch screen.

        Returns:
            Capability map for UInput.
        """
        max_x: int = self._screen.width - 1
        max_y: int = self._screen.height - 1
        return {
            ecodes.EV_KEY: [ecodes.BTN_TOUCH],
            ecodes.EV_ABS: [
                (ecodes.ABS_X, AbsInfo(value=0, min=0, max=max_x, fuzz=0, flat=0, resolution=0)),
                (ecodes.ABS_Y, AbsInfo(value=0, min=0, max=max_y, fuzz=0, flat=0, resolution=0)),
                (
                    ecodes.ABS_MT_SLOT,
                    AbsInfo(value=0, min=0, max=self._max_contacts - 1, fuzz=0, flat=0, resolution=0),
                ),
                (
                    ecodes.ABS_MT_TRACKING_ID,
                    AbsInfo(value=0, min=0, max=settings.TRACKING_ID_MAX, fuzz=0, flat=0, resolution=0),
                ),
                (
                    ecodes.ABS_MT_TOOL_TYPE,
                    AbsInfo(value=0, min=0, max=MT_TOOL_MAX, fuzz=0, flat=0, resolution=0),
                ),
                (
                    ecodes.ABS_MT_POSITION_X,
                    AbsInfo(value=0, min=0, max=max_x, fuzz=0, flat=0, resolution=0),
                ),
                (
                    ecodes.ABS_MT_POSITION_Y,
                    AbsInfo(value=0, min=0, max=max_y, fuzz=0, flat=0, resolution=0),
                ),
            ],
        }
