"""
CHIP-8 Virtual Emulator - 16-Key Hex Keypad

Layout of the original COSMAC VIP keypad:

    1 2 3 C
    4 5 6 D
    7 8 9 E
    A 0 B F

set_pressed() is the only entry point for the input collaborator. The
FX0A wait is built on press *transitions*: arm_wait() starts recording
released->pressed edges, wait_for_any_press() hands back the first one.
A key that was already down when the wait was armed has to be released
and pressed again.
"""

import logging
from collections import deque
from typing import Deque, List, Optional


log = logging.getLogger(__name__)

NUM_KEYS = 16


class Keypad:
    """Pressed/released state for keys 0x0-0xF."""

    def __init__(self):
        self._pressed: List[bool] = [False] * NUM_KEYS
        self._waiting = False
        self._presses: Deque[int] = deque()

    @staticmethod
    def _check(key: int):
        if not 0 <= key < NUM_KEYS:
            raise ValueError(f"Key {key!r} outside 0x0-0xF")

    def set_pressed(self, key: int, pressed: bool):
        """Record a key state change from the input collaborator."""
        self._check(key)
        was_pressed = self._pressed[key]
        self._pressed[key] = bool(pressed)
        if self._waiting and pressed and not was_pressed:
            self._presses.append(key)

    def is_pressed(self, key: int) -> bool:
        self._check(key)
        return self._pressed[key]

    def pressed_keys(self) -> List[int]:
        return [k for k in range(NUM_KEYS) if self._pressed[k]]

    # --- FX0A support ---

    @property
    def waiting(self) -> bool:
        return self._waiting

    @property
    def press_pending(self) -> bool:
        """A press has been recorded for the armed wait."""
        return self._waiting and bool(self._presses)

    def arm_wait(self):
        """Start recording press transitions for a blocking key wait."""
        self._presses.clear()
        self._waiting = True
        log.debug("Key wait armed")

    def wait_for_any_press(self) -> Optional[int]:
        """First key seen going down since arm_wait(), or None.

        Returning a key disarms the wait.
        """
        if not self._presses:
            return None
        key = self._presses.popleft()
        self._presses.clear()
        self._waiting = False
        log.debug("Key wait satisfied by key %X", key)
        return key

    def reset(self):
        self._pressed = [False] * NUM_KEYS
        self._waiting = False
        self._presses.clear()
