"""
CHIP-8 Virtual Emulator - Delay / Sound Timers

Two independent 8-bit down-counters. Both are decremented by one on every
tick() while non-zero, and tick() is called once per 1/60 s of emulated
time by the clock scheduler, never by instruction execution.

The sound timer doubles as the tone gate: the audio collaborator polls
is_sound_active() once per rendered frame.
"""


TIMER_HZ = 60


class TimerUnit:
    """Delay + sound timer pair."""

    def __init__(self):
        self._delay = 0
        self._sound = 0
        self.ticks = 0  # total tick() calls since reset

    def tick(self):
        """Advance one 1/60 s period."""
        if self._delay > 0:
            self._delay -= 1
        if self._sound > 0:
            self._sound -= 1
        self.ticks += 1

    def set_delay(self, value: int):
        self._delay = value & 0xFF

    def set_sound(self, value: int):
        self._sound = value & 0xFF

    def get_delay(self) -> int:
        return self._delay

    def get_sound(self) -> int:
        return self._sound

    def is_sound_active(self) -> bool:
        return self._sound > 0

    def reset(self):
        self._delay = 0
        self._sound = 0
        self.ticks = 0
