"""
CHIP-8 Virtual Emulator - Clock Scheduler

Two rate-based loops share one emulated timeline:

  CPU loop    one step() every 1/cpu_hz seconds (configurable)
  Timer loop  one TimerUnit.tick() every 1/60 s (fixed)

They are decoupled by wall-clock accumulation, not by a fixed
instructions-per-tick ratio. advance(elapsed) moves the timeline forward
and replays both event streams in time order, so the number of timer ticks
only depends on elapsed time. A program that polls the delay timer at a
very low cpu_hz sees fewer reads per tick; that sensitivity is part of the
target program, not something to correct here.

frame(elapsed) is the per-frame host entry point: exactly one timer tick,
then elapsed * cpu_hz instructions (fractions carried over).

While an FX0A key wait is pending, or after a fatal error, instruction
slots are dropped but timers keep ticking.
"""

import logging
import math
import time
from dataclasses import dataclass
from typing import Callable, Optional

from .emu import Chip8Emulator
from .errors import Chip8Error, StopReason
from .periph.timer import TIMER_HZ


log = logging.getLogger(__name__)

DEFAULT_CPU_HZ = 700

# Absorbs float error when summing many 1/60 s slices
_EPSILON = 1e-9


@dataclass
class FrameResult:
    """What happened during one frame() / advance() call."""
    instructions: int = 0
    timer_ticks: int = 0
    display_changed: bool = False
    sound_active: bool = False
    stop: Optional[StopReason] = None
    error: Optional[Chip8Error] = None


class ClockScheduler:
    """Drives a Chip8Emulator at cpu_hz with timers fixed at timer_hz."""

    def __init__(self, emulator: Chip8Emulator, cpu_hz: float = DEFAULT_CPU_HZ,
                 timer_hz: float = TIMER_HZ):
        if cpu_hz <= 0:
            raise ValueError(f"cpu_hz must be positive, got {cpu_hz}")
        if timer_hz <= 0:
            raise ValueError(f"timer_hz must be positive, got {timer_hz}")
        self.emu = emulator
        self.cpu_hz = cpu_hz
        self.timer_hz = timer_hz

        self.elapsed = 0.0          # emulated seconds since start
        self.cpu_slots = 0          # instruction slots consumed (run or dropped)
        self.timer_ticks = 0        # timer ticks delivered
        self._frame_budget = 0.0    # fractional instructions owed by frame()

    # ══════════════════════════════════════════════
    # Host entry points
    # ══════════════════════════════════════════════

    def frame(self, elapsed: Optional[float] = None) -> FrameResult:
        """One host frame: tick timers once, then run elapsed*cpu_hz steps."""
        if elapsed is None:
            elapsed = 1.0 / self.timer_hz
        result = FrameResult()

        self.emu.timers.tick()
        self.timer_ticks += 1
        result.timer_ticks = 1

        self._frame_budget += elapsed * self.cpu_hz
        count = int(self._frame_budget + _EPSILON)
        self._frame_budget -= count
        for _ in range(count):
            self._cpu_slot(result)
            self.cpu_slots += 1
        self.elapsed += elapsed

        self._finish(result)
        return result

    def advance(self, elapsed: float) -> FrameResult:
        """Move the emulated clock forward by `elapsed` seconds.

        Instructions and timer ticks are interleaved at their exact
        emulated times. Ticks due = whole 1/timer_hz periods elapsed since
        start, independent of cpu_hz.
        """
        if elapsed < 0:
            raise ValueError(f"elapsed must be >= 0, got {elapsed}")
        result = FrameResult()
        target = self.elapsed + elapsed
        slots_due = math.floor(target * self.cpu_hz + _EPSILON)
        ticks_due = math.floor(target * self.timer_hz + _EPSILON)

        while self.cpu_slots < slots_due or self.timer_ticks < ticks_due:
            next_slot = (self.cpu_slots + 1) / self.cpu_hz
            next_tick = (self.timer_ticks + 1) / self.timer_hz
            if self.timer_ticks < ticks_due and (
                    self.cpu_slots >= slots_due or next_tick <= next_slot):
                self.emu.timers.tick()
                self.timer_ticks += 1
                result.timer_ticks += 1
            else:
                self._cpu_slot(result)
                self.cpu_slots += 1

        self.elapsed = target
        self._finish(result)
        return result

    def run_realtime(self, frames: int,
                     on_frame: Optional[Callable[[FrameResult], None]] = None,
                     clock: Callable[[], float] = time.perf_counter,
                     sleep: Callable[[float], None] = time.sleep) -> FrameResult:
        """Pace frame() at timer_hz against a monotonic clock.

        Stops early on a fatal error. Returns the last FrameResult.
        """
        period = 1.0 / self.timer_hz
        last = clock() - period
        deadline = last + 2 * period
        result = FrameResult()
        for _ in range(frames):
            now = clock()
            result = self.frame(now - last)
            last = now
            if on_frame is not None:
                on_frame(result)
            if result.error is not None:
                break
            delay = deadline - clock()
            if delay > 0:
                sleep(delay)
            deadline += period
        return result

    # ══════════════════════════════════════════════
    # Internals
    # ══════════════════════════════════════════════

    def _cpu_slot(self, result: FrameResult):
        """Spend one instruction slot: execute, or drop it if blocked."""
        if self.emu.halted:
            if result.error is None:
                result.stop = StopReason.HALTED
                result.error = self.emu.last_error
            return
        if self.emu.awaiting_key and not self.emu.keypad.press_pending:
            return
        try:
            if self.emu.step():
                result.display_changed = True
        except Chip8Error as e:
            result.stop = e.reason
            result.error = e
            return
        result.instructions += 1

    def _finish(self, result: FrameResult):
        if result.stop is None and self.emu.awaiting_key:
            result.stop = StopReason.KEY_WAIT
        result.sound_active = self.emu.is_sound_active()
