# CHIP-8 Virtual Emulator - interpreter core for the classic CHIP-8 VM
#
# Layout mirrors the hardware model:
#   cpu/     register file, ALU helpers, opcode decoder
#   mem/     4K memory + built-in font
#   periph/  delay/sound timers, 64x32 display buffer, hex keypad
#   emu.py   fetch/decode/execute + quirk-governed opcode handlers
#   clock.py CPU-rate / 60 Hz timer scheduling
#   cli.py   headless runner

__version__ = "0.4.0"

from .errors import (
    Chip8Error, EmulatorHalted, OutOfBounds, RomTooLarge, StackOverflow,
    StackUnderflow, StopReason, UnknownOpcode,
)
from .quirks import PRESETS, Quirks
from .emu import Chip8Emulator
from .clock import ClockScheduler, FrameResult

__all__ = [
    'Chip8Emulator', 'ClockScheduler', 'FrameResult', 'Quirks', 'PRESETS',
    'Chip8Error', 'EmulatorHalted', 'OutOfBounds', 'RomTooLarge',
    'StackOverflow', 'StackUnderflow', 'StopReason', 'UnknownOpcode',
]
