"""
CHIP-8 Virtual Emulator - Error Taxonomy

Every fatal condition the core can hit is raised as a Chip8Error subclass
carrying a StopReason tag, so an embedding host (headless test harness,
interactive runner) can branch on the kind without parsing messages:

  OUT_OF_BOUNDS    memory access outside $000-$FFF, or an interpreter write
                   below $200 (corrupted PC / malformed operand)
  STACK_OVERFLOW   CALL with 16 frames already on the stack
  STACK_UNDERFLOW  RET with an empty stack
  UNKNOWN_OPCODE   word matches no entry of the opcode table
  ROM_TOO_LARGE    program does not fit between $200 and $FFF

STEP_LIMIT and KEY_WAIT are not errors; run() uses them to say why a
bounded run returned.
"""

from enum import Enum
from typing import Optional


class StopReason(Enum):
    OUT_OF_BOUNDS = 'OUT_OF_BOUNDS'
    STACK_OVERFLOW = 'STACK_OVERFLOW'
    STACK_UNDERFLOW = 'STACK_UNDERFLOW'
    UNKNOWN_OPCODE = 'UNKNOWN_OPCODE'
    ROM_TOO_LARGE = 'ROM_TOO_LARGE'
    HALTED = 'HALTED'
    STEP_LIMIT = 'STEP_LIMIT'
    KEY_WAIT = 'KEY_WAIT'


class Chip8Error(Exception):
    """Base class for all core errors. `reason` tags the kind."""

    reason: StopReason = StopReason.HALTED


class OutOfBounds(Chip8Error):
    reason = StopReason.OUT_OF_BOUNDS

    def __init__(self, addr: int, detail: str = "outside $000-$FFF"):
        self.addr = addr
        super().__init__(f"Memory access at ${addr:04X} {detail}")


class StackOverflow(Chip8Error):
    reason = StopReason.STACK_OVERFLOW

    def __init__(self, pc: int, depth: int):
        self.pc = pc
        self.depth = depth
        super().__init__(f"Stack full ({depth} frames) on CALL, PC=${pc:03X}")


class StackUnderflow(Chip8Error):
    reason = StopReason.STACK_UNDERFLOW

    def __init__(self, pc: int):
        self.pc = pc
        super().__init__(f"RET with an empty stack, PC=${pc:03X}")


class UnknownOpcode(Chip8Error):
    reason = StopReason.UNKNOWN_OPCODE

    def __init__(self, word: int, pc: Optional[int] = None):
        self.word = word
        self.pc = pc
        where = f" at ${pc:03X}" if pc is not None else ""
        super().__init__(f"Unknown opcode ${word:04X}{where}")


class RomTooLarge(Chip8Error):
    reason = StopReason.ROM_TOO_LARGE

    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(f"Program size is {size} bytes but cannot exceed {limit} bytes")


class EmulatorHalted(Chip8Error):
    """Raised by step() after a fatal error; `cause` is that error."""

    reason = StopReason.HALTED

    def __init__(self, cause: Chip8Error):
        self.cause = cause
        super().__init__(f"Emulator halted: {cause}")
