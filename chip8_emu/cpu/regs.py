"""
CHIP-8 Virtual Emulator - CPU Register Set + Call Stack

Register model:
  V0-VF  16 x 8-bit general purpose registers
         VF doubles as the carry / borrow / shift-out / collision flag
  I      16-bit index register (12 significant bits, a memory address)
  PC     16-bit program counter, $200 at reset
  stack  up to 16 return addresses, SP = number of frames in use

The stack lives outside the 4K address space, so push/pop never touch
Memory.
"""

from typing import List

from ..errors import StackOverflow, StackUnderflow
from ..mem.memory import PROGRAM_START


NUM_REGISTERS = 16
STACK_DEPTH = 16
VF = 0xF


class Registers:
    """CHIP-8 register file."""

    __slots__ = ('V', '_I', '_PC', 'stack')

    def __init__(self):
        self.V: List[int] = [0] * NUM_REGISTERS
        self._I: int = 0
        self._PC: int = PROGRAM_START
        self.stack: List[int] = []

    # --- V registers ---

    def get_v(self, x: int) -> int:
        return self.V[x]

    def set_v(self, x: int, value: int):
        """Write Vx, truncated to 8 bits."""
        self.V[x] = value & 0xFF

    @property
    def vf(self) -> int:
        return self.V[VF]

    # --- I / PC ---

    @property
    def I(self) -> int:
        return self._I

    @I.setter
    def I(self, value: int):
        self._I = value & 0xFFFF

    @property
    def PC(self) -> int:
        return self._PC

    @PC.setter
    def PC(self, value: int):
        self._PC = value & 0xFFFF

    # --- Stack operations ---

    @property
    def sp(self) -> int:
        return len(self.stack)

    def push(self, addr: int):
        """Push a return address. Fails once 16 frames are in use."""
        if len(self.stack) >= STACK_DEPTH:
            raise StackOverflow(self._PC, len(self.stack))
        self.stack.append(addr & 0xFFFF)

    def pop(self) -> int:
        if not self.stack:
            raise StackUnderflow(self._PC)
        return self.stack.pop()

    # --- Display ---

    def display(self) -> str:
        """Format register state for debug log records."""
        regs = ' '.join(f"V{i:X}={v:02X}" for i, v in enumerate(self.V))
        return f"PC={self._PC:03X} I={self._I:03X} SP={self.sp:X} {regs}"

    def reset(self):
        """Reset to power-on state."""
        self.V = [0] * NUM_REGISTERS
        self._I = 0
        self._PC = PROGRAM_START
        self.stack = []
