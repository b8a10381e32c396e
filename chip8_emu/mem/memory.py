"""
CHIP-8 Virtual Emulator - 4K Memory Map

Memory map:
  $000-$04F  Interpreter area (unused, zero)
  $050-$09F  Built-in hex font (16 sprites x 5 bytes)
  $0A0-$1FF  Interpreter area (unused, zero)
  $200-$FFF  Program space (ROM image, then free RAM)

Everything below $200 is written exactly once, by load_font() during
construction. Interpreter writes into that range are rejected with
OutOfBounds, as are reads and writes past $FFF.
"""

from typing import List

from ..errors import OutOfBounds, RomTooLarge


MEMORY_SIZE = 0x1000
PROGRAM_START = 0x200
FONT_BASE = 0x050
FONT_HEIGHT = 5

# Hex digit sprites 0-F, 4 pixels wide, 5 rows each
FONT = [
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
]


class MemoryRegion:
    """A named region in the 4K address space."""
    def __init__(self, name: str, start: int, end: int, writable: bool = True):
        self.name = name
        self.start = start
        self.end = end  # inclusive
        self.writable = writable

    def contains(self, addr: int) -> bool:
        return self.start <= addr <= self.end

    @property
    def size(self) -> int:
        return self.end - self.start + 1


class Memory:
    """4096-byte flat memory with a write-protected interpreter area.

    Reads anywhere in $000-$FFF are allowed (FX29 points I into the font,
    DXYN then reads it). Writes are only allowed in program space.
    """

    REGIONS: List[MemoryRegion] = [
        MemoryRegion('INTERP',  0x000, PROGRAM_START - 1, writable=False),
        MemoryRegion('PROGRAM', PROGRAM_START, MEMORY_SIZE - 1, writable=True),
    ]

    def __init__(self):
        self._mem = bytearray(MEMORY_SIZE)
        self.load_font()

    # --- Core read/write ---

    def _check(self, addr: int):
        if not 0 <= addr < MEMORY_SIZE:
            raise OutOfBounds(addr)

    def read_byte(self, addr: int) -> int:
        self._check(addr)
        return self._mem[addr]

    def write_byte(self, addr: int, value: int):
        """Write 8-bit value. Value is truncated to a byte."""
        self._check(addr)
        if not self.region_of(addr).writable:
            raise OutOfBounds(addr, "inside the reserved interpreter area")
        self._mem[addr] = value & 0xFF

    def read_word(self, addr: int) -> int:
        """Read 16-bit value (big-endian, how opcodes are stored)."""
        hi = self.read_byte(addr)
        lo = self.read_byte(addr + 1)
        return (hi << 8) | lo

    def region_of(self, addr: int) -> MemoryRegion:
        for region in self.REGIONS:
            if region.contains(addr):
                return region
        raise OutOfBounds(addr)

    # --- Bulk load ---

    def load(self, data: bytes, at: int = PROGRAM_START):
        """Load a program image at `at` (default $200).

        The size check happens before any byte is written, so a rejected
        image leaves memory untouched.
        """
        data = bytes(data)
        self._check(at)
        limit = MEMORY_SIZE - at
        if len(data) > limit:
            raise RomTooLarge(len(data), limit)
        for i, byte in enumerate(data):
            self.write_byte(at + i, byte)

    def load_font(self):
        """Write the hex font at FONT_BASE. Bypasses write protection."""
        self._mem[FONT_BASE:FONT_BASE + len(FONT)] = bytes(FONT)

    def font_address(self, digit: int) -> int:
        return FONT_BASE + FONT_HEIGHT * (digit & 0xF)

    def clear_program(self):
        """Zero program space ($200-$FFF). The font is left alone."""
        self._mem[PROGRAM_START:] = bytes(MEMORY_SIZE - PROGRAM_START)

    # --- Snapshots ---

    def dump(self, start: int = PROGRAM_START, end: int = MEMORY_SIZE - 1) -> bytes:
        """Immutable copy of [start, end] (inclusive)."""
        self._check(start)
        self._check(end)
        return bytes(self._mem[start:end + 1])
