"""
CHIP-8 Virtual Emulator - ALU Operations

Every function returns (result_byte, flag) where flag is the value the
executor writes to VF (0 or 1). Logic ops return flag None: whether VF is
touched at all is a quirk decision made by the executor.

Flag conventions:
  add8  VF = 1 on carry out of bit 7
  sub8  VF = 1 when NO borrow occurred (a >= b)
  shr8  VF = bit 0 before the shift
  shl8  VF = bit 7 before the shift
"""

from typing import Optional, Tuple


def add8(a: int, b: int) -> Tuple[int, int]:
    """a + b mod 256, carry flag."""
    result = a + b
    return (result & 0xFF, 1 if result > 0xFF else 0)


def sub8(a: int, b: int) -> Tuple[int, int]:
    """a - b mod 256, not-borrow flag."""
    result = a - b
    return (result & 0xFF, 1 if a >= b else 0)


def shr8(value: int) -> Tuple[int, int]:
    return ((value & 0xFF) >> 1, value & 0x01)


def shl8(value: int) -> Tuple[int, int]:
    return ((value << 1) & 0xFF, (value >> 7) & 0x01)


def and8(a: int, b: int) -> Tuple[int, Optional[int]]:
    return ((a & b) & 0xFF, None)


def or8(a: int, b: int) -> Tuple[int, Optional[int]]:
    return ((a | b) & 0xFF, None)


def xor8(a: int, b: int) -> Tuple[int, Optional[int]]:
    return ((a ^ b) & 0xFF, None)


def bcd(value: int) -> Tuple[int, int, int]:
    """Split a byte into decimal (hundreds, tens, ones)."""
    value &= 0xFF
    return (value // 100, (value // 10) % 10, value % 10)
