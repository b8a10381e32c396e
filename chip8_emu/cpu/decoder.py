"""
CHIP-8 Virtual Emulator - Opcode Decoder

Maps a 16-bit instruction word to a typed Instruction. Decoding is kept
separate from execution so the opcode table can be tested on its own and
UnknownOpcode is raised before any state is touched.

Operand fields (nibbles of the word $ABCD):
  x    second nibble  (B)     register index
  y    third nibble   (C)     register index
  n    fourth nibble  (D)     4-bit immediate (sprite height)
  nn   low byte       (CD)    8-bit immediate
  nnn  low 12 bits    (BCD)   address

The family is chosen by the high nibble; families $0, $8, $E and $F are
further split on the low nibble / low byte, which is what the masks below
encode.
"""

from dataclasses import dataclass
from typing import Optional

from ..errors import UnknownOpcode


# ──────────────────────────────────────────────
# Opcode pattern table
# ──────────────────────────────────────────────
# Format: (mask, match, mnemonic). First entry with word & mask == match wins.

OPCODE_PATTERNS = [
    # ── Display / flow ──
    (0xFFFF, 0x00E0, 'CLS'),
    (0xFFFF, 0x00EE, 'RET'),
    (0xF000, 0x1000, 'JP'),
    (0xF000, 0x2000, 'CALL'),

    # ── Conditional skips ──
    (0xF000, 0x3000, 'SE_IMM'),
    (0xF000, 0x4000, 'SNE_IMM'),
    (0xF00F, 0x5000, 'SE_REG'),
    (0xF00F, 0x9000, 'SNE_REG'),

    # ── Register load / arithmetic ──
    (0xF000, 0x6000, 'LD_IMM'),
    (0xF000, 0x7000, 'ADD_IMM'),
    (0xF00F, 0x8000, 'LD_REG'),
    (0xF00F, 0x8001, 'OR'),
    (0xF00F, 0x8002, 'AND'),
    (0xF00F, 0x8003, 'XOR'),
    (0xF00F, 0x8004, 'ADD_REG'),
    (0xF00F, 0x8005, 'SUB'),
    (0xF00F, 0x8006, 'SHR'),
    (0xF00F, 0x8007, 'SUBN'),
    (0xF00F, 0x800E, 'SHL'),

    # ── Index / jump with offset / random / draw ──
    (0xF000, 0xA000, 'LD_I'),
    (0xF000, 0xB000, 'JP_OFF'),
    (0xF000, 0xC000, 'RND'),
    (0xF000, 0xD000, 'DRW'),

    # ── Keypad ──
    (0xF0FF, 0xE09E, 'SKP'),
    (0xF0FF, 0xE0A1, 'SKNP'),

    # ── Timers / keys / memory ──
    (0xF0FF, 0xF007, 'LD_VX_DT'),
    (0xF0FF, 0xF00A, 'LD_VX_K'),
    (0xF0FF, 0xF015, 'LD_DT'),
    (0xF0FF, 0xF018, 'LD_ST'),
    (0xF0FF, 0xF01E, 'ADD_I'),
    (0xF0FF, 0xF029, 'LD_F'),
    (0xF0FF, 0xF033, 'LD_B'),
    (0xF0FF, 0xF055, 'LD_MEM'),
    (0xF0FF, 0xF065, 'LD_REGS'),
]

MNEMONICS = frozenset(m for _, _, m in OPCODE_PATTERNS)


@dataclass(frozen=True)
class Instruction:
    """Decoded instruction: mnemonic plus every operand field of the word."""
    mnemonic: str
    raw: int
    x: int
    y: int
    n: int
    nn: int
    nnn: int

    def __str__(self) -> str:
        return f"{self.raw:04X} {self.mnemonic}"


def decode(word: int, pc: Optional[int] = None) -> Instruction:
    """Decode a 16-bit word. Raises UnknownOpcode if no pattern matches.

    `pc` is only used to locate the word in the error message.
    """
    word &= 0xFFFF
    for mask, match, mnem in OPCODE_PATTERNS:
        if word & mask == match:
            return Instruction(
                mnemonic=mnem,
                raw=word,
                x=(word >> 8) & 0xF,
                y=(word >> 4) & 0xF,
                n=word & 0xF,
                nn=word & 0xFF,
                nnn=word & 0xFFF,
            )
    raise UnknownOpcode(word, pc)


def decode_at(memory, pc: int) -> Instruction:
    """Fetch the word at pc and decode it."""
    return decode(memory.read_word(pc), pc)
