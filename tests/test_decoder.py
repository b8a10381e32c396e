"""
CHIP-8 Virtual Emulator - Opcode Decoder Tests

The decoder is checked on its own, before any execution: every word of
the canonical table maps to the right mnemonic with the right operand
fields, and words outside the table raise UnknownOpcode.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from chip8_emu.cpu.decoder import decode, decode_at, MNEMONICS, Instruction
from chip8_emu.mem.memory import Memory
from chip8_emu.errors import UnknownOpcode, StopReason


class TestOpcodeTable:

    def test_canonical_table(self):
        cases = [
            (0x00E0, 'CLS'),
            (0x00EE, 'RET'),
            (0x1234, 'JP'),
            (0x2ABC, 'CALL'),
            (0x3142, 'SE_IMM'),
            (0x4142, 'SNE_IMM'),
            (0x5120, 'SE_REG'),
            (0x6A55, 'LD_IMM'),
            (0x7A01, 'ADD_IMM'),
            (0x8120, 'LD_REG'),
            (0x8121, 'OR'),
            (0x8122, 'AND'),
            (0x8123, 'XOR'),
            (0x8124, 'ADD_REG'),
            (0x8125, 'SUB'),
            (0x8126, 'SHR'),
            (0x8127, 'SUBN'),
            (0x812E, 'SHL'),
            (0x9120, 'SNE_REG'),
            (0xA300, 'LD_I'),
            (0xB300, 'JP_OFF'),
            (0xC10F, 'RND'),
            (0xD125, 'DRW'),
            (0xE19E, 'SKP'),
            (0xE1A1, 'SKNP'),
            (0xF107, 'LD_VX_DT'),
            (0xF10A, 'LD_VX_K'),
            (0xF115, 'LD_DT'),
            (0xF118, 'LD_ST'),
            (0xF11E, 'ADD_I'),
            (0xF129, 'LD_F'),
            (0xF133, 'LD_B'),
            (0xF155, 'LD_MEM'),
            (0xF165, 'LD_REGS'),
        ]
        for word, expected in cases:
            ins = decode(word)
            assert ins.mnemonic == expected, f"{word:04X}: expected {expected}, got {ins.mnemonic}"
            assert ins.raw == word
        assert {m for _, m in cases} == MNEMONICS

    def test_operand_fields(self):
        """$D12F → x=1, y=2, n=$F, nn=$2F, nnn=$12F"""
        ins = decode(0xD12F)
        assert ins == Instruction('DRW', 0xD12F, x=1, y=2, n=0xF, nn=0x2F, nnn=0x12F)

    def test_str(self):
        assert str(decode(0x00E0)) == "00E0 CLS"

    @pytest.mark.parametrize("word", [
        0x0000,  # 0NNN machine routine: unsupported
        0x0123,
        0x00E1,
        0x5121,  # 5XY0 requires low nibble 0
        0x9128,
        0x8008,
        0x800F,
        0xE000,
        0xE19F,
        0xF000,
        0xF0FF,
        0xF130,  # SUPER-CHIP big font, not classic
    ])
    def test_unknown_opcodes(self, word):
        with pytest.raises(UnknownOpcode) as exc:
            decode(word, pc=0x2F0)
        assert exc.value.word == word
        assert exc.value.pc == 0x2F0
        assert exc.value.reason == StopReason.UNKNOWN_OPCODE
        assert f"${word:04X}" in str(exc.value)
        assert "$2F0" in str(exc.value)

    def test_decode_at_reads_memory(self):
        mem = Memory()
        mem.load(bytes([0x00, 0xE0, 0xA3, 0x00]))
        assert decode_at(mem, 0x200).mnemonic == 'CLS'
        ins = decode_at(mem, 0x202)
        assert ins.mnemonic == 'LD_I' and ins.nnn == 0x300

    def test_decode_at_unknown_reports_pc(self):
        mem = Memory()
        mem.load(bytes([0x00, 0xE0, 0xFF, 0xFF]))
        with pytest.raises(UnknownOpcode) as exc:
            decode_at(mem, 0x202)
        assert exc.value.pc == 0x202
