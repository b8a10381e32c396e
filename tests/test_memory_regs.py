"""
CHIP-8 Virtual Emulator - Memory, Register File and ALU Tests

Leaf components, tested without the executor:
  - 4K memory bounds, big-endian word fetch, ROM loading, font placement
  - V register truncation, I/PC masking, 16-deep call stack
  - ALU carry/borrow/shift laws over every byte value
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from chip8_emu.mem.memory import Memory, FONT, FONT_BASE, PROGRAM_START, MEMORY_SIZE
from chip8_emu.cpu.regs import Registers, STACK_DEPTH
from chip8_emu.cpu import alu
from chip8_emu.errors import (
    OutOfBounds, RomTooLarge, StackOverflow, StackUnderflow, StopReason,
)


class TestMemory:

    def test_read_write_program_space(self):
        """write $300=$AB → read $300=$AB"""
        mem = Memory()
        mem.write_byte(0x300, 0xAB)
        assert mem.read_byte(0x300) == 0xAB

    def test_write_truncates_to_byte(self):
        mem = Memory()
        mem.write_byte(0x300, 0x1FF)
        assert mem.read_byte(0x300) == 0xFF

    def test_read_word_big_endian(self):
        """$200=$12, $201=$34 → word $1234"""
        mem = Memory()
        mem.load(bytes([0x12, 0x34]))
        assert mem.read_word(0x200) == 0x1234

    def test_last_byte_addressable(self):
        mem = Memory()
        mem.write_byte(0xFFF, 0x42)
        assert mem.read_byte(0xFFF) == 0x42

    @pytest.mark.parametrize("addr", [0x1000, 0x1FFF, -1])
    def test_read_out_of_bounds(self, addr):
        mem = Memory()
        with pytest.raises(OutOfBounds) as exc:
            mem.read_byte(addr)
        assert exc.value.reason == StopReason.OUT_OF_BOUNDS
        assert exc.value.addr == addr

    def test_write_out_of_bounds(self):
        mem = Memory()
        with pytest.raises(OutOfBounds):
            mem.write_byte(0x1000, 0)

    def test_read_word_crossing_end_of_memory(self):
        """Word at $FFF needs $1000 → OutOfBounds"""
        mem = Memory()
        with pytest.raises(OutOfBounds):
            mem.read_word(0xFFF)

    def test_reserved_area_is_write_protected(self):
        """Interpreter area $000-$1FF only holds the font, set at construction."""
        mem = Memory()
        with pytest.raises(OutOfBounds):
            mem.write_byte(0x1FF, 0x01)
        with pytest.raises(OutOfBounds):
            mem.write_byte(FONT_BASE, 0x00)
        assert mem.read_byte(FONT_BASE) == FONT[0]

    def test_font_loaded_at_font_base(self):
        mem = Memory()
        assert mem.dump(FONT_BASE, FONT_BASE + len(FONT) - 1) == bytes(FONT)
        # digit 0 bitmap
        assert mem.dump(0x050, 0x054) == bytes([0xF0, 0x90, 0x90, 0x90, 0xF0])

    def test_font_address(self):
        mem = Memory()
        assert mem.font_address(0x0) == 0x050
        assert mem.font_address(0xA) == 0x050 + 5 * 10
        assert mem.font_address(0x1F) == mem.font_address(0xF)

    def test_load_max_size_rom(self):
        """3584 bytes fill $200-$FFF exactly."""
        mem = Memory()
        data = bytes(range(256)) * 14
        assert len(data) == MEMORY_SIZE - PROGRAM_START
        mem.load(data)
        assert mem.read_byte(0xFFF) == data[-1]

    def test_load_too_large_rejected_before_write(self):
        mem = Memory()
        with pytest.raises(RomTooLarge) as exc:
            mem.load(b'\x11' * (MEMORY_SIZE - PROGRAM_START + 1))
        assert exc.value.size == 3585
        assert exc.value.limit == 3584
        assert exc.value.reason == StopReason.ROM_TOO_LARGE
        assert mem.read_byte(PROGRAM_START) == 0

    def test_clear_program_keeps_font(self):
        mem = Memory()
        mem.load(b'\xAA\xBB')
        mem.clear_program()
        assert mem.read_word(PROGRAM_START) == 0
        assert mem.read_byte(FONT_BASE) == 0xF0

    def test_dump_is_immutable_copy(self):
        mem = Memory()
        mem.load(b'\x01\x02')
        snap = mem.dump(0x200, 0x201)
        mem.write_byte(0x200, 0x99)
        assert snap == b'\x01\x02'


class TestRegisters:

    def test_power_on_state(self):
        r = Registers()
        assert r.V == [0] * 16
        assert r.I == 0
        assert r.PC == 0x200
        assert r.sp == 0

    def test_set_v_truncates(self):
        r = Registers()
        r.set_v(3, 0x1FF)
        assert r.get_v(3) == 0xFF
        r.set_v(3, -1)
        assert r.get_v(3) == 0xFF

    def test_index_and_pc_masked_to_16_bits(self):
        r = Registers()
        r.I = 0x1_2345
        r.PC = 0x1_0202
        assert r.I == 0x2345
        assert r.PC == 0x0202

    def test_push_pop_lifo(self):
        r = Registers()
        r.push(0x202)
        r.push(0x304)
        assert r.sp == 2
        assert r.pop() == 0x304
        assert r.pop() == 0x202
        assert r.sp == 0

    def test_stack_overflow_at_17th_push(self):
        r = Registers()
        for i in range(STACK_DEPTH):
            r.push(0x200 + 2 * i)
        with pytest.raises(StackOverflow) as exc:
            r.push(0x400)
        assert exc.value.depth == 16
        assert r.sp == 16

    def test_stack_underflow(self):
        r = Registers()
        with pytest.raises(StackUnderflow):
            r.pop()

    def test_reset(self):
        r = Registers()
        r.set_v(0, 5)
        r.I = 0x300
        r.PC = 0x400
        r.push(0x202)
        r.reset()
        assert r.V[0] == 0 and r.I == 0 and r.PC == 0x200 and r.sp == 0

    def test_display_line(self):
        r = Registers()
        r.set_v(0xF, 1)
        line = r.display()
        assert line.startswith("PC=200 I=000 SP=0")
        assert "VF=01" in line


class TestALU:

    def test_add8_carry_law_all_bytes(self):
        """result = (a+b) mod 256, flag = 1 iff a+b >= 256"""
        for a in range(256):
            for b in range(256):
                result, carry = alu.add8(a, b)
                assert result == (a + b) % 256
                assert carry == (1 if a + b >= 256 else 0)

    def test_sub8_borrow_law_all_bytes(self):
        """result = (a-b) mod 256, flag = 1 iff no borrow (a >= b)"""
        for a in range(256):
            for b in range(256):
                result, flag = alu.sub8(a, b)
                assert result == (a - b) % 256
                assert flag == (1 if a >= b else 0)

    def test_shifts(self):
        assert alu.shr8(0b00000101) == (0b00000010, 1)
        assert alu.shr8(0b00000100) == (0b00000010, 0)
        assert alu.shl8(0b10000001) == (0b00000010, 1)
        assert alu.shl8(0b01000000) == (0b10000000, 0)

    def test_logic(self):
        assert alu.or8(0xF0, 0x0F) == (0xFF, None)
        assert alu.and8(0xF0, 0x3C) == (0x30, None)
        assert alu.xor8(0xFF, 0x0F) == (0xF0, None)

    def test_bcd(self):
        assert alu.bcd(0) == (0, 0, 0)
        assert alu.bcd(7) == (0, 0, 7)
        assert alu.bcd(42) == (0, 4, 2)
        assert alu.bcd(255) == (2, 5, 5)

    def test_results_always_bytes(self):
        for a in range(0, 256, 7):
            for b in range(0, 256, 11):
                for fn in (alu.add8, alu.sub8, alu.or8, alu.and8, alu.xor8):
                    assert 0 <= fn(a, b)[0] <= 255
                assert 0 <= alu.shl8(a)[0] <= 255
                assert 0 <= alu.shr8(a)[0] <= 255
