"""
CHIP-8 Virtual Emulator - Main Emulator Class

Integrates:
  - CPU registers + call stack (cpu/regs.py)
  - 4K memory with font (mem/memory.py)
  - Opcode decoder (cpu/decoder.py)
  - ALU helpers (cpu/alu.py)
  - Peripherals: timers, display buffer, keypad

Execution model (one step()):
  1. Fetch the big-endian word at PC
  2. Advance PC by 2
  3. Decode into an Instruction (UnknownOpcode if nothing matches)
  4. Execute the handler for its mnemonic; jumps, calls, returns and
     skips overwrite / bump PC themselves

Timers are NOT ticked here. The clock scheduler (clock.py) ticks them at
60 Hz of emulated time, independently of how many instructions ran.

Fatal errors (OutOfBounds, StackOverflow, StackUnderflow, UnknownOpcode)
halt the emulator and propagate. With skip_unknown=True an unknown word is
logged and stepped over instead.
"""

import logging
import random
from typing import Callable, Dict, Optional

from .cpu.regs import Registers, VF
from .cpu.decoder import Instruction, decode
from .cpu import alu
from .mem.memory import Memory, PROGRAM_START
from .periph.timer import TimerUnit
from .periph.display import DisplayBuffer, Frame
from .periph.keypad import Keypad
from .quirks import Quirks
from .errors import Chip8Error, EmulatorHalted, StopReason, UnknownOpcode


log = logging.getLogger(__name__)


class Chip8Emulator:
    """CHIP-8 interpreter core.

    Usage:
        emu = Chip8Emulator(Quirks.preset('chip8'))
        emu.load_rom(Path('pong.ch8').read_bytes())
        while True:
            emu.step()
    """

    DEFAULT_MAX_STEPS = 1_000_000

    def __init__(self, quirks: Optional[Quirks] = None, seed: Optional[int] = None,
                 skip_unknown: bool = False):
        self.quirks = quirks if quirks is not None else Quirks()
        self.skip_unknown = skip_unknown

        # Core components
        self.regs = Registers()
        self.mem = Memory()

        # Peripherals
        self.timers = TimerUnit()
        self.display = DisplayBuffer(clip=self.quirks.clip_quirk)
        self.keypad = Keypad()

        self.rng = random.Random(seed)

        self._rom = b''
        self._halt_error: Optional[Chip8Error] = None
        self.last_error: Optional[Chip8Error] = None
        self.steps = 0

        # Instruction dispatch table (built in _build_dispatch)
        self._dispatch: Dict[str, Callable[[Instruction], Optional[bool]]] = self._build_dispatch()

        log.debug("Emulator created: %s", self.quirks.describe())

    # ══════════════════════════════════════════════
    # Loading
    # ══════════════════════════════════════════════

    def load_rom(self, data: bytes):
        """Load a raw CHIP-8 program at $200.

        RomTooLarge is raised before memory is modified.
        """
        data = bytes(data)
        self.mem.load(data, PROGRAM_START)
        self._rom = data
        log.info("Loaded %d byte program at $%03X", len(data), PROGRAM_START)

    def reset(self):
        """Power-cycle: clear all state and reload the last ROM image."""
        self.regs.reset()
        self.timers.reset()
        self.display.clear()
        self.keypad.reset()
        self.mem.clear_program()
        self.mem.load(self._rom, PROGRAM_START)
        self._halt_error = None
        self.last_error = None
        self.steps = 0
        log.debug("Emulator reset")

    # ══════════════════════════════════════════════
    # Host-facing state
    # ══════════════════════════════════════════════

    @property
    def halted(self) -> bool:
        return self._halt_error is not None

    @property
    def awaiting_key(self) -> bool:
        """True while an FX0A is blocking instruction progression."""
        return self.keypad.waiting

    def set_pressed(self, key: int, pressed: bool):
        self.keypad.set_pressed(key, pressed)

    def snapshot(self) -> Frame:
        return self.display.snapshot()

    def is_sound_active(self) -> bool:
        return self.timers.is_sound_active()

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    def step(self) -> bool:
        """Execute one instruction. Returns True if the display changed."""
        if self._halt_error is not None:
            raise EmulatorHalted(self._halt_error)

        pc = self.regs.PC
        try:
            word = self.mem.read_word(pc)
            self.regs.PC = pc + 2
            ins = decode(word, pc)
            if log.isEnabledFor(logging.DEBUG):
                log.debug("$%03X: %-12s %s", pc, ins, self.regs.display())
            changed = self._dispatch[ins.mnemonic](ins)
        except UnknownOpcode as e:
            if self.skip_unknown:
                log.warning("Skipping %s", e)
                self.steps += 1
                return False
            self._halt(e)
            raise
        except Chip8Error as e:
            self._halt(e)
            raise

        self.steps += 1
        return bool(changed)

    def run(self, max_steps: Optional[int] = None) -> StopReason:
        """Run headless until an error, a key wait or max_steps.

        Timers are not ticked; this is a pure instruction loop for tests and
        batch harnesses. Use ClockScheduler for real-time behaviour.
        """
        if max_steps is None:
            max_steps = self.DEFAULT_MAX_STEPS

        for _ in range(max_steps):
            try:
                self.step()
            except Chip8Error as e:
                return e.reason
            if self.awaiting_key:
                return StopReason.KEY_WAIT
        return StopReason.STEP_LIMIT

    def _halt(self, error: Chip8Error):
        self._halt_error = error
        self.last_error = error
        log.error("Emulator halted: %s", error)

    # ══════════════════════════════════════════════
    # Instruction handlers
    # ══════════════════════════════════════════════
    # Handler signature: handler(ins) -> Optional[bool]
    # A truthy return means the display buffer was modified.

    def _build_dispatch(self) -> dict:
        """Build mnemonic → handler dispatch table."""
        return {
            # ── Display / flow ──
            'CLS':      self._op_cls,
            'RET':      self._op_ret,
            'JP':       self._op_jp,
            'CALL':     self._op_call,

            # ── Skips ──
            'SE_IMM':   self._op_se_imm,
            'SNE_IMM':  self._op_sne_imm,
            'SE_REG':   self._op_se_reg,
            'SNE_REG':  self._op_sne_reg,

            # ── Register load / arithmetic ──
            'LD_IMM':   self._op_ld_imm,
            'ADD_IMM':  self._op_add_imm,
            'LD_REG':   self._op_ld_reg,
            'OR':       self._op_or,
            'AND':      self._op_and,
            'XOR':      self._op_xor,
            'ADD_REG':  self._op_add_reg,
            'SUB':      self._op_sub,
            'SHR':      self._op_shr,
            'SUBN':     self._op_subn,
            'SHL':      self._op_shl,

            # ── Index / jump / random / draw ──
            'LD_I':     self._op_ld_i,
            'JP_OFF':   self._op_jp_off,
            'RND':      self._op_rnd,
            'DRW':      self._op_drw,

            # ── Keypad ──
            'SKP':      self._op_skp,
            'SKNP':     self._op_sknp,

            # ── Timers / keys / memory ──
            'LD_VX_DT': self._op_ld_vx_dt,
            'LD_VX_K':  self._op_ld_vx_k,
            'LD_DT':    self._op_ld_dt,
            'LD_ST':    self._op_ld_st,
            'ADD_I':    self._op_add_i,
            'LD_F':     self._op_ld_f,
            'LD_B':     self._op_ld_b,
            'LD_MEM':   self._op_ld_mem,
            'LD_REGS':  self._op_ld_regs,
        }

    def _skip_if(self, condition: bool):
        if condition:
            self.regs.PC = self.regs.PC + 2

    # ── Display / flow ──

    def _op_cls(self, ins):
        self.display.clear()
        return True

    def _op_ret(self, ins):
        self.regs.PC = self.regs.pop()

    def _op_jp(self, ins):
        self.regs.PC = ins.nnn

    def _op_call(self, ins):
        self.regs.push(self.regs.PC)
        self.regs.PC = ins.nnn

    # ── Skips ──

    def _op_se_imm(self, ins):
        self._skip_if(self.regs.V[ins.x] == ins.nn)

    def _op_sne_imm(self, ins):
        self._skip_if(self.regs.V[ins.x] != ins.nn)

    def _op_se_reg(self, ins):
        self._skip_if(self.regs.V[ins.x] == self.regs.V[ins.y])

    def _op_sne_reg(self, ins):
        self._skip_if(self.regs.V[ins.x] != self.regs.V[ins.y])

    # ── Register load / arithmetic ──

    def _op_ld_imm(self, ins):
        self.regs.set_v(ins.x, ins.nn)

    def _op_add_imm(self, ins):
        """7XNN: no carry flag."""
        self.regs.set_v(ins.x, self.regs.V[ins.x] + ins.nn)

    def _op_ld_reg(self, ins):
        self.regs.set_v(ins.x, self.regs.V[ins.y])

    def _logic(self, ins, fn):
        result, _ = fn(self.regs.V[ins.x], self.regs.V[ins.y])
        self.regs.set_v(ins.x, result)
        if self.quirks.vf_reset_quirk:
            self.regs.set_v(VF, 0)

    def _op_or(self, ins):
        self._logic(ins, alu.or8)

    def _op_and(self, ins):
        self._logic(ins, alu.and8)

    def _op_xor(self, ins):
        self._logic(ins, alu.xor8)

    # Flag is written after the result so VF ends up holding the flag
    # when X == F.

    def _op_add_reg(self, ins):
        result, carry = alu.add8(self.regs.V[ins.x], self.regs.V[ins.y])
        self.regs.set_v(ins.x, result)
        self.regs.set_v(VF, carry)

    def _op_sub(self, ins):
        result, no_borrow = alu.sub8(self.regs.V[ins.x], self.regs.V[ins.y])
        self.regs.set_v(ins.x, result)
        self.regs.set_v(VF, no_borrow)

    def _op_subn(self, ins):
        result, no_borrow = alu.sub8(self.regs.V[ins.y], self.regs.V[ins.x])
        self.regs.set_v(ins.x, result)
        self.regs.set_v(VF, no_borrow)

    def _shift_source(self, ins) -> int:
        return self.regs.V[ins.x] if self.quirks.shift_quirk else self.regs.V[ins.y]

    def _op_shr(self, ins):
        result, out = alu.shr8(self._shift_source(ins))
        self.regs.set_v(ins.x, result)
        self.regs.set_v(VF, out)

    def _op_shl(self, ins):
        result, out = alu.shl8(self._shift_source(ins))
        self.regs.set_v(ins.x, result)
        self.regs.set_v(VF, out)

    # ── Index / jump / random / draw ──

    def _op_ld_i(self, ins):
        self.regs.I = ins.nnn

    def _op_jp_off(self, ins):
        offset_reg = ins.x if self.quirks.jump_quirk else 0
        self.regs.PC = ins.nnn + self.regs.V[offset_reg]

    def _op_rnd(self, ins):
        self.regs.set_v(ins.x, self.rng.randrange(256) & ins.nn)

    def _op_drw(self, ins):
        """DXYN: draw N rows from memory[I] at (VX, VY), VF = collision."""
        x = self.regs.V[ins.x]
        y = self.regs.V[ins.y]
        sprite = [self.mem.read_byte(self.regs.I + row) for row in range(ins.n)]
        collision = self.display.draw_sprite(x, y, sprite)
        self.regs.set_v(VF, 1 if collision else 0)
        return True

    # ── Keypad ──

    def _op_skp(self, ins):
        self._skip_if(self.keypad.is_pressed(self.regs.V[ins.x] & 0xF))

    def _op_sknp(self, ins):
        self._skip_if(not self.keypad.is_pressed(self.regs.V[ins.x] & 0xF))

    def _op_ld_vx_k(self, ins):
        """FX0A: block until a key goes down, then VX = key.

        While nothing has been pressed PC is rewound onto this instruction,
        so every further step() re-executes it without progressing.
        """
        if not self.keypad.waiting:
            self.keypad.arm_wait()
        key = self.keypad.wait_for_any_press()
        if key is None:
            self.regs.PC = self.regs.PC - 2
            return
        self.regs.set_v(ins.x, key)

    # ── Timers ──

    def _op_ld_vx_dt(self, ins):
        self.regs.set_v(ins.x, self.timers.get_delay())

    def _op_ld_dt(self, ins):
        self.timers.set_delay(self.regs.V[ins.x])

    def _op_ld_st(self, ins):
        self.timers.set_sound(self.regs.V[ins.x])

    # ── Index / memory ──

    def _op_add_i(self, ins):
        index = self.regs.I + self.regs.V[ins.x]
        if self.quirks.index_overflow_flag:
            overflow = index > 0xFFF
            self.regs.I = index & 0xFFF
            self.regs.set_v(VF, 1 if overflow else 0)
        else:
            self.regs.I = index

    def _op_ld_f(self, ins):
        self.regs.I = self.mem.font_address(self.regs.V[ins.x])

    def _op_ld_b(self, ins):
        for offset, digit in enumerate(alu.bcd(self.regs.V[ins.x])):
            self.mem.write_byte(self.regs.I + offset, digit)

    def _op_ld_mem(self, ins):
        """FX55: memory[I..I+X] = V0..VX."""
        base = self.regs.I
        for i in range(ins.x + 1):
            self.mem.write_byte(base + i, self.regs.V[i])
        if not self.quirks.load_store_quirk:
            self.regs.I = base + ins.x + 1

    def _op_ld_regs(self, ins):
        """FX65: V0..VX = memory[I..I+X]."""
        base = self.regs.I
        for i in range(ins.x + 1):
            self.regs.set_v(i, self.mem.read_byte(base + i))
        if not self.quirks.load_store_quirk:
            self.regs.I = base + ins.x + 1
