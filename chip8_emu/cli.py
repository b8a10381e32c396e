#!/usr/bin/env python3
"""
chip8 - headless CHIP-8 runner

Usage:
    chip8 <rom.ch8> [--frames 600] [--rate 700] [--preset chip8|chip48|schip]
                    [--shift-quirk | --no-shift-quirk] ... [--press KEY]
                    [--realtime] [--seed N] [--skip-unknown] [-v] [--log-file F]

Runs the ROM for a number of 60 Hz frames (emulated time by default,
wall-clock paced with --realtime) and prints the final framebuffer as
text art. Keys given with --press are held down for the whole run and
are re-reported to every FX0A key wait.

Examples:
    chip8 roms/ibm_logo.ch8 --frames 120
    chip8 roms/test_opcode.ch8 --preset chip48 --rate 1000
    chip8 game.ch8 --press 5 --no-clip-quirk -v
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from . import __version__
from .clock import ClockScheduler, DEFAULT_CPU_HZ, FrameResult
from .emu import Chip8Emulator
from .errors import Chip8Error
from .log_setup import setup_logging
from .periph.display import Frame
from .quirks import PRESETS, Quirks


log = logging.getLogger("chip8_emu.cli")

QUIRK_FLAGS = [
    ('shift_quirk', "8XY6/8XYE shift VX in place instead of VY"),
    ('load_store_quirk', "FX55/FX65 leave I unchanged"),
    ('jump_quirk', "BNNN adds VX (X = high nibble of NNN) instead of V0"),
    ('vf_reset_quirk', "8XY1/8XY2/8XY3 reset VF to 0"),
    ('clip_quirk', "clip sprites at the screen edge instead of wrapping"),
    ('index_overflow_flag', "FX1E sets VF when I passes $FFF"),
]


def parse_int_arg(value: str) -> int:
    """Parse an integer argument that may be hex (0x...), $ prefix, or decimal."""
    value = value.strip()
    if value.startswith("0x") or value.startswith("0X"):
        return int(value, 16)
    if value.startswith("$"):
        return int(value[1:], 16)
    return int(value)


def parse_key(value: str) -> int:
    """Keypad key: a single hex digit (0-F) or any parse_int_arg form."""
    try:
        key = int(value, 16) if len(value.strip()) == 1 else parse_int_arg(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a key: {value!r}") from None
    if not 0 <= key <= 0xF:
        raise argparse.ArgumentTypeError(f"key out of range 0-F: {value!r}")
    return key


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chip8",
        description="Headless CHIP-8 interpreter",
        epilog="Quirk presets: " + ", ".join(sorted(PRESETS)),
    )
    parser.add_argument("rom", help="Raw CHIP-8 program (no header)")
    parser.add_argument("--frames", type=int, default=600,
                        help="Number of 60 Hz frames to run (default: 600)")
    parser.add_argument("--rate", type=float, default=DEFAULT_CPU_HZ,
                        help=f"Instructions per second (default: {DEFAULT_CPU_HZ})")
    parser.add_argument("--preset", default="default", choices=sorted(PRESETS),
                        help="Quirk profile to start from (default: default)")
    for name, help_text in QUIRK_FLAGS:
        parser.add_argument("--" + name.replace("_", "-"), dest=name, default=None,
                            action=argparse.BooleanOptionalAction, help=help_text)
    parser.add_argument("--press", type=parse_key, action="append", default=[],
                        metavar="KEY", help="Hold keypad key (0-F) down; repeatable")
    parser.add_argument("--seed", type=parse_int_arg, default=None,
                        help="Seed for CXNN random numbers")
    parser.add_argument("--skip-unknown", action="store_true",
                        help="Log and skip unknown opcodes instead of halting")
    parser.add_argument("--realtime", action="store_true",
                        help="Pace frames against the wall clock")
    parser.add_argument("--verbose", "-v", action="count", default=0,
                        help="Increase console verbosity (-v info, -vv debug)")
    parser.add_argument("--log-file", default=None,
                        help="Write a DEBUG log to this file")
    parser.add_argument("--version", action="version",
                        version=f"chip8 {__version__}")
    return parser


def build_quirks(args: argparse.Namespace) -> Quirks:
    overrides = {name: getattr(args, name) for name, _ in QUIRK_FLAGS}
    return Quirks.preset(args.preset).with_overrides(**overrides)


def render_frame(frame: Frame, on: str = "#", off: str = " ") -> str:
    """Text art of a framebuffer snapshot, one line per pixel row."""
    return "\n".join("".join(on if px else off for px in row) for row in frame)


class HeadlessHost:
    """Feeds held keys to the emulator and collects per-frame stats."""

    def __init__(self, emu: Chip8Emulator, held_keys: List[int]):
        self.emu = emu
        self.held_keys = held_keys
        self.frames = 0
        self.instructions = 0
        self.sound_frames = 0
        self.last: Optional[FrameResult] = None
        for key in held_keys:
            emu.set_pressed(key, True)

    def before_frame(self):
        # A held key never produces a new press edge, so re-report it
        if self.held_keys and self.emu.awaiting_key and not self.emu.keypad.press_pending:
            for key in self.held_keys:
                self.emu.set_pressed(key, False)
                self.emu.set_pressed(key, True)

    def after_frame(self, result: FrameResult):
        self.frames += 1
        self.instructions += result.instructions
        if result.sound_active:
            self.sound_frames += 1
        self.last = result
        self.before_frame()


def run(args: argparse.Namespace, console: Console) -> int:
    try:
        rom = Path(args.rom).read_bytes()
    except OSError as e:
        log.error("Cannot read ROM %s: %s", args.rom, e)
        return 1

    quirks = build_quirks(args)
    log.info("Quirks: %s", quirks.describe())

    emu = Chip8Emulator(quirks, seed=args.seed, skip_unknown=args.skip_unknown)
    try:
        emu.load_rom(rom)
    except Chip8Error as e:
        log.error("%s: %s", args.rom, e)
        return 1

    try:
        scheduler = ClockScheduler(emu, cpu_hz=args.rate)
    except ValueError as e:
        log.error("%s", e)
        return 1

    host = HeadlessHost(emu, args.press)
    if args.realtime:
        scheduler.run_realtime(args.frames, on_frame=host.after_frame)
    else:
        for _ in range(args.frames):
            host.after_frame(scheduler.frame())
            if host.last.error is not None:
                break

    console.print(Panel(Text(render_frame(emu.snapshot())),
                        title=Path(args.rom).name, expand=False))
    status = (f"frames={host.frames} instructions={host.instructions} "
              f"sound_frames={host.sound_frames} PC=${emu.regs.PC:03X}")
    if emu.awaiting_key:
        status += " (waiting for key)"
    console.print(status, markup=False, highlight=False)

    if emu.last_error is not None:
        log.error("Stopped: %s", emu.last_error)
        return 1
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose == 0:
        console_level = logging.WARNING
    elif args.verbose == 1:
        console_level = logging.INFO
    else:
        console_level = logging.DEBUG
    # Per-step trace records are only built when something will keep them
    level = logging.DEBUG if args.log_file else console_level
    setup_logging(level=level, console_level=console_level, log_file=args.log_file)

    console = Console()
    try:
        return run(args, console)
    except KeyboardInterrupt:
        log.warning("Interrupted by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
