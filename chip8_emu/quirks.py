"""
CHIP-8 Virtual Emulator - Compatibility Quirks

Historical interpreters disagree on a handful of opcodes. Each divergence
is a named boolean, read by the executor at execute time:

  shift_quirk          8XY6/8XYE shift VX in place (True) or shift VY into
                       VX (False, COSMAC VIP)
  load_store_quirk     FX55/FX65 leave I unchanged (True) or advance it by
                       X+1 (False, COSMAC VIP)
  jump_quirk           BNNN adds VX, X being the high nibble of NNN (True,
                       CHIP-48/SUPER-CHIP) or V0 (False)
  vf_reset_quirk       8XY1/8XY2/8XY3 clear VF (True, COSMAC VIP) or leave
                       it alone (False)
  clip_quirk           sprites clip at the screen edges (True) or wrap
                       (False)
  index_overflow_flag  FX1E sets VF=1 when I passes $FFF (and masks I to
                       12 bits), VF=0 otherwise. False leaves VF alone.

Quirks() is the 'default' preset: VIP shift and load/store, no VF reset,
clipping on, FX1E overflow flag on.
"""

import dataclasses
from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class Quirks:
    shift_quirk: bool = False
    load_store_quirk: bool = False
    jump_quirk: bool = False
    vf_reset_quirk: bool = False
    clip_quirk: bool = True
    index_overflow_flag: bool = True

    @classmethod
    def preset(cls, name: str) -> 'Quirks':
        """Named profile, see PRESETS."""
        try:
            return PRESETS[name.lower()]
        except KeyError:
            raise ValueError(
                f"Unknown quirk preset {name!r} (choose from {', '.join(sorted(PRESETS))})"
            ) from None

    def with_overrides(self, **overrides) -> 'Quirks':
        """Copy with the given fields replaced. None values are ignored."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return dataclasses.replace(self, **changes)

    def describe(self) -> str:
        return ' '.join(
            f"{f.name}={'on' if getattr(self, f.name) else 'off'}"
            for f in dataclasses.fields(self)
        )


PRESETS: Dict[str, Quirks] = {
    'default': Quirks(),
    # COSMAC VIP interpreter
    'chip8': Quirks(shift_quirk=False, load_store_quirk=False, jump_quirk=False,
                    vf_reset_quirk=True, clip_quirk=True, index_overflow_flag=False),
    # HP-48 CHIP-48
    'chip48': Quirks(shift_quirk=True, load_store_quirk=False, jump_quirk=True,
                     vf_reset_quirk=False, clip_quirk=True, index_overflow_flag=False),
    # SUPER-CHIP 1.1 behaviour for the classic opcode subset
    'schip': Quirks(shift_quirk=True, load_store_quirk=True, jump_quirk=True,
                    vf_reset_quirk=False, clip_quirk=True, index_overflow_flag=False),
}
