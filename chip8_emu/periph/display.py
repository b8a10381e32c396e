"""
CHIP-8 Virtual Emulator - 64x32 Monochrome Display Buffer

Sprites are rows of 8 pixels (one byte each, MSB leftmost) XORed into the
buffer. The origin of a sprite always wraps onto the screen; what happens to
pixels running off the right/bottom edge depends on the clip setting:

  clip=True   off-screen pixels are dropped
  clip=False  off-screen pixels wrap to the opposite edge

draw_sprite() reports a collision when at least one lit pixel was turned
off, which the executor copies into VF.
"""

from typing import Iterable, List, Tuple


DISPLAY_WIDTH = 64
DISPLAY_HEIGHT = 32

Frame = Tuple[Tuple[bool, ...], ...]


class DisplayBuffer:
    """Pixel grid owned by the emulator; renderers only see snapshot()."""

    def __init__(self, width: int = DISPLAY_WIDTH, height: int = DISPLAY_HEIGHT,
                 clip: bool = True):
        self.width = width
        self.height = height
        self.clip = clip
        self._pixels: List[List[bool]] = [[False] * width for _ in range(height)]

    def clear(self):
        for row in self._pixels:
            for x in range(self.width):
                row[x] = False

    def draw_sprite(self, x: int, y: int, sprite_bytes: Iterable[int]) -> bool:
        """XOR a sprite at (x, y). Returns True on collision."""
        x0 = x % self.width
        y0 = y % self.height
        collision = False

        for row, byte in enumerate(sprite_bytes):
            py = y0 + row
            if py >= self.height:
                if self.clip:
                    break
                py %= self.height
            line = self._pixels[py]

            for col in range(8):
                if not (byte >> (7 - col)) & 1:
                    continue
                px = x0 + col
                if px >= self.width:
                    if self.clip:
                        break
                    px %= self.width
                if line[px]:
                    collision = True
                line[px] = not line[px]

        return collision

    def get_pixel(self, x: int, y: int) -> bool:
        return self._pixels[y][x]

    def lit_count(self) -> int:
        return sum(sum(row) for row in self._pixels)

    def snapshot(self) -> Frame:
        """Immutable copy of the current frame, rows top to bottom."""
        return tuple(tuple(row) for row in self._pixels)
