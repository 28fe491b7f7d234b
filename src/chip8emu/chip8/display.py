"""CHIP-8 display model."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Iterable, List


@dataclass
class Chip8Display:
    WIDTH: ClassVar[int] = 64
    HEIGHT: ClassVar[int] = 32
    SPRITE_WIDTH: ClassVar[int] = 8

    foreground: int = 0xFFFFFF
    background: int = 0x000000
    decay: float = 0.0
    pixels: List[bool] = field(default_factory=lambda: [False] * (Chip8Display.WIDTH * Chip8Display.HEIGHT))
    _intensity: List[float] = field(default_factory=lambda: [0.0] * (Chip8Display.WIDTH * Chip8Display.HEIGHT))

    # ------------------------------------------------------------------
    # Frame buffer
    # ------------------------------------------------------------------
    def clear(self) -> None:
        # In place, so hosts holding a reference to ``pixels`` stay valid.
        for index in range(len(self.pixels)):
            self.pixels[index] = False

    def get_pixel(self, x: int, y: int) -> bool:
        if not (0 <= x < self.WIDTH and 0 <= y < self.HEIGHT):
            raise ValueError("pixel coordinate out of range")
        return self.pixels[y * self.WIDTH + x]

    def draw_sprite(self, x: int, y: int, rows: Iterable[int]) -> bool:
        """XOR a sprite onto the screen, wrapping at the edges.

        Returns True when a pixel that was set gets erased.
        """

        collided = False
        for row, value in enumerate(rows):
            screen_y = (y + row) % self.HEIGHT
            for col in range(self.SPRITE_WIDTH):
                if not (value >> (7 - col)) & 0x01:
                    continue
                screen_x = (x + col) % self.WIDTH
                index = screen_y * self.WIDTH + screen_x
                if self.pixels[index]:
                    collided = True
                self.pixels[index] = not self.pixels[index]
        return collided

    def lit_count(self) -> int:
        return sum(1 for pixel in self.pixels if pixel)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------
    def refresh(self) -> None:
        """Advance the phosphor fade by one frame.

        Lit pixels jump to full intensity; unlit ones keep ``decay`` of their
        previous intensity, which hides the flicker of erase/redraw loops.
        """

        for index, lit in enumerate(self.pixels):
            if lit:
                self._intensity[index] = 1.0
            else:
                self._intensity[index] *= self.decay

    def render_pixels(self) -> List[List[int]]:
        rows: List[List[int]] = []
        for y in range(self.HEIGHT):
            row = []
            for x in range(self.WIDTH):
                index = y * self.WIDTH + x
                level = 1.0 if self.pixels[index] else self._intensity[index]
                row.append(self._blend(level))
            rows.append(row)
        return rows

    def render_text(self, on: str = "#", off: str = ".") -> str:
        lines = []
        for y in range(self.HEIGHT):
            start = y * self.WIDTH
            lines.append("".join(on if pixel else off for pixel in self.pixels[start:start + self.WIDTH]))
        return "\n".join(lines)

    def render_pygame_surface(self, scaling: int = 1):
        """Render the display into a pygame Surface.

        Parameters
        ----------
        scaling:
            Integer scale factor applied to both axes.

        Returns
        -------
        pygame.Surface
            RGB surface representing the current screen.

        Raises
        ------
        RuntimeError
            If pygame is not available.
        """

        if scaling <= 0:
            raise ValueError("scaling factor must be positive")

        try:
            import pygame  # type: ignore
        except Exception as exc:  # pragma: no cover - optional dependency
            raise RuntimeError("pygame is required for render_pygame_surface") from exc

        surface = pygame.Surface((self.WIDTH * scaling, self.HEIGHT * scaling))
        surface.fill(self.background)
        pixels = self.render_pixels()
        surface.lock()
        try:
            for y, row in enumerate(pixels):
                for x, color in enumerate(row):
                    if color == self.background:
                        continue
                    surface.fill(color, (x * scaling, y * scaling, scaling, scaling))
        finally:
            surface.unlock()
        return surface

    def _blend(self, level: float) -> int:
        if level >= 1.0:
            return self.foreground
        if level <= 0.0:
            return self.background
        color = 0
        for shift in (16, 8, 0):
            fg = (self.foreground >> shift) & 0xFF
            bg = (self.background >> shift) & 0xFF
            color |= int(bg + (fg - bg) * level) << shift
        return color


__all__ = ["Chip8Display"]
