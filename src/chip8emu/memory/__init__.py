"""CHIP-8 main memory and its fixed layout."""

from __future__ import annotations

from typing import Iterable, List

from chip8emu.emulator.errors import OutOfBounds

MEMORY_SIZE = 0x1000
FONT_START = 0x000
PROGRAM_START = 0x200
GLYPH_HEIGHT = 5

FONT: tuple[int, ...] = (
    0x60, 0x90, 0x90, 0x90, 0x60,  # 0
    0x20, 0x60, 0xA0, 0xA0, 0x70,  # 1
    0x60, 0x90, 0x20, 0x40, 0xF0,  # 2
    0x60, 0x90, 0x20, 0x90, 0x60,  # 3
    0x60, 0xA0, 0xF0, 0xA0, 0x20,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xE0,  # 5
    0x70, 0x80, 0xE0, 0x90, 0x60,  # 6
    0xF0, 0x10, 0x20, 0x20, 0x40,  # 7
    0x60, 0x90, 0x60, 0x90, 0x60,  # 8
    0x60, 0x90, 0x70, 0x10, 0xE0,  # 9
    0x60, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0x60, 0x90, 0x80, 0x90, 0x60,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xE0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xE0, 0x80, 0x80,  # F
)


class Memory:
    """Flat 4 KiB byte store with bounds-checked 8/16-bit accesses.

    Unlike a wrapping memory block, every access outside ``0..size-1`` raises
    :class:`OutOfBounds` so that faulty programs surface as engine errors.
    """

    size: int
    data: bytearray

    def __init__(self, size: int = MEMORY_SIZE) -> None:
        if size <= 0:
            raise ValueError("invalid memory size")
        self.size = size
        self.data = bytearray(size)
        self.load_font()

    def load_font(self) -> None:
        self.data[FONT_START:FONT_START + len(FONT)] = bytes(FONT)

    def clear(self) -> None:
        self.data = bytearray(self.size)
        self.load_font()

    def get_start_address(self) -> int:
        return 0

    def get_end_address(self) -> int:
        return self.size - 1

    def check_range(self, address: int, length: int = 1) -> None:
        """Raise unless ``length`` bytes starting at ``address`` are addressable."""

        if length == 0:
            return
        if address < 0 or address >= self.size:
            raise OutOfBounds(address, self.size - 1)
        end = address + length - 1
        if end >= self.size:
            raise OutOfBounds(end, self.size - 1)

    def load8(self, address: int) -> int:
        self.check_range(address)
        return self.data[address]

    def store8(self, address: int, value: int) -> None:
        self.check_range(address)
        self.data[address] = value & 0xFF

    def load16(self, address: int) -> int:
        self.check_range(address, 2)
        return (self.data[address] << 8) | self.data[address + 1]

    def load_block(self, address: int, length: int) -> bytes:
        self.check_range(address, length)
        return bytes(self.data[address:address + length])

    def store_block(self, address: int, values: Iterable[int]) -> None:
        payload: List[int] = [value & 0xFF for value in values]
        if not payload:
            return
        self.check_range(address, len(payload))
        self.data[address:address + len(payload)] = bytes(payload)


__all__ = [
    "FONT",
    "FONT_START",
    "GLYPH_HEIGHT",
    "MEMORY_SIZE",
    "Memory",
    "PROGRAM_START",
]
