"""CHIP-8 hexadecimal keypad latch."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from chip8emu.emulator.errors import OutOfBounds

KEY_COUNT = 16


@dataclass
class Chip8Keypad:
    """Sixteen-key pressed/released vector, written by the host each cycle."""

    _keys: List[bool] = field(default_factory=lambda: [False] * KEY_COUNT)

    def set_keys(self, keys: Iterable[bool]) -> None:
        values = [bool(value) for value in keys]
        if len(values) != KEY_COUNT:
            raise ValueError("keypad state must have 16 entries")
        self._keys = values

    def get_keys(self) -> List[bool]:
        return list(self._keys)

    def press(self, key: int) -> None:
        self._check(key)
        self._keys[key] = True

    def release(self, key: int) -> None:
        self._check(key)
        self._keys[key] = False

    def is_pressed(self, key: int) -> bool:
        self._check(key)
        return self._keys[key]

    def first_pressed(self) -> Optional[int]:
        for key, pressed in enumerate(self._keys):
            if pressed:
                return key
        return None

    def clear(self) -> None:
        self._keys = [False] * KEY_COUNT

    @staticmethod
    def _check(key: int) -> None:
        if not 0 <= key < KEY_COUNT:
            raise OutOfBounds(key, KEY_COUNT - 1, space="key")


__all__ = ["Chip8Keypad", "KEY_COUNT"]
