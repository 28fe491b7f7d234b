"""Host keyboard to CHIP-8 keypad mapping."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Callable, Dict, Mapping, Optional, Set

from chip8emu.chip8.keyboard import KEY_COUNT

# Keypad layout:     Host keys:
#   1 2 3 C            1 2 3 4
#   4 5 6 D            q w e r
#   7 8 9 E            a s d f
#   A 0 B F            z x c v
DEFAULT_KEYMAP: Dict[int, str] = {
    0x1: "1", 0x2: "2", 0x3: "3", 0xC: "4",
    0x4: "q", 0x5: "w", 0x6: "e", 0xD: "r",
    0x7: "a", 0x8: "s", 0x9: "d", 0xE: "f",
    0xA: "z", 0x0: "x", 0xB: "c", 0xF: "v",
}


class KeymapError(ValueError):
    """Raised when a keymap file cannot be used."""


def parse_key(text: str) -> int:
    value = text.strip().lower()
    if value.startswith("0x"):
        value = value[2:]
    if not value:
        raise ValueError("empty key")
    key = int(value, 16)
    if not 0 <= key < KEY_COUNT:
        raise ValueError(f"key out of range: {text}")
    return key


def parse_key_list(spec: str) -> Set[int]:
    """Parse ``"5,A"`` style lists of hexadecimal keypad keys."""

    keys: Set[int] = set()
    for part in spec.split(","):
        if part.strip():
            keys.add(parse_key(part))
    return keys


def load_keymap(path: str | Path, *, fallback: Optional[Mapping[int, str]] = None) -> Dict[int, str]:
    """Read a JSON object mapping hex keypad keys to host key names.

    Keys missing from the file keep their ``fallback`` (default) binding.
    """

    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as exc:
        raise KeymapError(f"cannot read keymap {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise KeymapError(f"keymap is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise KeymapError("keymap must be a JSON object")

    keymap = dict(fallback if fallback is not None else DEFAULT_KEYMAP)
    for label, name in data.items():
        try:
            key = parse_key(str(label))
        except ValueError as exc:
            raise KeymapError(str(exc)) from exc
        if not isinstance(name, str) or not name:
            raise KeymapError(f"host key for {label!r} must be a non-empty string")
        keymap[key] = name.lower()
    return keymap


def write_keymap_template(path: Path) -> None:
    template = {f"{key:X}": DEFAULT_KEYMAP[key] for key in range(KEY_COUNT)}
    path.write_text(json.dumps(template, indent=2), encoding="utf-8")


def resolve_keymap(keymap: Mapping[int, str], key_code: Callable[[str], int]) -> Dict[int, int]:
    """Turn host key names into host key codes, e.g. with ``pygame.key.key_code``."""

    resolved: Dict[int, int] = {}
    for key, name in keymap.items():
        try:
            code = key_code(name)
        except ValueError as exc:
            raise KeymapError(f"unknown host key name: {name!r}") from exc
        resolved[code] = key
    return resolved


__all__ = [
    "DEFAULT_KEYMAP",
    "KeymapError",
    "load_keymap",
    "parse_key",
    "parse_key_list",
    "resolve_keymap",
    "write_keymap_template",
]
