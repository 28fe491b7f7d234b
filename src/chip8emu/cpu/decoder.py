"""Opcode decoder for the CHIP-8 instruction set.

The decoder is a static table of nibble patterns.  Upper-case hex digits in a
pattern are literal nibbles; lower-case letters name operand fields:

``x`` / ``y``
    register indices
``n``
    a single 4-bit constant (sprite height), or ``nnn`` a 12-bit address
``kk``
    an 8-bit constant

Rows are tried in order, so the specific ``00E0``/``00EE`` rows shadow the
generic ``0nnn`` row.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple

from chip8emu.cpu.instructions import Instruction, Op
from chip8emu.emulator.errors import InvalidInstruction

Nibbles = Tuple[int, int, int, int]

OPCODE_TABLE: Tuple[Tuple[str, Op], ...] = (
    ("00E0", Op.CLEAR_SCREEN),
    ("00EE", Op.RETURN),
    ("0nnn", Op.EXTERNAL_CALL),
    ("1nnn", Op.JUMP),
    ("2nnn", Op.CALL),
    ("3xkk", Op.SKIP_EQ_CONST),
    ("4xkk", Op.SKIP_NE_CONST),
    ("5xy0", Op.SKIP_EQ_REG),
    ("6xkk", Op.SET_CONST),
    ("7xkk", Op.ADD_CONST),
    ("8xy0", Op.SET_REG),
    ("8xy1", Op.OR_REG),
    ("8xy2", Op.AND_REG),
    ("8xy3", Op.XOR_REG),
    ("8xy4", Op.ADD_REG),
    ("8xy5", Op.SUB_REG),
    ("8xy6", Op.SHR_REG),
    ("8xy7", Op.SUBN_REG),
    ("8xyE", Op.SHL_REG),
    ("9xy0", Op.SKIP_NE_REG),
    ("Annn", Op.SET_INDEX),
    ("Bnnn", Op.JUMP_V0),
    ("Cxkk", Op.RANDOM_AND),
    ("Dxyn", Op.DRAW),
    ("Ex9E", Op.SKIP_IF_KEY),
    ("ExA1", Op.SKIP_IF_NOT_KEY),
    ("Fx07", Op.GET_DELAY),
    ("Fx0A", Op.WAIT_KEY),
    ("Fx15", Op.SET_DELAY),
    ("Fx18", Op.SET_SOUND),
    ("Fx1E", Op.ADD_INDEX),
    ("Fx29", Op.FONT_GLYPH),
    ("Fx33", Op.STORE_BCD),
    ("Fx55", Op.STORE_REGS),
    ("Fx65", Op.LOAD_REGS),
)

_FIELD_CHARS = frozenset("xynk")


@dataclass(frozen=True)
class _OpcodePattern:
    text: str
    op: Op
    mask: int
    value: int

    def matches(self, word: int) -> bool:
        return (word & self.mask) == self.value

    def build(self, word: int) -> Instruction:
        x = (word >> 8) & 0xF if "x" in self.text else 0
        y = (word >> 4) & 0xF if "y" in self.text else 0
        kk = word & 0xFF if "kk" in self.text else 0
        wide = "nnn" in self.text
        address = word & 0x0FFF if wide else 0
        n = word & 0xF if self.text[3] == "n" and not wide else 0
        return Instruction(self.op, x=x, y=y, n=n, kk=kk, address=address)


def _compile(text: str, op: Op) -> _OpcodePattern:
    if len(text) != 4:
        raise ValueError(f"opcode pattern must have four nibbles: {text!r}")
    mask = 0
    value = 0
    for char in text:
        mask <<= 4
        value <<= 4
        if char in _FIELD_CHARS:
            continue
        mask |= 0xF
        value |= int(char, 16)
    return _OpcodePattern(text, op, mask, value)


_PATTERNS: Tuple[_OpcodePattern, ...] = tuple(_compile(text, op) for text, op in OPCODE_TABLE)


def split_nibbles(high: int, low: int) -> Nibbles:
    """Split two opcode bytes into their four nibbles, most significant first."""

    return ((high >> 4) & 0xF, high & 0xF, (low >> 4) & 0xF, low & 0xF)


def join_nibbles(nibbles: Sequence[int]) -> int:
    word = 0
    for value in nibbles:
        word = (word << 4) | (value & 0xF)
    return word


def decode(nibbles: Sequence[int]) -> Instruction:
    """Decode four opcode nibbles into an :class:`Instruction`.

    Raises
    ------
    InvalidInstruction
        If no table row matches; the exception carries the raw nibbles.
    """

    if len(nibbles) != 4 or any(not 0 <= value <= 0xF for value in nibbles):
        raise InvalidInstruction(nibbles)
    word = join_nibbles(nibbles)
    for pattern in _PATTERNS:
        if pattern.matches(word):
            return pattern.build(word)
    raise InvalidInstruction(nibbles)


def decode_word(word: int) -> Instruction:
    return decode(split_nibbles((word >> 8) & 0xFF, word & 0xFF))


__all__ = [
    "Nibbles",
    "OPCODE_TABLE",
    "decode",
    "decode_word",
    "join_nibbles",
    "split_nibbles",
]
