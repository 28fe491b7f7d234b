"""Instruction metadata for the CHIP-8 instruction set."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto


class Op(Enum):
    EXTERNAL_CALL = auto()
    CLEAR_SCREEN = auto()
    RETURN = auto()
    JUMP = auto()
    CALL = auto()
    SKIP_EQ_CONST = auto()
    SKIP_NE_CONST = auto()
    SKIP_EQ_REG = auto()
    SKIP_NE_REG = auto()
    SET_CONST = auto()
    ADD_CONST = auto()
    SET_REG = auto()
    OR_REG = auto()
    AND_REG = auto()
    XOR_REG = auto()
    ADD_REG = auto()
    SUB_REG = auto()
    SUBN_REG = auto()
    SHR_REG = auto()
    SHL_REG = auto()
    SET_INDEX = auto()
    ADD_INDEX = auto()
    FONT_GLYPH = auto()
    JUMP_V0 = auto()
    RANDOM_AND = auto()
    DRAW = auto()
    LOAD_REGS = auto()
    STORE_REGS = auto()
    STORE_BCD = auto()
    WAIT_KEY = auto()
    SKIP_IF_KEY = auto()
    SKIP_IF_NOT_KEY = auto()
    GET_DELAY = auto()
    SET_DELAY = auto()
    SET_SOUND = auto()


# Assembly-style rendering, in the Cowgod mnemonic convention.
FORMATS: dict[Op, str] = {
    Op.EXTERNAL_CALL: "sys 0x{address:03X}",
    Op.CLEAR_SCREEN: "cls",
    Op.RETURN: "ret",
    Op.JUMP: "jp 0x{address:03X}",
    Op.CALL: "call 0x{address:03X}",
    Op.SKIP_EQ_CONST: "se v{x:x}, 0x{kk:02X}",
    Op.SKIP_NE_CONST: "sne v{x:x}, 0x{kk:02X}",
    Op.SKIP_EQ_REG: "se v{x:x}, v{y:x}",
    Op.SKIP_NE_REG: "sne v{x:x}, v{y:x}",
    Op.SET_CONST: "ld v{x:x}, 0x{kk:02X}",
    Op.ADD_CONST: "add v{x:x}, 0x{kk:02X}",
    Op.SET_REG: "ld v{x:x}, v{y:x}",
    Op.OR_REG: "or v{x:x}, v{y:x}",
    Op.AND_REG: "and v{x:x}, v{y:x}",
    Op.XOR_REG: "xor v{x:x}, v{y:x}",
    Op.ADD_REG: "add v{x:x}, v{y:x}",
    Op.SUB_REG: "sub v{x:x}, v{y:x}",
    Op.SUBN_REG: "subn v{x:x}, v{y:x}",
    Op.SHR_REG: "shr v{x:x}, v{y:x}",
    Op.SHL_REG: "shl v{x:x}, v{y:x}",
    Op.SET_INDEX: "ld i, 0x{address:03X}",
    Op.ADD_INDEX: "add i, v{x:x}",
    Op.FONT_GLYPH: "ld f, v{x:x}",
    Op.JUMP_V0: "jp v0, 0x{address:03X}",
    Op.RANDOM_AND: "rnd v{x:x}, 0x{kk:02X}",
    Op.DRAW: "drw v{x:x}, v{y:x}, {n}",
    Op.LOAD_REGS: "ld v{x:x}, [i]",
    Op.STORE_REGS: "ld [i], v{x:x}",
    Op.STORE_BCD: "ld b, v{x:x}",
    Op.WAIT_KEY: "ld v{x:x}, k",
    Op.SKIP_IF_KEY: "skp v{x:x}",
    Op.SKIP_IF_NOT_KEY: "sknp v{x:x}",
    Op.GET_DELAY: "ld v{x:x}, dt",
    Op.SET_DELAY: "ld dt, v{x:x}",
    Op.SET_SOUND: "ld st, v{x:x}",
}


@dataclass(frozen=True)
class Instruction:
    """A decoded instruction; operands unused by ``op`` stay zero."""

    op: Op
    x: int = 0
    y: int = 0
    n: int = 0
    kk: int = 0
    address: int = 0

    def __str__(self) -> str:
        return FORMATS[self.op].format(x=self.x, y=self.y, n=self.n, kk=self.kk, address=self.address)


__all__ = ["FORMATS", "Instruction", "Op"]
