from __future__ import annotations

import pytest

from chip8emu.cpu.decoder import (
    OPCODE_TABLE,
    decode,
    decode_word,
    join_nibbles,
    split_nibbles,
)
from chip8emu.cpu.instructions import FORMATS, Instruction, Op
from chip8emu.emulator.errors import InvalidInstruction


def test_table_covers_every_op_once() -> None:
    ops = [op for _, op in OPCODE_TABLE]
    assert len(ops) == 35
    assert set(ops) == set(Op)
    assert set(FORMATS) == set(Op)


def test_split_and_join_nibbles() -> None:
    assert split_nibbles(0xD1, 0x2F) == (0xD, 0x1, 0x2, 0xF)
    assert join_nibbles((0xD, 0x1, 0x2, 0xF)) == 0xD12F


@pytest.mark.parametrize(
    "word, expected",
    [
        (0x00E0, Instruction(Op.CLEAR_SCREEN)),
        (0x00EE, Instruction(Op.RETURN)),
        (0x0123, Instruction(Op.EXTERNAL_CALL, address=0x123)),
        (0x1ABC, Instruction(Op.JUMP, address=0xABC)),
        (0x2ABC, Instruction(Op.CALL, address=0xABC)),
        (0x3A42, Instruction(Op.SKIP_EQ_CONST, x=0xA, kk=0x42)),
        (0x4A42, Instruction(Op.SKIP_NE_CONST, x=0xA, kk=0x42)),
        (0x5AB0, Instruction(Op.SKIP_EQ_REG, x=0xA, y=0xB)),
        (0x6005, Instruction(Op.SET_CONST, x=0, kk=0x05)),
        (0x7F01, Instruction(Op.ADD_CONST, x=0xF, kk=0x01)),
        (0x8120, Instruction(Op.SET_REG, x=1, y=2)),
        (0x8121, Instruction(Op.OR_REG, x=1, y=2)),
        (0x8122, Instruction(Op.AND_REG, x=1, y=2)),
        (0x8123, Instruction(Op.XOR_REG, x=1, y=2)),
        (0x8014, Instruction(Op.ADD_REG, x=0, y=1)),
        (0x8125, Instruction(Op.SUB_REG, x=1, y=2)),
        (0x8126, Instruction(Op.SHR_REG, x=1, y=2)),
        (0x8127, Instruction(Op.SUBN_REG, x=1, y=2)),
        (0x812E, Instruction(Op.SHL_REG, x=1, y=2)),
        (0x9120, Instruction(Op.SKIP_NE_REG, x=1, y=2)),
        (0xA2F0, Instruction(Op.SET_INDEX, address=0x2F0)),
        (0xB300, Instruction(Op.JUMP_V0, address=0x300)),
        (0xC30F, Instruction(Op.RANDOM_AND, x=3, kk=0x0F)),
        (0xD125, Instruction(Op.DRAW, x=1, y=2, n=5)),
        (0xE39E, Instruction(Op.SKIP_IF_KEY, x=3)),
        (0xE3A1, Instruction(Op.SKIP_IF_NOT_KEY, x=3)),
        (0xF407, Instruction(Op.GET_DELAY, x=4)),
        (0xF40A, Instruction(Op.WAIT_KEY, x=4)),
        (0xF415, Instruction(Op.SET_DELAY, x=4)),
        (0xF418, Instruction(Op.SET_SOUND, x=4)),
        (0xF41E, Instruction(Op.ADD_INDEX, x=4)),
        (0xF429, Instruction(Op.FONT_GLYPH, x=4)),
        (0xF433, Instruction(Op.STORE_BCD, x=4)),
        (0xF455, Instruction(Op.STORE_REGS, x=4)),
        (0xF465, Instruction(Op.LOAD_REGS, x=4)),
    ],
)
def test_decode_extracts_operands(word: int, expected: Instruction) -> None:
    assert decode_word(word) == expected


@pytest.mark.parametrize("word", [0x5121, 0x8128, 0x812D, 0x812F, 0x9121, 0xE100, 0xE1A2, 0xF100, 0xF1FF])
def test_decode_rejects_unlisted_patterns(word: int) -> None:
    nibbles = split_nibbles(word >> 8, word & 0xFF)
    with pytest.raises(InvalidInstruction) as excinfo:
        decode(nibbles)
    assert excinfo.value.nibbles == nibbles


def test_decode_rejects_malformed_nibbles() -> None:
    with pytest.raises(InvalidInstruction):
        decode((0x1, 0x2, 0x3))
    with pytest.raises(InvalidInstruction):
        decode((0x10, 0x0, 0x0, 0x0))


def test_decode_is_total_over_the_table() -> None:
    valid = 0
    for word in range(0x10000):
        try:
            decode_word(word)
        except InvalidInstruction:
            continue
        valid += 1
    # 0nnn, ten full 4096-word rows, 5xy0/9xy0, nine 8xy? rows,
    # two Ex?? rows and nine Fx?? rows.
    assert valid == 4096 + 10 * 4096 + 2 * 256 + 9 * 256 + 2 * 16 + 9 * 16


def test_specific_rows_shadow_external_call() -> None:
    assert decode_word(0x00E0).op is Op.CLEAR_SCREEN
    assert decode_word(0x00EE).op is Op.RETURN
    assert decode_word(0x00E1).op is Op.EXTERNAL_CALL


@pytest.mark.parametrize(
    "word, text",
    [
        (0x6005, "ld v0, 0x05"),
        (0xD125, "drw v1, v2, 5"),
        (0x1ABC, "jp 0xABC"),
        (0xA2F0, "ld i, 0x2F0"),
        (0x00E0, "cls"),
        (0xF40A, "ld v4, k"),
        (0xFA55, "ld [i], va"),
    ],
)
def test_instruction_formatting(word: int, text: str) -> None:
    assert str(decode_word(word)) == text
