"""CHIP-8 CPU core: register file, call stack and instruction semantics."""

from __future__ import annotations

from dataclasses import dataclass, field
import random
from typing import Callable, Dict, List, Optional

from chip8emu.cpu.decoder import Nibbles, decode, split_nibbles
from chip8emu.cpu.instructions import Instruction, Op
from chip8emu.emulator.errors import NoReturnAddress, OutOfBounds, UnsupportedExternalCall
from chip8emu.memory import FONT_START, GLYPH_HEIGHT, PROGRAM_START

REGISTER_COUNT = 16
FLAG_REGISTER = 0xF
ADDRESS_MASK = 0x0FFF
WORD_MASK = 0xFFFF

STEP = 2
SKIP = 4
STAY = 0


@dataclass
class CPURegisters:
    """Register file V0..VF plus the index register and program counter.

    VF doubles as the flag register written by arithmetic, shifts, index add
    and sprite drawing; :attr:`flag` names it explicitly.
    """

    v: List[int] = field(default_factory=lambda: [0x00] * REGISTER_COUNT)
    index: int = 0
    program_counter: int = PROGRAM_START

    def get(self, register: int) -> int:
        self._check(register)
        return self.v[register]

    def set(self, register: int, value: int) -> None:
        self._check(register)
        self.v[register] = value & 0xFF

    @property
    def flag(self) -> int:
        return self.v[FLAG_REGISTER]

    @flag.setter
    def flag(self, value: int) -> None:
        self.v[FLAG_REGISTER] = 1 if value else 0

    @staticmethod
    def _check(register: int) -> None:
        if not 0 <= register < REGISTER_COUNT:
            raise OutOfBounds(register, REGISTER_COUNT - 1, space="register")


@dataclass
class CPUTimers:
    delay: int = 0
    sound: int = 0

    def tick(self) -> None:
        """Decrement both timers by one, saturating at zero."""

        if self.delay > 0:
            self.delay -= 1
        if self.sound > 0:
            self.sound -= 1


class Chip8CPU:
    """Fetch/decode/execute engine.

    Every handler returns the program-counter delta for the executed
    instruction: ``STEP`` for normal flow, ``SKIP`` for a taken conditional
    skip and ``STAY`` when the handler set the PC itself or the instruction is
    stalled waiting for a key.  Handlers validate every access before mutating
    state, so a raised error leaves the machine exactly as it was.
    """

    def __init__(self, computer: object, *, rng: Optional[random.Random] = None) -> None:
        self.computer = computer
        self.registers = CPURegisters()
        self.timers = CPUTimers()
        self.stack: List[int] = []
        self.rng = rng if rng is not None else random.Random()
        hardware = getattr(computer, "hardware")
        self.memory = hardware.memory
        self.display = hardware.display
        self.keypad = hardware.keypad
        self._opcode_table: Dict[Op, Callable[[Instruction], int]] = {}
        self._init_opcode_table()

    def reset(self) -> None:
        self.registers = CPURegisters()
        self.timers = CPUTimers()
        self.stack.clear()

    # ------------------------------------------------------------------
    # Cycle
    # ------------------------------------------------------------------
    def fetch(self, address: int) -> Nibbles:
        """Read the two opcode bytes at ``address`` and split them into nibbles."""

        high = self.memory.load8(address)
        low = self.memory.load8(address + 1)
        return split_nibbles(high, low)

    def step(self) -> Instruction:
        pc = self.registers.program_counter
        instruction = decode(self.fetch(pc))
        delta = self.execute(instruction)
        self.registers.program_counter = (self.registers.program_counter + delta) & WORD_MASK
        return instruction

    def execute(self, instruction: Instruction) -> int:
        handler = self._opcode_table[instruction.op]
        return handler(instruction)

    # ------------------------------------------------------------------
    # Dispatch table
    # ------------------------------------------------------------------
    def _init_opcode_table(self) -> None:
        self._opcode_table.clear()
        self._register_opcode(Op.EXTERNAL_CALL, self._opcode_external_call)
        self._register_opcode(Op.CLEAR_SCREEN, self._opcode_clear_screen)
        self._register_opcode(Op.RETURN, self._opcode_return)
        self._register_opcode(Op.JUMP, self._opcode_jump)
        self._register_opcode(Op.CALL, self._opcode_call)
        self._register_opcode(Op.SKIP_EQ_CONST, self._opcode_skip_eq_const)
        self._register_opcode(Op.SKIP_NE_CONST, self._opcode_skip_ne_const)
        self._register_opcode(Op.SKIP_EQ_REG, self._opcode_skip_eq_reg)
        self._register_opcode(Op.SKIP_NE_REG, self._opcode_skip_ne_reg)
        self._register_opcode(Op.SET_CONST, self._opcode_set_const)
        self._register_opcode(Op.ADD_CONST, self._opcode_add_const)
        self._register_opcode(Op.SET_REG, self._opcode_set_reg)
        self._register_opcode(Op.OR_REG, self._opcode_or_reg)
        self._register_opcode(Op.AND_REG, self._opcode_and_reg)
        self._register_opcode(Op.XOR_REG, self._opcode_xor_reg)
        self._register_opcode(Op.ADD_REG, self._opcode_add_reg)
        self._register_opcode(Op.SUB_REG, self._opcode_sub_reg)
        self._register_opcode(Op.SUBN_REG, self._opcode_subn_reg)
        self._register_opcode(Op.SHR_REG, self._opcode_shr_reg)
        self._register_opcode(Op.SHL_REG, self._opcode_shl_reg)
        self._register_opcode(Op.SET_INDEX, self._opcode_set_index)
        self._register_opcode(Op.ADD_INDEX, self._opcode_add_index)
        self._register_opcode(Op.FONT_GLYPH, self._opcode_font_glyph)
        self._register_opcode(Op.JUMP_V0, self._opcode_jump_v0)
        self._register_opcode(Op.RANDOM_AND, self._opcode_random_and)
        self._register_opcode(Op.DRAW, self._opcode_draw)
        self._register_opcode(Op.LOAD_REGS, self._opcode_load_regs)
        self._register_opcode(Op.STORE_REGS, self._opcode_store_regs)
        self._register_opcode(Op.STORE_BCD, self._opcode_store_bcd)
        self._register_opcode(Op.WAIT_KEY, self._opcode_wait_key)
        self._register_opcode(Op.SKIP_IF_KEY, self._opcode_skip_if_key)
        self._register_opcode(Op.SKIP_IF_NOT_KEY, self._opcode_skip_if_not_key)
        self._register_opcode(Op.GET_DELAY, self._opcode_get_delay)
        self._register_opcode(Op.SET_DELAY, self._opcode_set_delay)
        self._register_opcode(Op.SET_SOUND, self._opcode_set_sound)

    def _register_opcode(self, op: Op, handler: Callable[[Instruction], int]) -> None:
        self._opcode_table[op] = handler

    def handled_ops(self) -> frozenset[Op]:
        return frozenset(self._opcode_table)

    # ------------------------------------------------------------------
    # Flow control
    # ------------------------------------------------------------------
    def _opcode_external_call(self, instr: Instruction) -> int:
        raise UnsupportedExternalCall(instr.address)

    def _opcode_clear_screen(self, instr: Instruction) -> int:
        self.display.clear()
        return STEP

    def _opcode_return(self, instr: Instruction) -> int:
        if not self.stack:
            raise NoReturnAddress()
        self.registers.program_counter = self.stack.pop()
        return STAY

    def _opcode_jump(self, instr: Instruction) -> int:
        self.registers.program_counter = instr.address & ADDRESS_MASK
        return STAY

    def _opcode_call(self, instr: Instruction) -> int:
        self.stack.append((self.registers.program_counter + STEP) & WORD_MASK)
        self.registers.program_counter = instr.address & ADDRESS_MASK
        return STAY

    def _opcode_jump_v0(self, instr: Instruction) -> int:
        self.registers.program_counter = (instr.address + self.registers.v[0]) & WORD_MASK
        return STAY

    def _opcode_skip_eq_const(self, instr: Instruction) -> int:
        return SKIP if self.registers.v[instr.x] == instr.kk else STEP

    def _opcode_skip_ne_const(self, instr: Instruction) -> int:
        return SKIP if self.registers.v[instr.x] != instr.kk else STEP

    def _opcode_skip_eq_reg(self, instr: Instruction) -> int:
        return SKIP if self.registers.v[instr.x] == self.registers.v[instr.y] else STEP

    def _opcode_skip_ne_reg(self, instr: Instruction) -> int:
        return SKIP if self.registers.v[instr.x] != self.registers.v[instr.y] else STEP

    # ------------------------------------------------------------------
    # Register arithmetic
    # ------------------------------------------------------------------
    def _opcode_set_const(self, instr: Instruction) -> int:
        self.registers.set(instr.x, instr.kk)
        return STEP

    def _opcode_add_const(self, instr: Instruction) -> int:
        self.registers.set(instr.x, self.registers.v[instr.x] + instr.kk)
        return STEP

    def _opcode_set_reg(self, instr: Instruction) -> int:
        self.registers.set(instr.x, self.registers.v[instr.y])
        return STEP

    def _opcode_or_reg(self, instr: Instruction) -> int:
        self.registers.set(instr.x, self.registers.v[instr.x] | self.registers.v[instr.y])
        return STEP

    def _opcode_and_reg(self, instr: Instruction) -> int:
        self.registers.set(instr.x, self.registers.v[instr.x] & self.registers.v[instr.y])
        return STEP

    def _opcode_xor_reg(self, instr: Instruction) -> int:
        self.registers.set(instr.x, self.registers.v[instr.x] ^ self.registers.v[instr.y])
        return STEP

    # Flag writes come after the result so that VF as destination ends up
    # holding the flag.
    def _opcode_add_reg(self, instr: Instruction) -> int:
        result = self.registers.v[instr.x] + self.registers.v[instr.y]
        self.registers.set(instr.x, result)
        self.registers.flag = result > 0xFF
        return STEP

    def _opcode_sub_reg(self, instr: Instruction) -> int:
        vx = self.registers.v[instr.x]
        vy = self.registers.v[instr.y]
        self.registers.set(instr.x, vx - vy)
        self.registers.flag = vx >= vy
        return STEP

    def _opcode_subn_reg(self, instr: Instruction) -> int:
        vx = self.registers.v[instr.x]
        vy = self.registers.v[instr.y]
        self.registers.set(instr.x, vy - vx)
        self.registers.flag = vy >= vx
        return STEP

    def _opcode_shr_reg(self, instr: Instruction) -> int:
        value = self.registers.v[instr.y]
        self.registers.set(instr.x, value >> 1)
        self.registers.flag = value & 0x01
        return STEP

    def _opcode_shl_reg(self, instr: Instruction) -> int:
        value = self.registers.v[instr.y]
        self.registers.set(instr.x, value << 1)
        self.registers.flag = (value >> 7) & 0x01
        return STEP

    def _opcode_random_and(self, instr: Instruction) -> int:
        self.registers.set(instr.x, self.rng.randrange(0x100) & instr.kk)
        return STEP

    # ------------------------------------------------------------------
    # Index register and memory
    # ------------------------------------------------------------------
    def _opcode_set_index(self, instr: Instruction) -> int:
        self.registers.index = instr.address & ADDRESS_MASK
        return STEP

    def _opcode_add_index(self, instr: Instruction) -> int:
        total = self.registers.index + self.registers.v[instr.x]
        self.registers.index = total & WORD_MASK
        self.registers.flag = total > ADDRESS_MASK
        return STEP

    def _opcode_font_glyph(self, instr: Instruction) -> int:
        self.registers.index = (FONT_START + self.registers.v[instr.x] * GLYPH_HEIGHT) & WORD_MASK
        return STEP

    def _opcode_load_regs(self, instr: Instruction) -> int:
        values = self.memory.load_block(self.registers.index, instr.x + 1)
        for register, value in enumerate(values):
            self.registers.set(register, value)
        return STEP

    def _opcode_store_regs(self, instr: Instruction) -> int:
        self.memory.store_block(self.registers.index, self.registers.v[: instr.x + 1])
        return STEP

    def _opcode_store_bcd(self, instr: Instruction) -> int:
        value = self.registers.v[instr.x]
        self.memory.store_block(self.registers.index, (value // 100, (value // 10) % 10, value % 10))
        return STEP

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------
    def _opcode_draw(self, instr: Instruction) -> int:
        rows = self.memory.load_block(self.registers.index, instr.n)
        collided = self.display.draw_sprite(self.registers.v[instr.x], self.registers.v[instr.y], rows)
        self.registers.flag = collided
        return STEP

    # ------------------------------------------------------------------
    # Keypad and timers
    # ------------------------------------------------------------------
    def _opcode_wait_key(self, instr: Instruction) -> int:
        key = self.keypad.first_pressed()
        if key is None:
            return STAY
        self.registers.set(instr.x, key)
        return STEP

    def _opcode_skip_if_key(self, instr: Instruction) -> int:
        return SKIP if self.keypad.is_pressed(self.registers.v[instr.x]) else STEP

    def _opcode_skip_if_not_key(self, instr: Instruction) -> int:
        return STEP if self.keypad.is_pressed(self.registers.v[instr.x]) else SKIP

    def _opcode_get_delay(self, instr: Instruction) -> int:
        self.registers.set(instr.x, self.timers.delay)
        return STEP

    def _opcode_set_delay(self, instr: Instruction) -> int:
        self.timers.delay = self.registers.v[instr.x]
        return STEP

    def _opcode_set_sound(self, instr: Instruction) -> int:
        self.timers.sound = self.registers.v[instr.x]
        return STEP


__all__ = [
    "CPURegisters",
    "CPUTimers",
    "Chip8CPU",
    "FLAG_REGISTER",
    "REGISTER_COUNT",
]
