"""CHIP-8 system wiring: memory, display, keypad and CPU."""

from __future__ import annotations

import os
import random
from typing import Iterable, List, Optional, Tuple

from chip8emu.chip8.display import Chip8Display
from chip8emu.chip8.hardware import Chip8Hardware
from chip8emu.chip8.keyboard import Chip8Keypad
from chip8emu.cpu.cpu import Chip8CPU
from chip8emu.cpu.decoder import decode
from chip8emu.cpu.instructions import Instruction
from chip8emu.emulator.file import ProgramInfo, read_program
from chip8emu.memory import Memory, PROGRAM_START
from chip8emu.system.computer import Computer

DUMP_ROW_WIDTH = 16


class Chip8Computer(Computer):
    """Concrete CHIP-8 machine.

    The host drives it through :meth:`advance`, writes the keypad latch with
    :meth:`set_keys` before each call and reads :attr:`screen` afterwards.
    Everything else here is read-only inspection for diagnostics.
    """

    def __init__(self, *, seed: Optional[int] = None, rng: Optional[random.Random] = None) -> None:
        hardware = Chip8Hardware(
            memory=Memory(),
            display=Chip8Display(),
            keypad=Chip8Keypad(),
        )
        super().__init__(hardware)
        self.program_info: Optional[ProgramInfo] = None
        self._program: bytes = b""
        self.cpu_core = Chip8CPU(self, rng=rng if rng is not None else random.Random(seed))
        self.set_cpu(self.cpu_core)

    # ------------------------------------------------------------------
    # Program loading
    # ------------------------------------------------------------------
    def load_program(self, data: Iterable[int]) -> None:
        """Copy program bytes verbatim to the program-start offset."""

        payload = bytes(data)
        self.memory.store_block(PROGRAM_START, payload)
        self._program = payload

    def load_user_program(self, path: str | os.PathLike[str]) -> ProgramInfo:
        info = read_program(path)
        self._program = b""
        self.reset()
        self.load_program(info.data)
        self.program_info = info
        return info

    def reset(self) -> None:
        """Return to the power-on state, keeping the loaded program image."""

        super().reset()
        self.memory.clear()
        self.display.clear()
        self.keypad.clear()
        if self._program:
            self.memory.store_block(PROGRAM_START, self._program)

    # ------------------------------------------------------------------
    # Host interface
    # ------------------------------------------------------------------
    @property
    def memory(self) -> Memory:
        return self.hardware.memory

    @property
    def display(self) -> Chip8Display:
        return self.hardware.display

    @property
    def keypad(self) -> Chip8Keypad:
        return self.hardware.keypad

    def set_keys(self, keys: Iterable[bool]) -> None:
        self.keypad.set_keys(keys)

    @property
    def screen(self) -> List[bool]:
        """Live display buffer; valid until the next :meth:`advance`."""

        return self.display.pixels

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------
    @property
    def registers(self) -> Tuple[int, ...]:
        return tuple(self.cpu_core.registers.v)

    @property
    def flag(self) -> int:
        return self.cpu_core.registers.flag

    @property
    def program_counter(self) -> int:
        return self.cpu_core.registers.program_counter

    @property
    def index(self) -> int:
        return self.cpu_core.registers.index

    @property
    def stack(self) -> Tuple[int, ...]:
        return tuple(self.cpu_core.stack)

    @property
    def delay_timer(self) -> int:
        return self.cpu_core.timers.delay

    @property
    def sound_timer(self) -> int:
        return self.cpu_core.timers.sound

    def read_memory(self, start: int, length: int) -> bytes:
        return self.memory.load_block(start, length)

    def instruction_at(self, address: int) -> Instruction:
        return decode(self.cpu_core.fetch(address))

    def register_dump(self) -> str:
        lines = [f"v{index:x} = 0x{value:02X}" for index, value in enumerate(self.registers)]
        lines.append(f"i = 0x{self.index:04X}")
        lines.append(f"pc = 0x{self.program_counter:04X}")
        lines.append(f"dt = {self.delay_timer}  st = {self.sound_timer}")
        lines.append("stack = [" + ", ".join(f"0x{addr:04X}" for addr in self.stack) + "]")
        return "\n".join(lines)

    def memory_dump(self, start: int = 0, end: Optional[int] = None) -> str:
        last = self.memory.get_end_address() if end is None else end
        lines = []
        for row_addr in range(start - start % DUMP_ROW_WIDTH, last + 1, DUMP_ROW_WIDTH):
            row = self.memory.load_block(row_addr, DUMP_ROW_WIDTH)
            lines.append(f"0x{row_addr:04X} |" + "".join(f" {value:02X}" for value in row))
        return "\n".join(lines)


__all__ = ["Chip8Computer"]
