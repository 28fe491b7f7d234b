from __future__ import annotations

import pytest

from chip8emu import debug_runner
from chip8emu.chip8.computer import Chip8Computer


class DummyMemory:
    def __init__(self) -> None:
        self.values = {0x0000: 0x12, 0x0001: 0x34, 0x000F: 0xAB, 0x0010: 0xCD}

    def load8(self, address: int) -> int:
        return self.values.get(address & 0x0FFF, 0x00)


def test_parse_hex_accepts_prefixed_and_plain() -> None:
    assert debug_runner._parse_hex("0x0300") == 0x0300
    assert debug_runner._parse_hex("0300") == 0x0300


@pytest.mark.parametrize("value", ["", "0x1000", "xyz", "-1"])
def test_parse_hex_rejects_invalid(value: str) -> None:
    with pytest.raises(ValueError):
        debug_runner._parse_hex(value)


def test_parse_range_and_merge() -> None:
    rng = debug_runner._parse_range("0010:001F")
    assert rng.start == 0x0010
    assert rng.end == 0x001F
    merged = debug_runner._merge_ranges(
        [debug_runner.DumpRange(0x0000, 0x000F), debug_runner.DumpRange(0x0010, 0x0015)]
    )
    assert merged == [debug_runner.DumpRange(0x0000, 0x0015)]


def test_parse_range_rejects_reversed() -> None:
    with pytest.raises(ValueError):
        debug_runner._parse_range("0300:0200")
    with pytest.raises(ValueError):
        debug_runner._parse_range("0300")


def test_merge_ranges_defaults_to_full_memory() -> None:
    merged = debug_runner._merge_ranges([])
    assert merged == [debug_runner.DumpRange(0x0000, 0x0FFF)]


def test_merge_ranges_keeps_gaps() -> None:
    merged = debug_runner._merge_ranges(
        [debug_runner.DumpRange(0x0300, 0x030F), debug_runner.DumpRange(0x0200, 0x0201)]
    )
    assert merged == [debug_runner.DumpRange(0x0200, 0x0201), debug_runner.DumpRange(0x0300, 0x030F)]


def test_format_hex_dump_renders_expected_table() -> None:
    memory = DummyMemory()
    dump = debug_runner._format_hex_dump(memory, [debug_runner.DumpRange(0x0000, 0x0010)])
    lines = dump.splitlines()
    assert lines[0].startswith("ADDR")
    assert lines[1].startswith("0000 12 34")
    assert lines[2].startswith("0010 CD 00")


def test_format_disassembly_marks_data_words() -> None:
    computer = Chip8Computer()
    computer.load_program(bytes([0x60, 0x05, 0xFF, 0xFF, 0xD0, 0x15]))
    listing = debug_runner._format_disassembly(computer.memory, debug_runner.DumpRange(0x200, 0x205))
    assert listing.splitlines() == [
        "0200  6005  ld v0, 0x05",
        "0202  FFFF  db 0xFF, 0xFF",
        "0204  D015  drw v0, v1, 5",
    ]


def test_execute_program_stops_at_breakpoint() -> None:
    computer = Chip8Computer()
    computer.load_program(bytes([0x60, 0x01, 0x61, 0x02, 0x12, 0x04]))
    result = debug_runner._execute_program(
        computer, max_cycles=100, breakpoints=[0x204], max_seconds=None, cycle_time=0.0
    )
    assert result.break_hit
    assert result.executed == 2
    assert computer.registers[:2] == (1, 2)


def test_execute_program_reports_cycle_limit() -> None:
    computer = Chip8Computer()
    computer.load_program(bytes([0x12, 0x00]))
    result = debug_runner._execute_program(
        computer, max_cycles=10, breakpoints=[], max_seconds=None, cycle_time=0.0
    )
    assert result.cycle_hit
    assert result.executed == 10


def test_execute_program_captures_engine_error() -> None:
    computer = Chip8Computer()
    computer.load_program(bytes([0x60, 0x01, 0x00, 0xEE]))
    result = debug_runner._execute_program(
        computer, max_cycles=10, breakpoints=[], max_seconds=None, cycle_time=0.0
    )
    assert result.executed == 1
    assert result.error is not None
    assert computer.program_counter == 0x202
