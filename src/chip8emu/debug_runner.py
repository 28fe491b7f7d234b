"""Headless runner for CHIP-8 program debugging workflows."""

from __future__ import annotations

import argparse
import logging
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Sequence

from chip8emu.chip8.computer import Chip8Computer
from chip8emu.cpu.decoder import decode, split_nibbles
from chip8emu.emulator.errors import Chip8Error, InvalidInstruction
from chip8emu.emulator.file import ProgramLoadError
from chip8emu.keymap import parse_key_list

logger = logging.getLogger(__name__)

DEFAULT_MAX_CYCLES = 100_000
DEFAULT_CYCLE_TIME = 1.0 / 500.0
ADDRESS_MASK = 0x0FFF

EXIT_OK = 0
EXIT_LOAD_FAILED = 1
EXIT_CYCLE_LIMIT = 2
EXIT_TIME_LIMIT = 3
EXIT_ENGINE_ERROR = 4


@dataclass(frozen=True)
class DumpRange:
    """Inclusive memory range used for dumping."""

    start: int
    end: int

    def iter_addresses(self) -> Iterable[int]:
        for address in range(self.start, self.end + 1):
            yield address & ADDRESS_MASK


@dataclass
class RunResult:
    executed: int = 0
    break_hit: bool = False
    timeout_hit: bool = False
    cycle_hit: bool = False
    error: Chip8Error | None = None


def _parse_hex(value: str) -> int:
    text = value.strip().lower()
    if text.startswith("0x"):
        text = text[2:]
    if not text:
        raise ValueError("empty hexadecimal value")
    result = int(text, 16)
    if not (0 <= result <= ADDRESS_MASK):
        raise ValueError("hex value out of range")
    return result


def _parse_range(spec: str) -> DumpRange:
    start_str, sep, end_str = spec.partition(":")
    if not sep:
        raise ValueError("range specification must contain ':'")
    start = _parse_hex(start_str)
    end = _parse_hex(end_str)
    if end < start:
        raise ValueError("range end must be >= start")
    return DumpRange(start, end)


def _merge_ranges(ranges: Sequence[DumpRange]) -> List[DumpRange]:
    if not ranges:
        return [DumpRange(0x000, ADDRESS_MASK)]
    ordered = sorted(ranges, key=lambda r: (r.start, r.end))
    merged: List[DumpRange] = []
    for current in ordered:
        if not merged:
            merged.append(current)
            continue
        last = merged[-1]
        if current.start <= last.end + 1:
            merged[-1] = DumpRange(last.start, max(last.end, current.end))
        else:
            merged.append(current)
    return merged


def _format_hex_dump(memory, dump_ranges: Sequence[DumpRange]) -> str:
    lines: List[str] = []
    header = "ADDR " + " ".join(f"+{offset:X}" for offset in range(16))
    for index, dump_range in enumerate(dump_ranges):
        if index:
            lines.append("")
        lines.append(header)
        start_line = dump_range.start & ~0x0F
        end_line = dump_range.end | 0x0F
        for base in range(start_line, end_line + 1, 16):
            row = [f"{base & ADDRESS_MASK:04X}"]
            for offset in range(16):
                address = (base + offset) & ADDRESS_MASK
                value = memory.load8(address) & 0xFF
                row.append(f"{value:02X}")
            lines.append(" ".join(row))
    return "\n".join(lines)


def _format_disassembly(memory, dump_range: DumpRange) -> str:
    lines: List[str] = []
    for address in range(dump_range.start, dump_range.end + 1, 2):
        if address + 1 > ADDRESS_MASK:
            break
        high = memory.load8(address)
        low = memory.load8(address + 1)
        try:
            text = str(decode(split_nibbles(high, low)))
        except InvalidInstruction:
            text = f"db 0x{high:02X}, 0x{low:02X}"
        lines.append(f"{address:04X}  {high:02X}{low:02X}  {text}")
    return "\n".join(lines)


def _write_dump(memory, dump_ranges: Sequence[DumpRange], *, target: Path | None, fmt: str) -> None:
    ranges = _merge_ranges(dump_ranges)
    if fmt == "bin":
        data = bytearray()
        for dump_range in ranges:
            for address in dump_range.iter_addresses():
                data.append(memory.load8(address) & 0xFF)
        if target is None:
            sys.stdout.buffer.write(bytes(data))
            return
        target.write_bytes(bytes(data))
        return

    text = _format_hex_dump(memory, ranges)
    if target is None:
        print(text)
    else:
        target.write_text(text + "\n")


def _execute_program(
    computer: Chip8Computer,
    *,
    max_cycles: int | None,
    breakpoints: Sequence[int],
    max_seconds: float | None,
    cycle_time: float,
) -> RunResult:
    result = RunResult()
    remaining = max_cycles
    break_set = {value & ADDRESS_MASK for value in breakpoints}
    deadline: float | None = None
    if max_seconds is not None and max_seconds >= 0:
        deadline = time.monotonic() + max_seconds
    trace = logger.isEnabledFor(logging.DEBUG)

    while remaining is None or remaining > 0:
        pc_value = computer.program_counter
        try:
            instruction = computer.advance(cycle_time)
        except Chip8Error as exc:
            result.error = exc
            break
        if trace:
            opcode = computer.memory.load16(pc_value)
            logger.debug("0x%04X :: %04X %s", pc_value, opcode, instruction)
        result.executed += 1
        if remaining is not None:
            remaining -= 1
        if break_set and computer.program_counter in break_set:
            result.break_hit = True
            break
        if deadline is not None and time.monotonic() >= deadline:
            result.timeout_hit = True
            break
        if remaining is not None and remaining <= 0:
            result.cycle_hit = True
            break

    return result


def _build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chip8-debug-runner",
        description="Headless CHIP-8 runner for program diagnostics.",
    )
    parser.add_argument("--program", type=str, required=True, help="CHIP-8 program image (.ch8)")
    parser.add_argument(
        "--cycles",
        type=int,
        default=DEFAULT_MAX_CYCLES,
        help="Maximum instructions to execute (0 or negative disables the limit)",
    )
    parser.add_argument(
        "--break-pc",
        action="append",
        default=[],
        help="Break when PC reaches the given hex address (repeatable)",
    )
    parser.add_argument(
        "--seconds",
        type=float,
        default=None,
        help="Maximum wall-clock seconds to run before dumping state",
    )
    parser.add_argument(
        "--cycle-time",
        type=float,
        default=DEFAULT_CYCLE_TIME,
        help="Simulated seconds per instruction, drives the 60Hz timers (default: 1/500)",
    )
    parser.add_argument(
        "--keys",
        type=str,
        default="",
        help="Comma separated hex keys held down for the whole run (e.g. 5,A)",
    )
    parser.add_argument("--seed", type=int, default=None, help="Seed for the random-number instruction")
    parser.add_argument(
        "--dump",
        type=str,
        default=None,
        help="File path for memory dump (defaults to stdout)",
    )
    parser.add_argument(
        "--dump-range",
        action="append",
        default=[],
        help="Memory range to dump in START:END hex form (inclusive). Repeat to add multiple ranges.",
    )
    parser.add_argument(
        "--dump-format",
        choices=("hex", "bin"),
        default="hex",
        help="Dump format (hex table or raw binary)",
    )
    parser.add_argument("--no-dump", action="store_true", help="Skip the memory dump")
    parser.add_argument("--regs", action="store_true", help="Print registers, timers and stack after the run")
    parser.add_argument("--screen", action="store_true", help="Print the display as text after the run")
    parser.add_argument(
        "--disassemble",
        type=str,
        default=None,
        metavar="START:END",
        help="Print a disassembly listing of the given hex range and exit",
    )
    parser.add_argument("--trace", action="store_true", help="Log every executed instruction")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Logging verbosity (default: WARNING)",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_argument_parser()
    args = parser.parse_args(argv)

    level = logging.DEBUG if args.trace else getattr(logging, args.log_level)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s", stream=sys.stderr)

    breakpoints: List[int] = []
    for spec in args.break_pc:
        try:
            breakpoints.append(_parse_hex(spec))
        except ValueError as exc:
            parser.error(f"invalid breakpoint address '{spec}': {exc}")

    dump_ranges: List[DumpRange] = []
    for spec in args.dump_range:
        try:
            dump_ranges.append(_parse_range(spec))
        except ValueError as exc:
            parser.error(f"invalid dump range '{spec}': {exc}")

    disassembly_range: DumpRange | None = None
    if args.disassemble is not None:
        try:
            disassembly_range = _parse_range(args.disassemble)
        except ValueError as exc:
            parser.error(f"invalid disassembly range '{args.disassemble}': {exc}")

    try:
        held_keys = parse_key_list(args.keys)
    except ValueError as exc:
        parser.error(f"invalid key list '{args.keys}': {exc}")

    if args.cycle_time < 0:
        parser.error("cycle time must not be negative")

    computer = Chip8Computer(seed=args.seed)
    try:
        info = computer.load_user_program(args.program)
    except ProgramLoadError as exc:
        print(f"Failed to load program: {exc}", file=sys.stderr)
        return EXIT_LOAD_FAILED
    logger.info("loaded %s (%d bytes)", info.name, info.size)

    if disassembly_range is not None:
        print(_format_disassembly(computer.memory, disassembly_range))
        return EXIT_OK

    computer.set_keys(key in held_keys for key in range(16))
    cycle_limit = args.cycles if args.cycles > 0 else None

    result = _execute_program(
        computer,
        max_cycles=cycle_limit,
        breakpoints=breakpoints,
        max_seconds=args.seconds,
        cycle_time=args.cycle_time,
    )
    logger.info("executed %d instructions", result.executed)

    if not args.no_dump:
        dump_target = Path(args.dump) if args.dump is not None else None
        _write_dump(computer.memory, dump_ranges, target=dump_target, fmt=args.dump_format)
    if args.regs:
        print(computer.register_dump())
    if args.screen:
        print(computer.display.render_text())

    if result.error is not None:
        print(
            f"Execution stopped: {result.error} at pc=0x{computer.program_counter:04X}",
            file=sys.stderr,
        )
        return EXIT_ENGINE_ERROR
    if result.break_hit:
        return EXIT_OK
    if result.timeout_hit:
        print("Execution stopped: time limit reached", file=sys.stderr)
        return EXIT_TIME_LIMIT
    if result.cycle_hit:
        print("Execution stopped: cycle limit reached", file=sys.stderr)
        return EXIT_CYCLE_LIMIT
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
