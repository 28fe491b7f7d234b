from __future__ import annotations

import logging
from pathlib import Path

from chip8emu import debug_runner


class FakeTime:
    def __init__(self) -> None:
        self.current = 0.0

    def monotonic(self) -> float:
        value = self.current
        self.current += 0.6
        return value


def _write_program(path: Path, payload: bytes) -> Path:
    path.write_bytes(payload)
    return path


LOOP = bytes([0x60, 0x05, 0x12, 0x02])


def test_debug_runner_breaks_and_dumps(tmp_path, capsys) -> None:
    prog_path = _write_program(tmp_path / "loop.ch8", LOOP)

    exit_code = debug_runner.main(
        [
            "--program",
            str(prog_path),
            "--cycles",
            "512",
            "--break-pc",
            "0x0202",
            "--dump-range",
            "0200:020F",
        ]
    )

    captured = capsys.readouterr()
    assert exit_code == 0
    output_lines = [line for line in captured.out.strip().splitlines() if line]
    assert output_lines[0].startswith("ADDR")
    assert output_lines[1].startswith("0200 60 05 12 02")


def test_debug_runner_time_limit(tmp_path, capsys, monkeypatch) -> None:
    prog_path = _write_program(tmp_path / "loop.ch8", LOOP)

    fake_time = FakeTime()
    monkeypatch.setattr(debug_runner, "time", fake_time)

    exit_code = debug_runner.main(
        [
            "--program",
            str(prog_path),
            "--cycles",
            "0",
            "--seconds",
            "1",
            "--no-dump",
        ]
    )

    captured = capsys.readouterr()
    assert exit_code == debug_runner.EXIT_TIME_LIMIT
    assert "time limit" in captured.err


def test_debug_runner_cycle_limit_prints_registers(tmp_path, capsys) -> None:
    prog_path = _write_program(tmp_path / "loop.ch8", LOOP)

    exit_code = debug_runner.main(["--program", str(prog_path), "--cycles", "8", "--no-dump", "--regs"])

    captured = capsys.readouterr()
    assert exit_code == debug_runner.EXIT_CYCLE_LIMIT
    assert "v0 = 0x05" in captured.out.splitlines()
    assert "pc = 0x0202" in captured.out.splitlines()


def test_debug_runner_reports_engine_error(tmp_path, capsys) -> None:
    prog_path = _write_program(tmp_path / "bad.ch8", bytes([0x60, 0x01, 0x00, 0xEE]))

    exit_code = debug_runner.main(["--program", str(prog_path), "--no-dump"])

    captured = capsys.readouterr()
    assert exit_code == debug_runner.EXIT_ENGINE_ERROR
    assert "empty call stack" in captured.err
    assert "pc=0x0202" in captured.err


def test_debug_runner_load_failure(tmp_path, capsys) -> None:
    exit_code = debug_runner.main(["--program", str(tmp_path / "missing.ch8")])

    captured = capsys.readouterr()
    assert exit_code == debug_runner.EXIT_LOAD_FAILED
    assert "Failed to load program" in captured.err


def test_debug_runner_disassembles_without_running(tmp_path, capsys) -> None:
    prog_path = _write_program(tmp_path / "loop.ch8", LOOP)

    exit_code = debug_runner.main(["--program", str(prog_path), "--disassemble", "0200:0203"])

    captured = capsys.readouterr()
    assert exit_code == 0
    assert captured.out.splitlines() == ["0200  6005  ld v0, 0x05", "0202  1202  jp 0x202"]


def test_debug_runner_binary_dump_to_file(tmp_path) -> None:
    prog_path = _write_program(tmp_path / "loop.ch8", LOOP)
    dump_path = tmp_path / "dump.bin"

    exit_code = debug_runner.main(
        [
            "--program",
            str(prog_path),
            "--cycles",
            "1",
            "--dump",
            str(dump_path),
            "--dump-format",
            "bin",
            "--dump-range",
            "0200:0203",
        ]
    )

    assert exit_code == debug_runner.EXIT_CYCLE_LIMIT
    assert dump_path.read_bytes() == LOOP


def test_debug_runner_holds_keys(tmp_path, capsys) -> None:
    # ld v0, k ; jp 0x202
    prog_path = _write_program(tmp_path / "key.ch8", bytes([0xF0, 0x0A, 0x12, 0x02]))

    exit_code = debug_runner.main(
        ["--program", str(prog_path), "--keys", "9", "--break-pc", "0202", "--no-dump", "--regs"]
    )

    captured = capsys.readouterr()
    assert exit_code == 0
    assert "v0 = 0x09" in captured.out.splitlines()


def test_debug_runner_trace_logs_instructions(tmp_path, caplog) -> None:
    prog_path = _write_program(tmp_path / "loop.ch8", LOOP)

    with caplog.at_level(logging.DEBUG, logger="chip8emu.debug_runner"):
        debug_runner.main(["--program", str(prog_path), "--cycles", "2", "--no-dump", "--trace"])

    messages = [record.getMessage() for record in caplog.records if record.name == "chip8emu.debug_runner"]
    assert "0x0200 :: 6005 ld v0, 0x05" in messages
    assert "0x0202 :: 1202 jp 0x202" in messages


def test_debug_runner_screen_output(tmp_path, capsys) -> None:
    # ld f, v0 ; drw v0, v0, 5 ; jp 0x204
    prog_path = _write_program(tmp_path / "zero.ch8", bytes([0xF0, 0x29, 0xD0, 0x05, 0x12, 0x04]))

    debug_runner.main(["--program", str(prog_path), "--cycles", "3", "--no-dump", "--screen"])

    lines = capsys.readouterr().out.splitlines()
    assert lines[0].startswith(".##.")
    assert len(lines) == 32
