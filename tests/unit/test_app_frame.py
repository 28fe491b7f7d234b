"""Frame pumping helpers of the pygame application, exercised without a window."""

from __future__ import annotations

from chip8emu import app
from chip8emu.chip8.computer import Chip8Computer
from chip8emu.emulator.errors import InvalidInstruction
from chip8emu.emulator.file import program_from_bytes
from chip8emu.frontend.debug_overlay import DebugOverlay


def test_run_frame_executes_requested_cycles() -> None:
    computer = Chip8Computer()
    computer.load_program(bytes([0x70, 0x01, 0x12, 0x00]))
    overlay = DebugOverlay(computer)

    error = app.run_frame(computer, 10, 1.0 / 60.0, overlay)

    assert error is None
    assert computer.clock_count == 10
    assert computer.registers[0] == 5
    assert len(overlay.get_trace()) == 10


def test_run_frame_ticks_timers_once_per_frame() -> None:
    computer = Chip8Computer()
    computer.load_program(bytes([0x60, 0x09, 0xF0, 0x15, 0x12, 0x04]))
    app.run_frame(computer, 2, 0.0)
    assert computer.delay_timer == 9
    app.run_frame(computer, 10, 1.0 / 60.0)
    assert computer.delay_timer == 8


def test_run_frame_stops_on_engine_error() -> None:
    computer = Chip8Computer()
    computer.load_program(bytes([0x60, 0x01, 0x81, 0x28]))

    error = app.run_frame(computer, 10, 1.0 / 60.0)

    assert isinstance(error, InvalidInstruction)
    assert computer.clock_count == 1
    assert computer.program_counter == 0x202


def test_key_events_follow_keymap() -> None:
    computer = Chip8Computer()
    keymap = {ord("w"): 0x5}
    app._handle_key_event(computer.keypad, keymap, ord("w"), True)
    assert computer.keypad.is_pressed(0x5)
    app._handle_key_event(computer.keypad, keymap, ord("p"), True)
    assert computer.keypad.get_keys().count(True) == 1
    app._handle_key_event(computer.keypad, keymap, ord("w"), False)
    assert not computer.keypad.is_pressed(0x5)


def test_build_caption() -> None:
    info = program_from_bytes(b"\x00\xE0", name="PONG")
    assert app._build_caption(None) == app.BASE_CAPTION
    assert app._build_caption(info) == f"{app.BASE_CAPTION} | PONG"
    assert app._build_caption(info, paused=True).endswith("| PAUSED")


def test_release_while_paused_clears_held_key() -> None:
    computer = Chip8Computer()
    keymap = {ord("w"): 0x5}
    app._update_keypad(computer.keypad, keymap, ord("w"), True, paused=False)
    assert computer.keypad.is_pressed(0x5)

    app._update_keypad(computer.keypad, keymap, ord("w"), False, paused=True)

    assert not computer.keypad.is_pressed(0x5)


def test_press_while_paused_is_ignored() -> None:
    computer = Chip8Computer()
    keymap = {ord("w"): 0x5}
    app._update_keypad(computer.keypad, keymap, ord("w"), True, paused=True)
    assert computer.keypad.get_keys().count(True) == 0


def test_key_released_during_pause_does_not_satisfy_key_wait() -> None:
    computer = Chip8Computer()
    # ld v0, k ; jp 0x202
    computer.load_program(bytes([0xF0, 0x0A, 0x12, 0x02]))
    keymap = {ord("w"): 0x5}
    app._update_keypad(computer.keypad, keymap, ord("w"), True, paused=False)
    app._update_keypad(computer.keypad, keymap, ord("w"), False, paused=True)

    app.run_frame(computer, 3, 0.0)

    assert computer.program_counter == 0x200
