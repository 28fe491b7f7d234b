"""CHIP-8 emulator pygame application."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys
from typing import Dict, Iterable, Optional

from chip8emu.chip8.computer import Chip8Computer
from chip8emu.chip8.keyboard import Chip8Keypad
from chip8emu.emulator.errors import Chip8Error
from chip8emu.emulator.file import ProgramInfo, ProgramLoadError, load_program
from chip8emu.frontend.debug_overlay import DebugOverlay
from chip8emu.frontend.file_menu import FileMenu
from chip8emu.keymap import (
    DEFAULT_KEYMAP,
    KeymapError,
    load_keymap,
    resolve_keymap,
    write_keymap_template,
)

logger = logging.getLogger(__name__)

BASE_CAPTION = "CHIP-8 Emulator"
DEFAULT_CYCLES_PER_FRAME = 10


def _parse_color(value: str) -> int:
    text = value.strip().lower()
    if text.startswith("#"):
        text = text[1:]
    elif text.startswith("0x"):
        text = text[2:]
    if len(text) != 6:
        raise argparse.ArgumentTypeError(f"colour must be six hex digits: {value!r}")
    try:
        return int(text, 16)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid colour: {value!r}") from exc


def _handle_key_event(keypad: Chip8Keypad, keymap: Dict[int, int], key: int, pressed: bool) -> None:
    mapped = keymap.get(key)
    if mapped is None:
        return
    if pressed:
        keypad.press(mapped)
    else:
        keypad.release(mapped)


def _update_keypad(keypad: Chip8Keypad, keymap: Dict[int, int], key: int, pressed: bool, *, paused: bool) -> None:
    """Forward a host key to the keypad; presses are dropped while paused, releases never are."""

    if pressed and paused:
        return
    _handle_key_event(keypad, keymap, key, pressed)


def run_frame(
    computer: Chip8Computer,
    cycles: int,
    frame_seconds: float,
    overlay: Optional[DebugOverlay] = None,
) -> Optional[Chip8Error]:
    """Run one frame worth of instructions, splitting the frame time evenly.

    Returns the engine error that stopped the frame, if any.
    """

    cycle_time = frame_seconds / cycles
    for _ in range(cycles):
        try:
            computer.advance(cycle_time)
        except Chip8Error as exc:
            return exc
        if overlay is not None:
            overlay.record_execution(computer.program_counter)
    return None


def _execute_step(computer: Chip8Computer, overlay: DebugOverlay, cycle_time: float) -> Optional[Chip8Error]:
    try:
        computer.advance(cycle_time)
    except Chip8Error as exc:
        return exc
    overlay.record_execution(computer.program_counter)
    return None


def _build_caption(info: Optional[ProgramInfo], *, paused: bool = False) -> str:
    caption = BASE_CAPTION if info is None else f"{BASE_CAPTION} | {info.name}"
    if paused:
        caption += " | PAUSED"
    return caption


def _pygame_loop(
    scale: int,
    fps: int,
    cycles_per_frame: int,
    *,
    program_path: Optional[str] = None,
    keymap: Optional[Dict[int, str]] = None,
    seed: Optional[int] = None,
    decay: float = 0.0,
    foreground: int = 0xFFFFFF,
    background: int = 0x000000,
    start_paused: bool = False,
) -> None:
    import pygame  # type: ignore

    computer = Chip8Computer(seed=seed)
    display = computer.display
    display.foreground = foreground
    display.background = background
    display.decay = decay

    overlay = DebugOverlay(computer)
    program_info: Optional[ProgramInfo] = None
    if program_path is not None:
        try:
            program_info = load_program(computer, program_path)
        except ProgramLoadError as exc:
            logger.error("failed to load %s: %s", program_path, exc)
            overlay.set_status(f"Load failed: {exc}")
        else:
            logger.info("loaded %s (%d bytes)", program_info.name, program_info.size)

    menu_root = Path(program_path).parent if program_path else Path.cwd()
    file_menu = FileMenu(menu_root)

    pygame.init()
    key_codes = resolve_keymap(keymap if keymap is not None else DEFAULT_KEYMAP, pygame.key.key_code)
    screen = pygame.display.set_mode((display.WIDTH * scale, display.HEIGHT * scale))
    clock = pygame.time.Clock()

    running = True
    debug_mode = start_paused or program_info is None
    if debug_mode:
        overlay.set_status("Debug paused" if program_info is not None else "Press F1 to load a program")
    pygame.display.set_caption(_build_caption(program_info, paused=debug_mode))
    frame_seconds = 1.0 / fps
    step_time = frame_seconds / cycles_per_frame

    def _enter_debug(status: str) -> None:
        nonlocal debug_mode
        debug_mode = True
        overlay.capture_state()
        overlay.set_status(status)
        pygame.display.set_caption(_build_caption(program_info, paused=True))

    def _leave_debug(status: str) -> None:
        nonlocal debug_mode
        debug_mode = False
        overlay.set_status(status)
        pygame.display.set_caption(_build_caption(program_info))

    def _fault(error: Chip8Error) -> None:
        logger.error("engine stopped at pc=0x%04X: %s", computer.program_counter, error)
        overlay.record_fault(error)
        _enter_debug("Engine error")

    while running:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
                continue

            if event.type == pygame.KEYUP:
                _update_keypad(computer.keypad, key_codes, event.key, False, paused=debug_mode)
                continue

            if file_menu.active:
                result = file_menu.handle_event(event)
                if result:
                    action, payload = result
                    if action == "close":
                        overlay.set_status("File menu closed")
                    elif action == "load" and payload is not None:
                        try:
                            program_info = load_program(computer, payload)
                        except ProgramLoadError as exc:
                            logger.error("failed to load %s: %s", payload, exc)
                            overlay.set_status(f"Load failed: {exc}")
                        else:
                            logger.info("loaded %s (%d bytes)", program_info.name, program_info.size)
                            overlay.record_fault(None)
                            file_menu.root = payload.parent
                            file_menu.close()
                            _leave_debug(f"Loaded {program_info.name}")
                continue

            if event.type == pygame.KEYDOWN:
                if event.key == pygame.K_F1:
                    if file_menu.toggle():
                        overlay.set_status("File menu opened")
                    continue
                if event.key == pygame.K_ESCAPE:
                    if debug_mode:
                        _leave_debug("")
                    else:
                        _enter_debug("Debug paused")
                    continue
                if event.key == pygame.K_BACKSPACE:
                    computer.reset()
                    overlay.record_fault(None)
                    overlay.set_status("Reset")
                    overlay.capture_state()
                    continue
                if debug_mode:
                    if event.key == pygame.K_q:
                        running = False
                    elif event.key == pygame.K_SPACE:
                        if program_info is not None:
                            overlay.record_fault(None)
                            _leave_debug("Resumed")
                    elif event.key == pygame.K_n:
                        error = _execute_step(computer, overlay, step_time)
                        if error is not None:
                            _fault(error)
                        else:
                            overlay.set_status("Stepped")
                            overlay.capture_state()
                    elif event.key == pygame.K_r:
                        print(computer.register_dump())
                        overlay.set_status("Registers printed")
                    elif event.key == pygame.K_m:
                        print(computer.memory_dump())
                        overlay.set_status("Memory printed")
                    continue
                _update_keypad(computer.keypad, key_codes, event.key, True, paused=debug_mode)

        if not debug_mode and not file_menu.active:
            error = run_frame(computer, cycles_per_frame, frame_seconds, overlay)
            if error is not None:
                _fault(error)

        display.refresh()
        screen.blit(display.render_pygame_surface(scale), (0, 0))
        if debug_mode:
            overlay.render(screen)
        if file_menu.active:
            file_menu.render(screen)
        pygame.display.flip()

        elapsed_ms = clock.tick(fps)
        if elapsed_ms > 0:
            frame_seconds = elapsed_ms / 1000.0

    pygame.quit()


def _build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chip8emu", description="CHIP-8 emulator")
    parser.add_argument("program", nargs="?", help="CHIP-8 program image (.ch8) to load at start")
    parser.add_argument(
        "--write-keymap-template",
        metavar="PATH",
        help="Write a JSON keypad mapping template to the given path and exit",
    )
    parser.add_argument("--keymap", metavar="PATH", help="JSON file mapping hex keypad keys to pygame key names")
    parser.add_argument("--scale", type=int, default=10, help="Integer scaling factor for display (default: 10)")
    parser.add_argument("--fps", type=int, default=60, help="Target frames per second (default: 60)")
    parser.add_argument(
        "--cycles-per-frame",
        type=int,
        default=DEFAULT_CYCLES_PER_FRAME,
        help=f"Instructions executed per frame (default: {DEFAULT_CYCLES_PER_FRAME})",
    )
    parser.add_argument(
        "--decay",
        type=float,
        default=0.0,
        help="Phosphor fade factor per frame in [0, 1); 0 disables the fade",
    )
    parser.add_argument("--foreground", type=_parse_color, default=0xFFFFFF, help="Lit pixel colour (RRGGBB)")
    parser.add_argument("--background", type=_parse_color, default=0x000000, help="Unlit pixel colour (RRGGBB)")
    parser.add_argument("--seed", type=int, default=None, help="Seed for the random-number instruction")
    parser.add_argument("--paused", action="store_true", help="Start in the paused debug overlay")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Logging verbosity (default: INFO)",
    )
    return parser


def main(argv: Iterable[str] | None = None) -> None:
    parser = _build_argument_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if args.write_keymap_template:
        write_keymap_template(Path(args.write_keymap_template))
        return

    if args.scale <= 0:
        raise SystemExit("scale must be positive")
    if args.fps <= 0:
        raise SystemExit("fps must be positive")
    if args.cycles_per_frame <= 0:
        raise SystemExit("cycles per frame must be positive")
    if not 0.0 <= args.decay < 1.0:
        raise SystemExit("decay must be in [0, 1)")

    keymap = None
    if args.keymap:
        try:
            keymap = load_keymap(args.keymap)
        except KeymapError as exc:
            raise SystemExit(f"keymap error: {exc}")

    try:
        _pygame_loop(
            args.scale,
            args.fps,
            args.cycles_per_frame,
            program_path=args.program,
            keymap=keymap,
            seed=args.seed,
            decay=args.decay,
            foreground=args.foreground,
            background=args.background,
            start_paused=args.paused,
        )
    except (RuntimeError, KeymapError) as exc:
        raise SystemExit(str(exc))


if __name__ == "__main__":
    main()
