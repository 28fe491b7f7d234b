"""Debug overlay rendering for the pygame frontend."""

from __future__ import annotations

from collections import deque
from typing import Iterable, Optional

from chip8emu.emulator.errors import Chip8Error


class DebugOverlay:
    """Collects and renders debug information for the CHIP-8 frontend."""

    TRACE_LENGTH = 32
    DISASSEMBLY_BEFORE = 3
    DISASSEMBLY_AFTER = 6
    INSTRUCTIONS = [
        "ESC: toggle debug",
        "SPACE: resume",
        "N: step",
        "R: print registers",
        "M: print memory",
        "F1: load program",
        "BACKSPACE: reset",
        "Q: quit",
    ]

    def __init__(self, computer) -> None:
        self._computer = computer
        self._trace: deque[int] = deque(maxlen=self.TRACE_LENGTH)
        self._font = None
        self._line_height = 0
        self._cached_cpu_lines: list[str] = []
        self._cached_stack_lines: list[str] = []
        self._cached_code_lines: list[str] = []
        self._cached_program: list[str] = []
        self._status_message: str = ""
        self._fault: Optional[Chip8Error] = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def record_execution(self, pc: int) -> None:
        """Record the latest program counter for trace display."""

        self._trace.append(pc & 0xFFFF)

    def record_fault(self, error: Optional[Chip8Error]) -> None:
        self._fault = error

    def capture_state(self) -> None:
        """Snapshot CPU/stack/code state for later rendering."""

        cpu = getattr(self._computer, "cpu_core", None)
        program_info = getattr(self._computer, "program_info", None)

        self._cached_cpu_lines = self._snapshot_cpu(cpu)
        self._cached_stack_lines = self._snapshot_stack(cpu)
        self._cached_code_lines = self._snapshot_code(cpu)
        self._cached_program = self._snapshot_program(program_info)

    def render(self, screen) -> None:
        """Render the overlay onto the given pygame surface."""

        import pygame  # type: ignore

        self._ensure_font()
        self.capture_state()

        overlay = pygame.Surface(screen.get_size(), pygame.SRCALPHA)
        overlay.fill((0, 0, 0, 196))

        x_cursor = 12
        y_cursor = 12
        column_gap = max(8, self._line_height // 2)

        if self._font is not None:
            header = self._status_header()
            color = (255, 120, 120) if self._fault is not None else (173, 216, 230)
            status_surface = self._font.render(header, True, color)
            overlay.blit(status_surface, (x_cursor, y_cursor))
            y_cursor += self._line_height + 4

        top = y_cursor
        left_sections = [
            ("CPU", self._cached_cpu_lines),
            ("Stack", self._cached_stack_lines),
            ("Program", self._cached_program),
        ]
        left_width = self._measure_sections(left_sections) + 24

        y_cursor = self._render_section(overlay, x_cursor, y_cursor, "CPU", self._cached_cpu_lines)
        y_cursor = self._render_section(overlay, x_cursor, y_cursor + column_gap, "Stack", self._cached_stack_lines)
        self._render_section(overlay, x_cursor, y_cursor + column_gap, "Program", self._cached_program)

        right_x = x_cursor + left_width
        right_y = self._render_section(overlay, right_x, top, "Code", self._cached_code_lines)
        trace_lines = self._format_trace_lines()
        right_y = self._render_section(overlay, right_x, right_y + column_gap, "Trace", trace_lines)
        self._render_section(overlay, right_x, right_y + column_gap, "Controls", self.INSTRUCTIONS)

        screen.blit(overlay, (0, 0))

    def get_trace(self) -> list[int]:
        """Expose a copy of the recent trace for tests."""

        return list(self._trace)

    def set_status(self, message: str) -> None:
        self._status_message = message

    @property
    def status(self) -> str:
        return self._status_message

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _ensure_font(self) -> None:
        if self._font is not None:
            return
        import pygame  # type: ignore

        pygame.font.init()
        self._font = pygame.font.SysFont("Courier", 12)
        self._line_height = self._font.get_linesize()

    def _render_section(self, surface, x: int, y: int, title: str, lines: Iterable[str]) -> int:
        if self._font is None:
            return y
        title_surface = self._font.render(title, True, (255, 215, 0))
        surface.blit(title_surface, (x, y))
        cursor_y = y + self._line_height
        for line in lines:
            rendered = self._font.render(line, True, (230, 230, 230))
            surface.blit(rendered, (x, cursor_y))
            cursor_y += self._line_height
        return cursor_y

    def _measure_sections(self, sections: Iterable[tuple[str, Iterable[str]]]) -> int:
        if self._font is None:
            return 0
        max_width = 0
        for title, lines in sections:
            max_width = max(max_width, self._font.size(title)[0])
            for line in lines:
                max_width = max(max_width, self._font.size(line)[0])
        return max_width

    def _snapshot_cpu(self, cpu) -> list[str]:
        if cpu is None:
            return ["CPU not attached"]
        regs = cpu.registers
        lines = []
        for base in range(0, 16, 4):
            lines.append("  ".join(f"V{index:X}:{regs.v[index]:02X}" for index in range(base, base + 4)))
        lines.append(f"PC:{regs.program_counter:04X}  I:{regs.index:04X}  VF:{regs.flag}")
        lines.append(f"DT:{cpu.timers.delay:02X}  ST:{cpu.timers.sound:02X}")
        return lines

    def _snapshot_stack(self, cpu) -> list[str]:
        if cpu is None:
            return ["Stack unavailable"]
        if not cpu.stack:
            return ["<empty>"]
        depth = len(cpu.stack)
        return [f"{depth - offset - 1:2d}: {addr:04X}" for offset, addr in enumerate(reversed(cpu.stack[-8:]))]

    def _snapshot_code(self, cpu) -> list[str]:
        if cpu is None:
            return ["Code unavailable"]
        pc = cpu.registers.program_counter
        lines = []
        start = max(0, pc - self.DISASSEMBLY_BEFORE * 2)
        for address in range(start, pc + self.DISASSEMBLY_AFTER * 2 + 1, 2):
            marker = ">" if address == pc else " "
            try:
                text = str(self._computer.instruction_at(address))
            except Chip8Error:
                text = "??"
            lines.append(f"{marker}{address:04X} {text}")
        return lines

    def _snapshot_program(self, info) -> list[str]:
        if info is None:
            return ["No program loaded"]
        lines = [f"Name: {info.name or '-'}"]
        if info.path is not None:
            lines.append(f"File: {info.path.name}")
        lines.append(f"Range: {info.start:04X}-{info.end:04X} ({info.size} bytes)")
        return lines

    def _format_trace_lines(self) -> list[str]:
        entries = list(self._trace)
        if not entries:
            return ["<empty>"]
        grouped: list[str] = []
        line: list[str] = []
        for pc in reversed(entries):
            line.append(f"{pc:04X}")
            if len(line) == 8:
                grouped.append(" ".join(line))
                line = []
        if line:
            grouped.append(" ".join(line))
        return grouped

    def _status_header(self) -> str:
        base = self._status_message or "Debug menu"
        if self._fault is not None:
            return f"{base} [fault: {self._fault}]"
        return base


__all__ = ["DebugOverlay"]
