"""Program picker overlay: lists CHIP-8 images with their size and fit."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple

from chip8emu.emulator.file import MAX_PROGRAM_LENGTH, PROGRAM_SUFFIXES

MenuAction = Tuple[str, Optional[Path]]


class EntryKind(Enum):
    PARENT = "parent"
    DIRECTORY = "directory"
    PROGRAM = "program"


@dataclass(frozen=True)
class MenuEntry:
    path: Path
    kind: EntryKind
    size: int = 0

    @property
    def fits(self) -> bool:
        """Whether a program image fits between 0x200 and the end of memory."""

        return self.kind is not EntryKind.PROGRAM or 0 < self.size <= MAX_PROGRAM_LENGTH

    @property
    def label(self) -> str:
        if self.kind is EntryKind.PARENT:
            return "[..]"
        if self.kind is EntryKind.DIRECTORY:
            return f"[{self.path.name}]"
        return self.path.name

    @property
    def detail(self) -> str:
        if self.kind is not EntryKind.PROGRAM:
            return ""
        if self.size == 0:
            return "empty"
        if not self.fits:
            return f"{self.size} B too large"
        return f"{self.size} B"


def scan_directory(root: Path) -> List[MenuEntry]:
    """Parent link, then sub-directories, then program images, each sorted by name."""

    if not root.is_dir():
        return []
    try:
        children = list(root.iterdir())
    except OSError:
        children = []

    suffixes = {suffix.lower() for suffix in PROGRAM_SUFFIXES}
    entries: List[MenuEntry] = []
    if root.parent != root:
        entries.append(MenuEntry(root.parent, EntryKind.PARENT))
    for child in sorted(children, key=lambda p: p.name.lower()):
        if child.is_dir():
            entries.append(MenuEntry(child, EntryKind.DIRECTORY))
    for child in sorted(children, key=lambda p: p.name.lower()):
        if child.is_file() and child.suffix.lower() in suffixes:
            try:
                size = child.stat().st_size
            except OSError:
                continue
            entries.append(MenuEntry(child, EntryKind.PROGRAM, size))
    return entries


class FileMenu:
    """Keyboard-driven picker drawn over the CHIP-8 screen."""

    VISIBLE_ITEMS = 12

    def __init__(self, root: Path) -> None:
        self.root = Path(root)
        self.active = False
        self.entries: List[MenuEntry] = []
        self.selected_index = 0
        self._scroll = 0
        self._font = None
        self._line_height = 18
        self._message = ""

    def open(self) -> None:
        self.refresh()
        self.active = True

    def close(self) -> None:
        self.active = False
        self._message = ""

    def toggle(self) -> bool:
        if self.active:
            self.close()
        else:
            self.open()
        return self.active

    @property
    def message(self) -> str:
        return self._message

    @property
    def selected(self) -> Optional[MenuEntry]:
        if 0 <= self.selected_index < len(self.entries):
            return self.entries[self.selected_index]
        return None

    def refresh(self) -> None:
        previous = self.selected
        self.entries = scan_directory(self.root)
        paths = [entry.path for entry in self.entries]
        if previous is not None and previous.path in paths:
            self._select(paths.index(previous.path))
        else:
            self._select(0)

    def move_selection(self, delta: int) -> None:
        if self.entries:
            self._select(self.selected_index + delta)

    def _select(self, index: int) -> None:
        self.selected_index = max(0, min(index, len(self.entries) - 1)) if self.entries else 0
        if self.selected_index < self._scroll:
            self._scroll = self.selected_index
        elif self.selected_index >= self._scroll + self.VISIBLE_ITEMS:
            self._scroll = self.selected_index - self.VISIBLE_ITEMS + 1

    def activate_selected(self) -> Optional[MenuAction]:
        entry = self.selected
        if entry is None:
            self._message = "No entries"
            return None
        if entry.kind is not EntryKind.PROGRAM:
            self.root = entry.path
            self._scroll = 0
            self.refresh()
            self._message = f"Directory: {self.root}"
            return None
        if not entry.fits:
            self._message = f"{entry.path.name}: {entry.detail}, limit is {MAX_PROGRAM_LENGTH} B"
            return None
        if not entry.path.exists():
            self._message = "Missing entry"
            return None
        return ("load", entry.path.resolve())

    def handle_event(self, event) -> Optional[MenuAction]:
        import pygame  # type: ignore

        if event.type != pygame.KEYDOWN:
            return None
        key = event.key
        if key in (pygame.K_ESCAPE, pygame.K_F1):
            self.close()
            return ("close", None)
        if key in (pygame.K_RETURN, pygame.K_KP_ENTER):
            return self.activate_selected()
        if key == pygame.K_r:
            self.refresh()
            self._message = "Reloaded list"
            return None

        steps = {
            pygame.K_DOWN: 1,
            pygame.K_j: 1,
            pygame.K_UP: -1,
            pygame.K_k: -1,
            pygame.K_PAGEDOWN: self.VISIBLE_ITEMS,
            pygame.K_PAGEUP: -self.VISIBLE_ITEMS,
        }
        if key in steps:
            self.move_selection(steps[key])
        return None

    def render(self, screen) -> None:
        if not self.active:
            return
        import pygame  # type: ignore

        self._ensure_font()
        width, height = screen.get_size()
        panel = pygame.Surface((width, height), pygame.SRCALPHA)
        panel.fill((0, 0, 0, 200))

        margin = 16
        row_step = self._line_height + 4
        title = f"Load program from {self.root}" if self.entries else f"No programs in {self.root}"
        panel.blit(self._font.render(title, True, (255, 255, 180)), (margin, margin))
        hint = f"ENTER: load  R: refresh  ESC/F1: close  (max {MAX_PROGRAM_LENGTH} B)"
        panel.blit(self._font.render(hint, True, (200, 200, 200)), (margin, margin + row_step))

        top = margin + row_step * 2
        detail_x = width - margin * 2 - self._font.size("0000 B too large")[0]
        for row, entry in enumerate(self.entries[self._scroll:self._scroll + self.VISIBLE_ITEMS]):
            y = top + row * self._line_height
            if self._scroll + row == self.selected_index:
                color = (255, 255, 0)
            elif not entry.fits:
                color = (200, 90, 90)
            else:
                color = (220, 220, 220)
            panel.blit(self._font.render(entry.label, True, color), (margin * 2, y))
            if entry.detail:
                panel.blit(self._font.render(entry.detail, True, color), (detail_x, y))

        if self._message:
            message = self._font.render(self._message, True, (173, 216, 230))
            panel.blit(message, (margin, top + self.VISIBLE_ITEMS * self._line_height))

        screen.blit(panel, (0, 0))

    def _ensure_font(self) -> None:
        if self._font is not None:
            return
        import pygame  # type: ignore

        pygame.font.init()
        self._font = pygame.font.SysFont("Courier", 14)
        self._line_height = self._font.get_linesize()


__all__ = ["EntryKind", "FileMenu", "MenuEntry", "scan_directory"]
