"""Program loaders for CHIP-8 binary images."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from chip8emu.memory import MEMORY_SIZE, PROGRAM_START

MAX_PROGRAM_LENGTH = MEMORY_SIZE - PROGRAM_START
PROGRAM_SUFFIXES = (".ch8", ".c8", ".rom")


class ProgramLoadError(RuntimeError):
    """Raised when a program image cannot be read."""


@dataclass
class ProgramInfo:
    name: str
    data: bytes
    path: Optional[Path] = None
    start: int = PROGRAM_START

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def end(self) -> int:
        return self.start + self.size - 1


def validate_program(data: bytes) -> None:
    if not data:
        raise ProgramLoadError("program image is empty")
    if len(data) > MAX_PROGRAM_LENGTH:
        raise ProgramLoadError(
            f"program is {len(data)} bytes; at most {MAX_PROGRAM_LENGTH} fit above 0x{PROGRAM_START:03X}"
        )


def read_program(path: str | Path) -> ProgramInfo:
    """Read a raw CHIP-8 image from disk and check it fits in memory."""

    file_path = Path(path)
    try:
        data = file_path.read_bytes()
    except OSError as exc:
        raise ProgramLoadError(f"cannot read {file_path}: {exc.strerror or exc}") from exc
    validate_program(data)
    return ProgramInfo(name=file_path.stem.upper(), data=data, path=file_path)


def program_from_bytes(data: bytes, *, name: str = "") -> ProgramInfo:
    payload = bytes(data)
    validate_program(payload)
    return ProgramInfo(name=name or "UNTITLED", data=payload)


def load_program(computer, path: str | Path) -> ProgramInfo:
    """Read ``path`` and install it into ``computer`` from a clean reset."""

    return computer.load_user_program(path)
