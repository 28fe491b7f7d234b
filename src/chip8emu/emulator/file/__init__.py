"""File loading helpers for the CHIP-8 emulator."""

from chip8emu.emulator.file.program import (
    MAX_PROGRAM_LENGTH,
    PROGRAM_SUFFIXES,
    ProgramInfo,
    ProgramLoadError,
    load_program,
    program_from_bytes,
    read_program,
    validate_program,
)

__all__ = [
    "MAX_PROGRAM_LENGTH",
    "PROGRAM_SUFFIXES",
    "ProgramInfo",
    "ProgramLoadError",
    "load_program",
    "program_from_bytes",
    "read_program",
    "validate_program",
]
