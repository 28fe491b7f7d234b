"""Error types raised by the CHIP-8 engine."""

from __future__ import annotations

from typing import Sequence, Tuple


class Chip8Error(RuntimeError):
    """Base class for every engine failure."""


class OutOfBounds(Chip8Error, IndexError):
    """Raised when an address or index falls outside its backing store."""

    def __init__(self, address: int, limit: int, *, space: str = "memory") -> None:
        self.address = address
        self.limit = limit
        self.space = space
        super().__init__(f"{space} access out of bounds: 0x{address:04X} (limit 0x{limit:04X})")


class InvalidInstruction(Chip8Error):
    """Raised when a nibble pattern has no entry in the opcode table."""

    def __init__(self, nibbles: Sequence[int]) -> None:
        self.nibbles: Tuple[int, ...] = tuple(nibbles)
        text = "".join(f"{value:X}" for value in self.nibbles)
        super().__init__(f"invalid instruction: {text}")


class NoReturnAddress(Chip8Error):
    """Raised when a return executes with an empty call stack."""

    def __init__(self) -> None:
        super().__init__("return with empty call stack")


class UnsupportedExternalCall(Chip8Error):
    """Raised for the legacy 0nnn machine-code routine call."""

    def __init__(self, address: int) -> None:
        self.address = address
        super().__init__(f"unsupported external routine call: 0x{address:03X}")


__all__ = [
    "Chip8Error",
    "InvalidInstruction",
    "NoReturnAddress",
    "OutOfBounds",
    "UnsupportedExternalCall",
]
