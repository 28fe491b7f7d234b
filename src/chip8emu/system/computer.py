"""Host-pumped computer scaffold: timer cadence and single-step driving."""

from __future__ import annotations

from datetime import timedelta
from fractions import Fraction
from typing import Optional, TYPE_CHECKING, Union

if TYPE_CHECKING:
    from chip8emu.chip8.hardware import Chip8Hardware
    from chip8emu.cpu.cpu import Chip8CPU
    from chip8emu.cpu.instructions import Instruction
else:  # pragma: no cover - used for runtime only
    Chip8Hardware = object

Elapsed = Union[float, int, timedelta]

NANOSECONDS_PER_SECOND = 1_000_000_000


def to_nanoseconds(elapsed: Elapsed) -> Fraction:
    """Convert seconds (or a timedelta) into exact nanoseconds.

    The sub-nanosecond part is kept, so a run of short intervals sums to the
    same total as the single interval they were split from.
    """

    if isinstance(elapsed, timedelta):
        nanoseconds = Fraction(elapsed // timedelta(microseconds=1)) * 1000
    else:
        nanoseconds = Fraction(elapsed) * NANOSECONDS_PER_SECOND
    if nanoseconds < 0:
        raise ValueError("elapsed time must not be negative")
    return nanoseconds


class TimerClock:
    """Tracks accumulated host time against a fixed pulse period.

    A pulse fires once the time since the previous pulse reaches the period;
    the baseline then moves to the current accumulated time, so a single long
    interval yields a single pulse.
    """

    def __init__(self, frequency_hz: float = 60.0) -> None:
        if frequency_hz <= 0:
            raise ValueError("frequency must be positive")
        self.frequency_hz = frequency_hz
        self.period_ns = int(NANOSECONDS_PER_SECOND // frequency_hz)
        self._elapsed_ns = Fraction(0)
        self._last_pulse_ns = Fraction(0)

    def reset(self) -> None:
        self._elapsed_ns = Fraction(0)
        self._last_pulse_ns = Fraction(0)

    @property
    def elapsed_ns(self) -> Fraction:
        return self._elapsed_ns

    def add(self, elapsed_ns: Union[int, Fraction]) -> bool:
        self._elapsed_ns += elapsed_ns
        if self._elapsed_ns - self._last_pulse_ns >= self.period_ns:
            self._last_pulse_ns = self._elapsed_ns
            return True
        return False


class Computer:
    """Machine driven one instruction at a time by its host."""

    TIMER_FREQUENCY_HZ = 60.0

    def __init__(self, hardware: Chip8Hardware, *, timer_frequency: float = TIMER_FREQUENCY_HZ) -> None:
        self.hardware = hardware
        self.clock_count: int = 0
        self._cpu: Optional["Chip8CPU"] = None
        self._timer_clock = TimerClock(timer_frequency)

    # ------------------------------------------------------------------
    # CPU integration
    # ------------------------------------------------------------------
    @property
    def cpu(self) -> Optional["Chip8CPU"]:
        return self._cpu

    def set_cpu(self, cpu: "Chip8CPU") -> None:
        self._cpu = cpu
        if hasattr(cpu, "computer"):
            setattr(cpu, "computer", self)

    @property
    def timer_clock(self) -> TimerClock:
        return self._timer_clock

    def advance(self, elapsed: Elapsed) -> "Instruction":
        """Account for ``elapsed`` host time, then execute one instruction.

        Engine errors propagate unchanged; the program counter is left on the
        faulting instruction.
        """

        if self._cpu is None:
            raise RuntimeError("CPU is not attached to the computer")
        if self._timer_clock.add(to_nanoseconds(elapsed)):
            self._cpu.timers.tick()
        instruction = self._cpu.step()
        self.clock_count += 1
        return instruction

    def reset(self) -> None:
        self.clock_count = 0
        self._timer_clock.reset()
        if self._cpu is not None:
            self._cpu.reset()


__all__ = ["Computer", "Elapsed", "TimerClock", "to_nanoseconds"]
