"""Types shared by the system call interface: call numbers, clocks and times."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

STDIN = 0
STDOUT = 1
STDDEBUG = 2

_NANOS_PER_SECOND = 1_000_000_000


@dataclass(frozen=True)
class SyscallId:
    """A system call number."""

    value: int

    def __int__(self) -> int:
        return self.value


@dataclass(frozen=True)
class ClockId:
    """A clock identifier; any number is allowed, the known ones are class constants."""

    value: int

    CLOCK_REALTIME: ClassVar[ClockId]
    CLOCK_MONOTONIC: ClassVar[ClockId]
    CLOCK_PROCESS_CPUTIME_ID: ClassVar[ClockId]
    CLOCK_THREAD_CPUTIME_ID: ClassVar[ClockId]
    CLOCK_MONOTONIC_RAW: ClassVar[ClockId]
    CLOCK_REALTIME_COARSE: ClassVar[ClockId]
    CLOCK_MONOTONIC_COARSE: ClassVar[ClockId]
    CLOCK_BOOTTIME: ClassVar[ClockId]
    CLOCK_REALTIME_ALARM: ClassVar[ClockId]
    CLOCK_BOOTTIME_ALARM: ClassVar[ClockId]
    CLOCK_SGI_CYCLE: ClassVar[ClockId]
    CLOCK_TAI: ClassVar[ClockId]

    def __int__(self) -> int:
        return self.value


for _number, _name in enumerate(
    (
        "CLOCK_REALTIME",
        "CLOCK_MONOTONIC",
        "CLOCK_PROCESS_CPUTIME_ID",
        "CLOCK_THREAD_CPUTIME_ID",
        "CLOCK_MONOTONIC_RAW",
        "CLOCK_REALTIME_COARSE",
        "CLOCK_MONOTONIC_COARSE",
        "CLOCK_BOOTTIME",
        "CLOCK_REALTIME_ALARM",
        "CLOCK_BOOTTIME_ALARM",
        "CLOCK_SGI_CYCLE",
        "CLOCK_TAI",
    )
):
    setattr(ClockId, _name, ClockId(_number))


@dataclass(frozen=True, order=True)
class TimeSpec:
    """A time as whole seconds and nanoseconds."""

    tv_sec: int = 0
    tv_nsec: int = 0

    ZERO: ClassVar[TimeSpec]
    SECOND: ClassVar[TimeSpec]
    MILLISECOND: ClassVar[TimeSpec]
    MICROSECOND: ClassVar[TimeSpec]
    NANOSECOND: ClassVar[TimeSpec]

    @classmethod
    def from_millisecond(cls, millisecond: int) -> TimeSpec:
        seconds, millis = divmod(millisecond, 1_000)
        return cls(seconds, millis * 1_000_000)

    def __add__(self, other: TimeSpec) -> TimeSpec:
        if not isinstance(other, TimeSpec):
            return NotImplemented
        sec = self.tv_sec + other.tv_sec
        nsec = self.tv_nsec + other.tv_nsec
        if nsec > _NANOS_PER_SECOND:
            sec += 1
            nsec -= _NANOS_PER_SECOND
        return TimeSpec(sec, nsec)

    def __str__(self) -> str:
        return f"TimeSpec({self.tv_sec}.{self.tv_nsec:09})"


TimeSpec.ZERO = TimeSpec(0, 0)
TimeSpec.SECOND = TimeSpec(1, 0)
TimeSpec.MILLISECOND = TimeSpec(0, 1_000_000)
TimeSpec.MICROSECOND = TimeSpec(0, 1_000)
TimeSpec.NANOSECOND = TimeSpec(0, 1)