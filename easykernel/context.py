"""Saved register state of a thread."""

from __future__ import annotations

from dataclasses import dataclass, field

_USIZE_MASK = (1 << 64) - 1
_REGISTER_COUNT = 31

PRIVILEGE_BIT = 1 << 8
"""The SPP bit of ``sstatus``: return to supervisor mode."""
INTERRUPT_BIT = 1 << 5
"""The SPIE bit of ``sstatus``: enable interrupts after return."""


def build_sstatus(sstatus: int, supervisor: bool, interrupt: bool) -> int:
    """Return ``sstatus`` with the privilege and interrupt bits set as requested."""
    sstatus = sstatus | PRIVILEGE_BIT if supervisor else sstatus & ~PRIVILEGE_BIT
    sstatus = sstatus | INTERRUPT_BIT if interrupt else sstatus & ~INTERRUPT_BIT
    return sstatus & _USIZE_MASK


def _check_usize(value: int) -> int:
    if not 0 <= value <= _USIZE_MASK:
        raise ValueError(f"{value} does not fit in a 64-bit register")
    return value


@dataclass
class LocalContext:
    """General registers x1..x31, the resume pc and the privilege/interrupt setting."""

    registers: list[int] = field(default_factory=lambda: [0] * _REGISTER_COUNT)
    pc: int = 0
    supervisor: bool = False
    interrupt: bool = False

    @classmethod
    def empty(cls) -> LocalContext:
        return cls()

    @classmethod
    def user(cls, pc: int) -> LocalContext:
        """A user-mode context starting at ``pc`` with interrupts enabled."""
        return cls(pc=_check_usize(pc), supervisor=False, interrupt=True)

    @classmethod
    def thread(cls, pc: int, interrupt: bool) -> LocalContext:
        """A supervisor-mode context starting at ``pc``."""
        return cls(pc=_check_usize(pc), supervisor=True, interrupt=interrupt)

    @staticmethod
    def _index(n: int) -> int:
        if not 1 <= n <= _REGISTER_COUNT:
            raise IndexError(f"register x{n} does not exist")
        return n - 1

    def x(self, n: int) -> int:
        """Value of general register ``x<n>``."""
        return self.registers[self._index(n)]

    def set_x(self, n: int, value: int) -> None:
        self.registers[self._index(n)] = _check_usize(value)

    def a(self, n: int) -> int:
        """Value of argument register ``a<n>``."""
        return self.x(n + 10)

    def set_a(self, n: int, value: int) -> None:
        self.set_x(n + 10, value)

    @property
    def ra(self) -> int:
        return self.x(1)

    @property
    def sp(self) -> int:
        return self.x(2)

    @sp.setter
    def sp(self, value: int) -> None:
        self.set_x(2, value)

    def move_next(self) -> None:
        """Advance pc past one uncompressed instruction."""
        self.pc = (self.pc + 4) & _USIZE_MASK

    def copy(self) -> LocalContext:
        return LocalContext(list(self.registers), self.pc, self.supervisor, self.interrupt)