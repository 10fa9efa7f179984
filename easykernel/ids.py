"""Identifiers of processes, threads and coroutines."""

from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass
from typing import ClassVar, Iterator

USIZE_MAX = (1 << 64) - 1
"""Largest value of a machine word; as a process id it means "any child"."""


@dataclass(frozen=True, order=True)
class _SequentialId:
    """An integer identifier; each subclass hands out its own increasing sequence."""

    value: int

    _counter: ClassVar[Iterator[int]]
    _counter_lock: ClassVar[threading.Lock]

    def __init_subclass__(cls, **kwargs) -> None:
        super().__init_subclass__(**kwargs)
        cls._counter = itertools.count()
        cls._counter_lock = threading.Lock()

    @classmethod
    def _next(cls):
        with cls._counter_lock:
            return cls(next(cls._counter))

    def __int__(self) -> int:
        return self.value


class ProcId(_SequentialId):
    """Process identifier."""

    @classmethod
    def new(cls) -> ProcId:
        """Return the next unused process id."""
        return cls._next()


class ThreadId(_SequentialId):
    """Thread identifier."""

    @classmethod
    def new(cls) -> ThreadId:
        """Return the next unused thread id."""
        return cls._next()


class CoroId(_SequentialId):
    """Coroutine identifier."""

    @classmethod
    def new(cls) -> CoroId:
        """Return the next unused coroutine id."""
        return cls._next()