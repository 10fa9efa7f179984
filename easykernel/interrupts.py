"""Interrupt masking and a cell that masks interrupts while it is held."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, Generic, Iterator, TypeVar

T = TypeVar("T")
V = TypeVar("V")


class IntrMaskingInfo:
    """Nested interrupt masking on a single processor.

    ``sie`` models the supervisor interrupt-enable bit. The first ``enter``
    remembers its value and clears it; the matching last ``exit`` restores it.
    """

    def __init__(self) -> None:
        self.nested_level = 0
        self.sie_before_masking = False
        self.sie = False

    def enter(self) -> None:
        """Mask interrupts, remembering the previous state on the outermost entry."""
        sie = self.sie
        self.sie = False
        if self.nested_level == 0:
            self.sie_before_masking = sie
        self.nested_level += 1

    def exit(self) -> None:
        """Leave one level of masking; re-enable interrupts when leaving the last."""
        if self.nested_level == 0:
            raise RuntimeError("interrupt masking is not active")
        self.nested_level -= 1
        if self.nested_level == 0 and self.sie_before_masking:
            self.sie = True


INTR_MASKING_INFO = IntrMaskingInfo()
"""Masking state of the processor, shared by every cell that is not given its own."""


class UPIntrFreeCell(Generic[T]):
    """A value accessed exclusively, with interrupts masked during the access."""

    def __init__(self, value: T, masking: IntrMaskingInfo | None = None) -> None:
        self._value = value
        self._masking = masking if masking is not None else INTR_MASKING_INFO
        self._borrowed = False

    @contextmanager
    def exclusive_access(self) -> Iterator[T]:
        """Hold the value; raises RuntimeError if it is already held."""
        self._masking.enter()
        try:
            if self._borrowed:
                raise RuntimeError("value is already borrowed")
            self._borrowed = True
            try:
                yield self._value
            finally:
                self._borrowed = False
        finally:
            self._masking.exit()

    def exclusive_session(self, f: Callable[[T], V]) -> V:
        """Call ``f`` on the value while holding it and return its result."""
        with self.exclusive_access() as value:
            return f(value)