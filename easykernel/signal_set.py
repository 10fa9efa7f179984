"""A 64-bit set of signal numbers."""

from __future__ import annotations

_WIDTH = 64
_MASK = (1 << _WIDTH) - 1


def _check_bit(kth: int) -> None:
    if not 0 <= kth < _WIDTH:
        raise ValueError(f"bit {kth} is outside 0..{_WIDTH}")


def _trailing_zeros(value: int) -> int:
    value &= _MASK
    if value == 0:
        return _WIDTH
    return (value & -value).bit_length() - 1


class SignalSet:
    """A set of bits, one per signal number, held in a 64-bit word."""

    def __init__(self, value: int = 0) -> None:
        self.value = value & _MASK

    def __int__(self) -> int:
        return self.value

    def __eq__(self, other: object) -> bool:
        if isinstance(other, SignalSet):
            return self.value == other.value
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.value)

    def __repr__(self) -> str:
        return f"SignalSet({self.value:#x})"

    def __contains__(self, kth: int) -> bool:
        return self.contains(kth)

    def copy(self) -> SignalSet:
        return SignalSet(self.value)

    def reset(self, value: int) -> None:
        """Overwrite the whole set."""
        self.value = value & _MASK

    def clear(self) -> None:
        self.value = 0

    def contains(self, kth: int) -> bool:
        _check_bit(kth)
        return bool((self.value >> kth) & 1)

    def add(self, kth: int) -> None:
        _check_bit(kth)
        self.value |= 1 << kth

    def remove(self, kth: int) -> None:
        _check_bit(kth)
        self.value &= ~(1 << kth) & _MASK

    def union(self, other: SignalSet) -> None:
        """Add every bit of ``other``, in place."""
        self.value |= other.value

    def difference(self, other: SignalSet) -> None:
        """Remove every bit of ``other``, in place."""
        self.value &= ~other.value & _MASK

    def replace(self, other: SignalSet) -> int:
        """Take the value of ``other`` and return the previous value."""
        old = self.value
        self.value = other.value
        return old

    def trailing_zeros(self) -> int:
        """Number of clear low bits; 64 for an empty set."""
        return _trailing_zeros(self.value)

    def find_first_one(self, mask: SignalSet) -> int | None:
        """Lowest set bit that is not in ``mask``, or None."""
        position = _trailing_zeros(self.value & ~mask.value)
        return None if position == _WIDTH else position