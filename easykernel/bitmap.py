"""Allocation bitmaps stored in consecutive device blocks."""

from __future__ import annotations

import struct

from .block_cache import get_block_cache
from .block_device import BLOCK_SZ, BlockDevice

BLOCK_BITS = BLOCK_SZ * 8
"""Number of bits held by one bitmap block."""

_WORDS_PER_BLOCK = BLOCK_SZ // 8
_FULL_WORD = (1 << 64) - 1
_U64 = struct.Struct("<Q")
_BLOCK_WORDS = struct.Struct(f"<{_WORDS_PER_BLOCK}Q")


def decomposition(bit: int) -> tuple[int, int, int]:
    """Split a bit index into (block position, 64-bit word position, bit in word)."""
    block_pos, bit = divmod(bit, BLOCK_BITS)
    word_pos, inner_pos = divmod(bit, 64)
    return block_pos, word_pos, inner_pos


def _trailing_ones(word: int) -> int:
    return (~word & (word + 1)).bit_length() - 1


class Bitmap:
    """A bitmap spanning ``blocks`` blocks starting at ``start_block_id``."""

    def __init__(self, start_block_id: int, blocks: int) -> None:
        self.start_block_id = start_block_id
        self.blocks = blocks

    def alloc(self, block_device: BlockDevice) -> int | None:
        """Set the lowest clear bit and return its index, or None when full."""
        for block_id in range(self.blocks):
            with get_block_cache(self.start_block_id + block_id, block_device) as cache:
                words = _BLOCK_WORDS.unpack(cache.read(0, BLOCK_SZ))
                for word_pos, word in enumerate(words):
                    if word != _FULL_WORD:
                        inner_pos = _trailing_ones(word)
                        cache.write(word_pos * 8, _U64.pack(word | (1 << inner_pos)))
                        return block_id * BLOCK_BITS + word_pos * 64 + inner_pos
        return None

    def dealloc(self, block_device: BlockDevice, bit: int) -> None:
        """Clear a bit that is currently set."""
        if not 0 <= bit < self.maximum():
            raise ValueError(f"bit {bit} is outside the bitmap")
        block_pos, word_pos, inner_pos = decomposition(bit)
        with get_block_cache(self.start_block_id + block_pos, block_device) as cache:
            (word,) = _U64.unpack(cache.read(word_pos * 8, 8))
            mask = 1 << inner_pos
            if not word & mask:
                raise ValueError(f"bit {bit} is not allocated")
            cache.write(word_pos * 8, _U64.pack(word & ~mask))

    def maximum(self) -> int:
        """Total number of bits the bitmap can hand out."""
        return self.blocks * BLOCK_BITS