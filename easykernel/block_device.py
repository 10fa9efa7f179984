"""Block devices: storage addressed in fixed-size blocks."""

from __future__ import annotations

from abc import ABC, abstractmethod

BLOCK_SZ = 512
"""Size of one block in bytes."""


class BlockDevice(ABC):
    """Storage that reads and writes whole blocks of ``BLOCK_SZ`` bytes."""

    @abstractmethod
    def read_block(self, block_id: int) -> bytes:
        """Return the ``BLOCK_SZ`` bytes stored in block ``block_id``."""

    @abstractmethod
    def write_block(self, block_id: int, data: bytes) -> None:
        """Store ``data`` (exactly ``BLOCK_SZ`` bytes) in block ``block_id``."""


class MemoryBlockDevice(BlockDevice):
    """A block device kept entirely in memory, initially zero-filled."""

    def __init__(self, block_count: int) -> None:
        if block_count < 0:
            raise ValueError("block count must not be negative")
        self.block_count = block_count
        self._storage = bytearray(block_count * BLOCK_SZ)

    def _span(self, block_id: int) -> slice:
        if not 0 <= block_id < self.block_count:
            raise IndexError(f"block {block_id} out of range 0..{self.block_count}")
        start = block_id * BLOCK_SZ
        return slice(start, start + BLOCK_SZ)

    def read_block(self, block_id: int) -> bytes:
        return bytes(self._storage[self._span(block_id)])

    def write_block(self, block_id: int, data: bytes) -> None:
        span = self._span(block_id)
        if len(data) != BLOCK_SZ:
            raise ValueError(f"block data must be {BLOCK_SZ} bytes, got {len(data)}")
        self._storage[span] = data