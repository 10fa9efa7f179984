"""In-memory caching of device blocks with write-back on sync or eviction."""

from __future__ import annotations

import threading
from collections import deque

from .block_device import BLOCK_SZ, BlockDevice

BLOCK_CACHE_SIZE = 16
"""Number of blocks the global cache manager keeps in memory."""


class BlockCache:
    """A copy of one device block held in memory.

    Use it as a context manager to hold it exclusively; a cache held this way
    is never evicted by its manager.
    """

    def __init__(self, block_id: int, block_device: BlockDevice) -> None:
        data = block_device.read_block(block_id)
        if len(data) != BLOCK_SZ:
            raise ValueError(f"device returned {len(data)} bytes for a block")
        self.block_id = block_id
        self.block_device = block_device
        self.modified = False
        self._data = bytearray(data)
        self._lock = threading.RLock()
        self._users = 0

    @staticmethod
    def _check_range(offset: int, length: int) -> None:
        if offset < 0 or length < 0 or offset + length > BLOCK_SZ:
            raise ValueError(
                f"range {offset}..{offset + length} does not fit in a block of {BLOCK_SZ}"
            )

    @property
    def in_use(self) -> bool:
        """Whether some caller currently holds this cache."""
        return self._users > 0

    def read(self, offset: int, length: int) -> bytes:
        """Return ``length`` bytes starting at ``offset`` within the block."""
        self._check_range(offset, length)
        return bytes(self._data[offset : offset + length])

    def write(self, offset: int, data: bytes) -> None:
        """Overwrite bytes at ``offset`` and mark the block dirty."""
        self._check_range(offset, len(data))
        self.modified = True
        self._data[offset : offset + len(data)] = data

    def sync(self) -> None:
        """Write the block back to its device if it was modified."""
        if self.modified:
            self.modified = False
            self.block_device.write_block(self.block_id, bytes(self._data))

    def __enter__(self) -> BlockCache:
        self._lock.acquire()
        self._users += 1
        return self

    def __exit__(self, *args) -> None:
        self._users -= 1
        self._lock.release()


class BlockCacheManager:
    """Keeps at most ``capacity`` block caches, evicting the oldest unused one."""

    def __init__(self, capacity: int = BLOCK_CACHE_SIZE) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._queue: deque[BlockCache] = deque()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._queue)

    def get_block_cache(self, block_id: int, block_device: BlockDevice) -> BlockCache:
        """Return the cache for ``block_id`` on ``block_device``, loading it if needed."""
        with self._lock:
            for cache in self._queue:
                if cache.block_id == block_id and cache.block_device is block_device:
                    return cache
            if len(self._queue) >= self.capacity:
                victim = next((c for c in self._queue if not c.in_use), None)
                if victim is None:
                    raise RuntimeError("Run out of BlockCache!")
                self._queue.remove(victim)
                victim.sync()
            cache = BlockCache(block_id, block_device)
            self._queue.append(cache)
            return cache

    def sync_all(self) -> None:
        """Write every dirty cached block back to its device."""
        with self._lock:
            caches = list(self._queue)
        for cache in caches:
            with cache:
                cache.sync()


_MANAGER = BlockCacheManager(BLOCK_CACHE_SIZE)


def get_block_cache(block_id: int, block_device: BlockDevice) -> BlockCache:
    """Return a block cache from the global manager."""
    return _MANAGER.get_block_cache(block_id, block_device)


def block_cache_sync_all() -> None:
    """Write back every dirty block held by the global manager."""
    _MANAGER.sync_all()