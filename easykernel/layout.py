"""On-disk structures of the file system: super block, inodes, directory entries."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Iterable

from .block_cache import BlockCache, get_block_cache
from .block_device import BLOCK_SZ, BlockDevice

EFS_MAGIC = 0x3B800001
INODE_DIRECT_COUNT = 28
NAME_LENGTH_LIMIT = 27
INODE_INDIRECT1_COUNT = BLOCK_SZ // 4
INODE_INDIRECT2_COUNT = INODE_INDIRECT1_COUNT * INODE_INDIRECT1_COUNT
DIRECT_BOUND = INODE_DIRECT_COUNT
INDIRECT1_BOUND = DIRECT_BOUND + INODE_INDIRECT1_COUNT
INDIRECT2_BOUND = INDIRECT1_BOUND + INODE_INDIRECT2_COUNT
DIRENT_SZ = 32

_U32 = struct.Struct("<I")
_SUPER_FORMAT = struct.Struct("<6I")
_INODE_FORMAT = struct.Struct(f"<I{INODE_DIRECT_COUNT}IIIB3x")


def _get_entry(cache: BlockCache, index: int) -> int:
    return _U32.unpack(cache.read(index * 4, 4))[0]


def _set_entry(cache: BlockCache, index: int, value: int) -> None:
    cache.write(index * 4, _U32.pack(value))


def _entries(cache: BlockCache, count: int) -> tuple[int, ...]:
    return struct.unpack(f"<{count}I", cache.read(0, count * 4))


@dataclass
class SuperBlock:
    """The first block of the file system, describing its areas."""

    magic: int = field(repr=False)
    total_blocks: int
    inode_bitmap_blocks: int
    inode_area_blocks: int
    data_bitmap_blocks: int
    data_area_blocks: int

    SIZE: ClassVar[int] = _SUPER_FORMAT.size

    @classmethod
    def initialize(
        cls,
        total_blocks: int,
        inode_bitmap_blocks: int,
        inode_area_blocks: int,
        data_bitmap_blocks: int,
        data_area_blocks: int,
    ) -> SuperBlock:
        """Build a valid super block carrying the file-system magic."""
        return cls(
            EFS_MAGIC,
            total_blocks,
            inode_bitmap_blocks,
            inode_area_blocks,
            data_bitmap_blocks,
            data_area_blocks,
        )

    def is_valid(self) -> bool:
        return self.magic == EFS_MAGIC

    def to_bytes(self) -> bytes:
        return _SUPER_FORMAT.pack(
            self.magic,
            self.total_blocks,
            self.inode_bitmap_blocks,
            self.inode_area_blocks,
            self.data_bitmap_blocks,
            self.data_area_blocks,
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> SuperBlock:
        if len(data) < cls.SIZE:
            raise ValueError(f"super block needs {cls.SIZE} bytes, got {len(data)}")
        return cls(*_SUPER_FORMAT.unpack_from(data))


class DiskInodeType(Enum):
    FILE = 0
    DIRECTORY = 1


@dataclass
class DiskInode:
    """An inode as stored on disk, indexing data blocks directly and indirectly."""

    size: int = 0
    direct: list[int] = field(default_factory=lambda: [0] * INODE_DIRECT_COUNT)
    indirect1: int = 0
    indirect2: int = 0
    type_: DiskInodeType = DiskInodeType.FILE

    SIZE: ClassVar[int] = _INODE_FORMAT.size

    def initialize(self, type_: DiskInodeType) -> None:
        """Reset to an empty inode of the given type."""
        self.size = 0
        self.direct = [0] * INODE_DIRECT_COUNT
        self.indirect1 = 0
        self.indirect2 = 0
        self.type_ = type_

    def is_dir(self) -> bool:
        return self.type_ is DiskInodeType.DIRECTORY

    def is_file(self) -> bool:
        return self.type_ is DiskInodeType.FILE

    def data_blocks(self) -> int:
        """Number of data blocks covering the current size."""
        return self._data_blocks(self.size)

    @staticmethod
    def _data_blocks(size: int) -> int:
        return (size + BLOCK_SZ - 1) // BLOCK_SZ

    @staticmethod
    def total_blocks(size: int) -> int:
        """Blocks needed for ``size`` bytes, index blocks included."""
        data_blocks = DiskInode._data_blocks(size)
        total = data_blocks
        if data_blocks > INODE_DIRECT_COUNT:
            total += 1
        if data_blocks > INDIRECT1_BOUND:
            total += 1
            total += (
                data_blocks - INDIRECT1_BOUND + INODE_INDIRECT1_COUNT - 1
            ) // INODE_INDIRECT1_COUNT
        return total

    def blocks_num_needed(self, new_size: int) -> int:
        """Blocks that must be allocated to grow to ``new_size``."""
        if new_size < self.size:
            raise ValueError("new size is smaller than the current size")
        return self.total_blocks(new_size) - self.total_blocks(self.size)

    def get_block_id(self, inner_id: int, block_device: BlockDevice) -> int:
        """Device block holding the ``inner_id``-th data block of this inode."""
        if inner_id < INODE_DIRECT_COUNT:
            return self.direct[inner_id]
        if inner_id < INDIRECT1_BOUND:
            with get_block_cache(self.indirect1, block_device) as cache:
                return _get_entry(cache, inner_id - INODE_DIRECT_COUNT)
        last = inner_id - INDIRECT1_BOUND
        with get_block_cache(self.indirect2, block_device) as cache:
            indirect1 = _get_entry(cache, last // INODE_INDIRECT1_COUNT)
        with get_block_cache(indirect1, block_device) as cache:
            return _get_entry(cache, last % INODE_INDIRECT1_COUNT)

    def increase_size(
        self, new_size: int, new_blocks: Iterable[int], block_device: BlockDevice
    ) -> None:
        """Grow to ``new_size``, placing the freshly allocated ``new_blocks``."""
        if new_size < self.size:
            raise ValueError("new size is smaller than the current size")
        supply = iter(new_blocks)

        def take() -> int:
            try:
                return next(supply)
            except StopIteration:
                raise ValueError("not enough new blocks supplied") from None

        current = self.data_blocks()
        self.size = new_size
        total = self.data_blocks()
        while current < min(total, INODE_DIRECT_COUNT):
            self.direct[current] = take()
            current += 1
        if total <= INODE_DIRECT_COUNT:
            return
        if current == INODE_DIRECT_COUNT:
            self.indirect1 = take()
        current -= INODE_DIRECT_COUNT
        total -= INODE_DIRECT_COUNT
        with get_block_cache(self.indirect1, block_device) as cache:
            while current < min(total, INODE_INDIRECT1_COUNT):
                _set_entry(cache, current, take())
                current += 1
        if total <= INODE_INDIRECT1_COUNT:
            return
        if current == INODE_INDIRECT1_COUNT:
            self.indirect2 = take()
        current -= INODE_INDIRECT1_COUNT
        total -= INODE_INDIRECT1_COUNT
        a0, b0 = divmod(current, INODE_INDIRECT1_COUNT)
        a1, b1 = divmod(total, INODE_INDIRECT1_COUNT)
        with get_block_cache(self.indirect2, block_device) as indirect2:
            while (a0, b0) < (a1, b1):
                if b0 == 0:
                    _set_entry(indirect2, a0, take())
                with get_block_cache(_get_entry(indirect2, a0), block_device) as indirect1:
                    _set_entry(indirect1, b0, take())
                b0 += 1
                if b0 == INODE_INDIRECT1_COUNT:
                    b0 = 0
                    a0 += 1

    def clear_size(self, block_device: BlockDevice) -> list[int]:
        """Shrink to zero and return every block to be deallocated."""
        blocks: list[int] = []
        data_blocks = self.data_blocks()
        self.size = 0
        direct = min(data_blocks, INODE_DIRECT_COUNT)
        blocks.extend(self.direct[:direct])
        self.direct[:direct] = [0] * direct
        if data_blocks <= INODE_DIRECT_COUNT:
            return blocks
        blocks.append(self.indirect1)
        data_blocks -= INODE_DIRECT_COUNT
        with get_block_cache(self.indirect1, block_device) as cache:
            blocks.extend(_entries(cache, min(data_blocks, INODE_INDIRECT1_COUNT)))
        self.indirect1 = 0
        if data_blocks <= INODE_INDIRECT1_COUNT:
            return blocks
        blocks.append(self.indirect2)
        data_blocks -= INODE_INDIRECT1_COUNT
        if data_blocks > INODE_INDIRECT2_COUNT:
            raise ValueError("inode is larger than the double-indirect limit")
        a1, b1 = divmod(data_blocks, INODE_INDIRECT1_COUNT)
        with get_block_cache(self.indirect2, block_device) as indirect2:
            for entry in _entries(indirect2, a1):
                blocks.append(entry)
                with get_block_cache(entry, block_device) as indirect1:
                    blocks.extend(_entries(indirect1, INODE_INDIRECT1_COUNT))
            if b1 > 0:
                entry = _get_entry(indirect2, a1)
                blocks.append(entry)
                with get_block_cache(entry, block_device) as indirect1:
                    blocks.extend(_entries(indirect1, b1))
        self.indirect2 = 0
        return blocks

    def read_at(self, offset: int, length: int, block_device: BlockDevice) -> bytes:
        """Read up to ``length`` bytes from ``offset``, stopping at the end of data."""
        if offset < 0 or length < 0:
            raise ValueError("offset and length must not be negative")
        start = offset
        end = min(offset + length, self.size)
        chunks: list[bytes] = []
        while start < end:
            block_end = min((start // BLOCK_SZ + 1) * BLOCK_SZ, end)
            block_id = self.get_block_id(start // BLOCK_SZ, block_device)
            with get_block_cache(block_id, block_device) as cache:
                chunks.append(cache.read(start % BLOCK_SZ, block_end - start))
            start = block_end
        return b"".join(chunks)

    def write_at(self, offset: int, data: bytes, block_device: BlockDevice) -> int:
        """Write ``data`` at ``offset`` within the current size; return bytes written."""
        start = offset
        end = min(offset + len(data), self.size)
        if start < 0 or start > end:
            raise ValueError("write offset lies beyond the inode size")
        view = memoryview(data)
        written = 0
        while start < end:
            block_end = min((start // BLOCK_SZ + 1) * BLOCK_SZ, end)
            chunk = block_end - start
            block_id = self.get_block_id(start // BLOCK_SZ, block_device)
            with get_block_cache(block_id, block_device) as cache:
                cache.write(start % BLOCK_SZ, bytes(view[written : written + chunk]))
            written += chunk
            start = block_end
        return written

    def to_bytes(self) -> bytes:
        return _INODE_FORMAT.pack(
            self.size, *self.direct, self.indirect1, self.indirect2, self.type_.value
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> DiskInode:
        if len(data) < cls.SIZE:
            raise ValueError(f"disk inode needs {cls.SIZE} bytes, got {len(data)}")
        fields = _INODE_FORMAT.unpack_from(data)
        size = fields[0]
        direct = list(fields[1 : 1 + INODE_DIRECT_COUNT])
        indirect1, indirect2, type_value = fields[1 + INODE_DIRECT_COUNT :]
        return cls(size, direct, indirect1, indirect2, DiskInodeType(type_value))


@dataclass
class DirEntry:
    """A directory entry: a name and the inode it refers to."""

    name: str = ""
    inode_number: int = 0

    def __post_init__(self) -> None:
        encoded = self.name.encode("utf-8")
        if len(encoded) > NAME_LENGTH_LIMIT:
            raise ValueError(f"name longer than {NAME_LENGTH_LIMIT} bytes")
        if b"\0" in encoded:
            raise ValueError("name must not contain NUL")

    def to_bytes(self) -> bytes:
        name = self.name.encode("utf-8").ljust(NAME_LENGTH_LIMIT + 1, b"\0")
        return name + _U32.pack(self.inode_number)

    @classmethod
    def from_bytes(cls, data: bytes) -> DirEntry:
        if len(data) < DIRENT_SZ:
            raise ValueError(f"directory entry needs {DIRENT_SZ} bytes, got {len(data)}")
        raw = bytes(data[: NAME_LENGTH_LIMIT + 1])
        end = raw.find(b"\0")
        if end < 0:
            raise ValueError("directory entry name is not terminated")
        (inode_number,) = _U32.unpack_from(data, NAME_LENGTH_LIMIT + 1)
        return cls(raw[:end].decode("utf-8"), inode_number)