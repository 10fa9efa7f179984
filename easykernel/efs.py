"""The easy file system: on-disk layout management over a block device."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field

from .bitmap import Bitmap
from .block_cache import block_cache_sync_all, get_block_cache
from .block_device import BLOCK_SZ, BlockDevice
from .layout import DiskInode, DiskInodeType, SuperBlock
from .vfs import Inode


@dataclass
class EasyFileSystem:
    """A file system laid out as super block, inode bitmap and area, data bitmap and area."""

    block_device: BlockDevice
    inode_bitmap: Bitmap
    data_bitmap: Bitmap
    inode_area_start_block: int
    data_area_start_block: int
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)

    @classmethod
    def create(
        cls, block_device: BlockDevice, total_blocks: int, inode_bitmap_blocks: int
    ) -> EasyFileSystem:
        """Format ``block_device`` and return the new file system with an empty root."""
        inode_bitmap = Bitmap(1, inode_bitmap_blocks)
        inode_num = inode_bitmap.maximum()
        inode_area_blocks = (inode_num * DiskInode.SIZE + BLOCK_SZ - 1) // BLOCK_SZ
        inode_total_blocks = inode_bitmap_blocks + inode_area_blocks
        data_total_blocks = total_blocks - 1 - inode_total_blocks
        if data_total_blocks < 0:
            raise ValueError("too few blocks for the requested inode area")
        data_bitmap_blocks = (data_total_blocks + 4096) // 4097
        data_area_blocks = data_total_blocks - data_bitmap_blocks
        efs = cls(
            block_device=block_device,
            inode_bitmap=inode_bitmap,
            data_bitmap=Bitmap(1 + inode_total_blocks, data_bitmap_blocks),
            inode_area_start_block=1 + inode_bitmap_blocks,
            data_area_start_block=1 + inode_total_blocks + data_bitmap_blocks,
        )
        zero_block = bytes(BLOCK_SZ)
        for block_id in range(total_blocks):
            with get_block_cache(block_id, block_device) as cache:
                cache.write(0, zero_block)
        super_block = SuperBlock.initialize(
            total_blocks,
            inode_bitmap_blocks,
            inode_area_blocks,
            data_bitmap_blocks,
            data_area_blocks,
        )
        with get_block_cache(0, block_device) as cache:
            cache.write(0, super_block.to_bytes())
        if efs.alloc_inode() != 0:
            raise RuntimeError("root inode was not allocated first")
        root_block, root_offset = efs.get_disk_inode_pos(0)
        with get_block_cache(root_block, block_device) as cache:
            cache.write(root_offset, DiskInode(type_=DiskInodeType.DIRECTORY).to_bytes())
        block_cache_sync_all()
        return efs

    @classmethod
    def open(cls, block_device: BlockDevice) -> EasyFileSystem:
        """Load an existing file system from ``block_device``."""
        with get_block_cache(0, block_device) as cache:
            super_block = SuperBlock.from_bytes(cache.read(0, SuperBlock.SIZE))
        if not super_block.is_valid():
            raise ValueError("Error loading EFS!")
        inode_total_blocks = super_block.inode_bitmap_blocks + super_block.inode_area_blocks
        return cls(
            block_device=block_device,
            inode_bitmap=Bitmap(1, super_block.inode_bitmap_blocks),
            data_bitmap=Bitmap(1 + inode_total_blocks, super_block.data_bitmap_blocks),
            inode_area_start_block=1 + super_block.inode_bitmap_blocks,
            data_area_start_block=1 + inode_total_blocks + super_block.data_bitmap_blocks,
        )

    def root_inode(self) -> Inode:
        """The root directory."""
        with self.lock:
            block_id, block_offset = self.get_disk_inode_pos(0)
        return Inode(block_id, block_offset, self, self.block_device)

    def get_disk_inode_pos(self, inode_id: int) -> tuple[int, int]:
        """Block id and byte offset of inode ``inode_id``."""
        inodes_per_block = BLOCK_SZ // DiskInode.SIZE
        block_index, slot = divmod(inode_id, inodes_per_block)
        return self.inode_area_start_block + block_index, slot * DiskInode.SIZE

    def get_data_block_id(self, data_block_id: int) -> int:
        """Device block id of the ``data_block_id``-th data block."""
        return self.data_area_start_block + data_block_id

    def alloc_inode(self) -> int:
        """Allocate an inode number."""
        inode_id = self.inode_bitmap.alloc(self.block_device)
        if inode_id is None:
            raise RuntimeError("no free inode left")
        return inode_id

    def alloc_data(self) -> int:
        """Allocate a data block and return its device block id."""
        bit = self.data_bitmap.alloc(self.block_device)
        if bit is None:
            raise RuntimeError("no free data block left")
        return bit + self.data_area_start_block

    def dealloc_data(self, block_id: int) -> None:
        """Zero a data block and return it to the free pool."""
        with get_block_cache(block_id, self.block_device) as cache:
            cache.write(0, bytes(BLOCK_SZ))
        self.data_bitmap.dealloc(self.block_device, block_id - self.data_area_start_block)