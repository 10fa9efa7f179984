import pytest

from easykernel.block_cache import get_block_cache
from easykernel.block_device import BLOCK_SZ, MemoryBlockDevice
from easykernel.efs import EasyFileSystem
from easykernel.layout import DiskInode, SuperBlock

TOTAL_BLOCKS = 2048


@pytest.fixture
def device():
    return MemoryBlockDevice(TOTAL_BLOCKS)


@pytest.fixture
def fs(device):
    return EasyFileSystem.create(device, TOTAL_BLOCKS, 1)


def test_super_block_written(fs, device):
    sb = SuperBlock.from_bytes(device.read_block(0))
    assert sb.is_valid()
    assert sb.total_blocks == TOTAL_BLOCKS
    assert sb.inode_bitmap_blocks == 1
    parts = (
        1
        + sb.inode_bitmap_blocks
        + sb.inode_area_blocks
        + sb.data_bitmap_blocks
        + sb.data_area_blocks
    )
    assert parts == TOTAL_BLOCKS


def test_open_reproduces_layout(fs, device):
    opened = EasyFileSystem.open(device)
    assert opened.inode_area_start_block == fs.inode_area_start_block
    assert opened.data_area_start_block == fs.data_area_start_block
    assert opened.data_bitmap.start_block_id == fs.data_bitmap.start_block_id
    assert opened.inode_bitmap.maximum() == fs.inode_bitmap.maximum()


def test_open_blank_device_raises():
    with pytest.raises(ValueError):
        EasyFileSystem.open(MemoryBlockDevice(4))


def test_too_few_blocks_raises():
    with pytest.raises(ValueError):
        EasyFileSystem.create(MemoryBlockDevice(64), 64, 1)


def test_inode_positions(fs):
    start = fs.inode_area_start_block
    assert fs.get_disk_inode_pos(0) == (start, 0)
    assert fs.get_disk_inode_pos(1) == (start, DiskInode.SIZE)
    per_block = BLOCK_SZ // DiskInode.SIZE
    assert fs.get_disk_inode_pos(per_block) == (start + 1, 0)


def test_root_is_first_inode(fs):
    assert fs.alloc_inode() == 1


def test_root_is_empty_directory(fs):
    assert fs.root_inode().readdir() == []


def test_data_block_ids(fs):
    assert fs.get_data_block_id(0) == fs.data_area_start_block
    first = fs.alloc_data()
    assert first == fs.data_area_start_block
    assert fs.alloc_data() == first + 1


def test_dealloc_data_zeroes_and_frees(fs, device):
    block = fs.alloc_data()
    with get_block_cache(block, device) as cache:
        cache.write(0, b"\xff" * BLOCK_SZ)
    fs.dealloc_data(block)
    with get_block_cache(block, device) as cache:
        assert cache.read(0, BLOCK_SZ) == bytes(BLOCK_SZ)
    assert fs.alloc_data() == block


def test_double_dealloc_raises(fs):
    block = fs.alloc_data()
    fs.dealloc_data(block)
    with pytest.raises(ValueError):
        fs.dealloc_data(block)