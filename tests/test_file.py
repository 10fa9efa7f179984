import pytest

from easykernel.block_device import MemoryBlockDevice
from easykernel.efs import EasyFileSystem
from easykernel.file import FileHandle, FSManager, OpenFlags, UserBuffer

TOTAL_BLOCKS = 2048


@pytest.fixture
def inode():
    device = MemoryBlockDevice(TOTAL_BLOCKS)
    fs = EasyFileSystem.create(device, TOTAL_BLOCKS, 1)
    return fs.root_inode().create("filea")


def test_read_write_flags():
    assert OpenFlags.RDONLY.read_write() == (True, False)
    assert OpenFlags.WRONLY.read_write() == (False, True)
    assert OpenFlags.RDWR.read_write() == (True, True)


def test_extra_flags_follow_access_mode():
    assert (OpenFlags.CREATE | OpenFlags.WRONLY).read_write() == OpenFlags.WRONLY.read_write()
    assert (OpenFlags.CREATE | OpenFlags.RDWR).read_write() == OpenFlags.RDWR.read_write()
    assert (OpenFlags.TRUNC | OpenFlags.WRONLY | OpenFlags.RDWR).read_write() == (
        OpenFlags.WRONLY.read_write()
    )


def test_user_buffer_length():
    assert len(UserBuffer([bytearray(3), bytearray(5)])) == 8
    assert len(UserBuffer([])) == 0


def test_handle_rights(inode):
    handle = FileHandle(True, False, inode)
    assert handle.readable() is True
    assert handle.writable() is False
    assert handle.offset == 0


def test_write_then_read(inode):
    writer = FileHandle(False, True, inode)
    assert writer.write(UserBuffer([bytearray(b"Hello, "), bytearray(b"world!")])) == 13
    assert writer.offset == 13
    reader = FileHandle(True, False, inode)
    first, second = bytearray(4), bytearray(100)
    assert reader.read(UserBuffer([first, second])) == 13
    assert bytes(first) + bytes(second[:9]) == b"Hello, world!"
    assert reader.offset == 13


def test_read_at_end_returns_zero(inode):
    handle = FileHandle(True, True, inode)
    handle.write(UserBuffer([bytearray(b"abc")]))
    assert handle.read(UserBuffer([bytearray(10)])) == 0


def test_empty_handle_raises():
    handle = FileHandle.empty(True, True)
    with pytest.raises(OSError):
        handle.read(UserBuffer([bytearray(4)]))
    with pytest.raises(OSError):
        handle.write(UserBuffer([bytearray(b"x")]))


def test_fs_manager_is_abstract():
    with pytest.raises(TypeError):
        FSManager()