"""Open files, open flags and the file-system manager interface."""

from __future__ import annotations

import errno
from abc import ABC, abstractmethod
from enum import IntFlag
from typing import MutableSequence

from .vfs import Inode


class UserBuffer:
    """A list of writable byte regions handed over by a user program."""

    def __init__(self, buffers: list[MutableSequence[int]]) -> None:
        self.buffers = list(buffers)

    def __len__(self) -> int:
        return sum(len(buffer) for buffer in self.buffers)


class OpenFlags(IntFlag):
    """Flags given when opening a file."""

    RDONLY = 0
    WRONLY = 1 << 0
    RDWR = 1 << 1
    CREATE = 1 << 9
    TRUNC = 1 << 10

    def read_write(self) -> tuple[bool, bool]:
        """Return (readable, writable) without checking validity."""
        if self == 0:
            return True, False
        if self & OpenFlags.WRONLY:
            return False, True
        return True, True


class FileHandle:
    """An open file: an inode, access rights and a current offset."""

    def __init__(self, read: bool, write: bool, inode: Inode | None) -> None:
        self.inode = inode
        self._readable = read
        self._writable = write
        self.offset = 0

    @classmethod
    def empty(cls, read: bool, write: bool) -> FileHandle:
        """A handle not backed by any inode."""
        return cls(read, write, None)

    def readable(self) -> bool:
        return self._readable

    def writable(self) -> bool:
        return self._writable

    def _require_inode(self) -> Inode:
        if self.inode is None:
            raise OSError(errno.EBADF, "file handle has no inode")
        return self.inode

    def read(self, buf: UserBuffer) -> int:
        """Fill the buffers from the current offset; return the bytes read."""
        inode = self._require_inode()
        total = 0
        for region in buf.buffers:
            data = inode.read_at(self.offset, len(region))
            if not data:
                break
            region[: len(data)] = data
            self.offset += len(data)
            total += len(data)
        return total

    def write(self, buf: UserBuffer) -> int:
        """Write every buffer at the current offset; return the bytes written."""
        inode = self._require_inode()
        total = 0
        for region in buf.buffers:
            written = inode.write_at(self.offset, bytes(region))
            if written != len(region):
                raise OSError(errno.EIO, "short write")
            self.offset += written
            total += written
        return total


class FSManager(ABC):
    """Path-level file-system operations offered to the kernel."""

    @abstractmethod
    def open(self, path: str, flags: OpenFlags) -> FileHandle | None:
        """Open ``path`` with ``flags``; None when it cannot be opened."""

    @abstractmethod
    def find(self, path: str) -> Inode | None:
        """Look up the inode at ``path``."""

    @abstractmethod
    def link(self, src: str, dst: str) -> int:
        """Create a hard link ``dst`` to ``src``."""

    @abstractmethod
    def unlink(self, path: str) -> int:
        """Remove the hard link ``path``."""

    @abstractmethod
    def readdir(self, path: str) -> list[str] | None:
        """Names of the entries in the directory ``path``."""