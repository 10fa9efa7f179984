"""Teaching-kernel building blocks: a block file system, signals, task managers, synchronisation primitives and syscall types."""

__version__ = "0.1.0"