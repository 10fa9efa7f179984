# easykernel

Building blocks of a small teaching kernel, as plain Python objects that you
can drive and inspect from tests or an interactive session. The package has no
dependencies outside the standard library.

## What is inside

- **File system**
  - `easykernel.block_device`: the abstract `BlockDevice`, which works in
    blocks of `BLOCK_SZ` (512) bytes, and `MemoryBlockDevice`, a zero-filled
    device kept in memory.
  - `easykernel.block_cache`: `BlockCache`, `BlockCacheManager`,
    `get_block_cache` and `block_cache_sync_all`. A global manager keeps up to
    16 blocks in memory and writes dirty blocks back when they are synced or
    evicted.
  - `easykernel.layout`: the on-disk structures `SuperBlock`, `DiskInode`
    (direct, indirect and double-indirect blocks), `DiskInodeType` and
    `DirEntry`, each with `to_bytes` / `from_bytes`.
  - `easykernel.bitmap`: `Bitmap` allocation over device blocks.
  - `easykernel.efs`: `EasyFileSystem.create` formats a device and
    `EasyFileSystem.open` loads one again.
  - `easykernel.vfs`: `Inode`, with `find`, `create`, `readdir`, `read_at`,
    `write_at` and `clear` on a flat root directory.
  - `easykernel.file`: `OpenFlags`, `UserBuffer`, `FileHandle` and the
    abstract `FSManager` interface.
- **Signals**
  - `easykernel.signals`: `SignalNo`, `SignalAction`, `SignalOutcome`,
    `SignalResult` and `DefaultAction`.
  - `easykernel.signal_set`: `SignalSet`, a 64-bit set of signal numbers.
  - `easykernel.context`: `LocalContext`, a saved register context (x1..x31,
    pc, privilege and interrupt setting), and `build_sstatus`.
  - `easykernel.signal_impl`: the abstract `Signal` interface and
    `SignalImpl`, per-process signal state with masks, user handlers,
    stop/continue and `sig_return`.
- **Tasks**
  - `easykernel.ids`: `ProcId`, `ThreadId` and `CoroId`, each with its own
    increasing `new()` sequence.
  - `easykernel.relations`: `ProcRel` and `ProcThreadRel`, the parent/child
    and process/thread relations behind `wait`.
  - `easykernel.managers`: the abstract `Manage` and `Schedule` interfaces and
    the `PManager` / `PThreadManager` task managers built on them.
- **Synchronisation**
  - `easykernel.interrupts`: `IntrMaskingInfo` and `UPIntrFreeCell`.
  - `easykernel.sync`: `MutexBlocking`, `Semaphore` and `Condvar`. They never
    block by themselves: they return whether the caller must block and which
    thread to wake.
- **Syscall types** (`easykernel.syscall_types`): `SyscallId`, `ClockId`,
  `TimeSpec` and the `STDIN` / `STDOUT` / `STDDEBUG` descriptor numbers.

## Installing

```
pip install .
```

Run the tests with:

```
pip install ".[test]"
pytest
```

## A file system in memory

```python
from easykernel.block_device import MemoryBlockDevice
from easykernel.efs import EasyFileSystem

device = MemoryBlockDevice(4096)
fs = EasyFileSystem.create(device, 4096, 1)
root = fs.root_inode()

hello = root.create("hello")
hello.write_at(0, b"Hello, world!")
print(root.readdir())                        # ['hello']
print(root.find("hello").read_at(0, 100))    # b'Hello, world!'
```

A device formatted this way can be loaded again with
`EasyFileSystem.open(device)`. `Inode.create` does not check for an existing
name; call `find` first.

## Signals

```python
from easykernel.context import LocalContext
from easykernel.signal_impl import SignalImpl
from easykernel.signals import SignalAction, SignalNo

signals = SignalImpl()
signals.set_action(SignalNo.SIGUSR1, SignalAction(handler=0x1000, mask=0))
signals.add_signal(SignalNo.SIGUSR1)

ctx = LocalContext.user(0x2000)
result = signals.handle_signals(ctx)   # outcome HANDLED: pc is now 0x1000, a0 holds 10
signals.sig_return(ctx)                # True: ctx is back at 0x2000
```

`SIGKILL` and `SIGSTOP` cannot be caught: `set_action` returns `False` for
them and `get_action` returns `None`. A signal without a handler follows its
`DefaultAction`: `SIGCHLD` and `SIGURG` are ignored, every other signal kills
the process with the negated signal number as exit code.

## Synchronisation

```python
from easykernel.ids import ThreadId
from easykernel.sync import MutexBlocking, Semaphore

mutex = MutexBlocking()
mutex.lock(ThreadId(1))    # True: thread 1 holds the lock
mutex.lock(ThreadId(2))    # False: thread 2 must be blocked
mutex.unlock()             # ThreadId(2): the lock passes to thread 2

sem = Semaphore(0)
sem.down(ThreadId(3))      # False: thread 3 must be blocked
sem.up()                   # ThreadId(3): wake thread 3
```

## Times

```python
from easykernel.syscall_types import TimeSpec

print(TimeSpec.from_millisecond(1500))   # TimeSpec(1.500000000)
```

## What it does not do

- There is no command to run and no kernel to boot: the package is a library
  of parts. Nothing here switches real register state or runs user programs;
  `LocalContext` only holds values.
- The only block device provided is `MemoryBlockDevice`. To keep a file system
  in a file, subclass `BlockDevice` yourself.
- `FSManager`, `Manage` and `Schedule` are interfaces only; the package has no
  path-level file-system manager, no storage for task objects and no ready
  queue of its own. `PManager` and `PThreadManager` need them supplied through
  `set_manager` / `set_proc_manager`.
- There is no system-call dispatch: `easykernel.syscall_types` gives only the
  types such an interface uses.