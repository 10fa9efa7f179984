"""Blocking mutex, semaphore and condition variable working on thread ids.

None of these block by themselves: they report whether the caller must be
blocked and which thread should be woken, leaving that to the scheduler.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, field

from .ids import ThreadId
from .interrupts import UPIntrFreeCell


class Mutex(ABC):
    """A lock that queues the threads it refuses."""

    @abstractmethod
    def lock(self, tid: ThreadId) -> bool:
        """Try to take the lock for ``tid``; False means ``tid`` must block."""

    @abstractmethod
    def unlock(self) -> ThreadId | None:
        """Release the lock; return a blocked thread that now holds it, if any."""


@dataclass
class _MutexState:
    locked: bool = False
    wait_queue: deque[ThreadId] = field(default_factory=deque)


class MutexBlocking(Mutex):
    """A mutex that hands itself directly to the first waiting thread."""

    def __init__(self) -> None:
        self._inner = UPIntrFreeCell(_MutexState())

    @property
    def locked(self) -> bool:
        return self._inner.exclusive_session(lambda state: state.locked)

    @property
    def waiting(self) -> tuple[ThreadId, ...]:
        """Threads queued on the lock, first to be woken first."""
        return self._inner.exclusive_session(lambda state: tuple(state.wait_queue))

    def lock(self, tid: ThreadId) -> bool:
        with self._inner.exclusive_access() as state:
            if state.locked:
                state.wait_queue.append(tid)
                return False
            state.locked = True
            return True

    def unlock(self) -> ThreadId | None:
        with self._inner.exclusive_access() as state:
            if not state.locked:
                raise RuntimeError("unlocking a mutex that is not locked")
            if state.wait_queue:
                return state.wait_queue.popleft()
            state.locked = False
            return None


@dataclass
class _SemaphoreState:
    count: int
    wait_queue: deque[ThreadId] = field(default_factory=deque)


class Semaphore:
    """A counting semaphore."""

    def __init__(self, res_count: int) -> None:
        if res_count < 0:
            raise ValueError("resource count must not be negative")
        self._inner = UPIntrFreeCell(_SemaphoreState(res_count))

    @property
    def count(self) -> int:
        """Available resources; negative when threads are waiting."""
        return self._inner.exclusive_session(lambda state: state.count)

    @property
    def waiting(self) -> tuple[ThreadId, ...]:
        return self._inner.exclusive_session(lambda state: tuple(state.wait_queue))

    def up(self) -> ThreadId | None:
        """Release one resource and return a blocked thread to wake, if any."""
        with self._inner.exclusive_access() as state:
            state.count += 1
            return state.wait_queue.popleft() if state.wait_queue else None

    def down(self, tid: ThreadId) -> bool:
        """Take one resource for ``tid``; False means ``tid`` must block."""
        with self._inner.exclusive_access() as state:
            state.count -= 1
            if state.count < 0:
                state.wait_queue.append(tid)
                return False
            return True


class Condvar:
    """A condition variable holding the threads that wait on it."""

    def __init__(self) -> None:
        self._inner = UPIntrFreeCell(deque())

    @property
    def waiting(self) -> tuple[ThreadId, ...]:
        return self._inner.exclusive_session(tuple)

    def signal(self) -> ThreadId | None:
        """Take one waiting thread to be woken, if any."""
        with self._inner.exclusive_access() as queue:
            return queue.popleft() if queue else None

    def wait_no_sched(self, tid: ThreadId) -> bool:
        """Queue ``tid`` on the condition variable; it must block, so False."""
        self._inner.exclusive_session(lambda queue: queue.append(tid))
        return False

    def wait_with_mutex(self, tid: ThreadId, mutex: Mutex) -> tuple[bool, ThreadId]:
        """Release ``mutex`` to a waiting thread, then let ``tid`` try to take it again.

        Returns whether ``tid`` got the mutex and the thread that was woken.
        The mutex must have a waiting thread to hand over to.
        """
        waking_tid = mutex.unlock()
        if waking_tid is None:
            raise RuntimeError("no thread was waiting on the mutex")
        return mutex.lock(tid), waking_tid