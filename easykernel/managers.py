"""Task managers: process and thread bookkeeping on top of a pluggable scheduler."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from .ids import USIZE_MAX, ProcId, ThreadId
from .relations import ProcRel, ProcThreadRel

T = TypeVar("T")
I = TypeVar("I")
P = TypeVar("P")

INIT_PROC = ProcId(0)
"""The process that adopts orphaned children."""

ANY_CHILD = ProcId(USIZE_MAX)
"""Process id passed to ``wait`` to wait for any child."""


def _is_any_child(pid: ProcId) -> bool:
    return pid.value & USIZE_MAX == USIZE_MAX


class Manage(ABC, Generic[T, I]):
    """Storage of task objects by identifier."""

    @abstractmethod
    def insert(self, id: I, item: T) -> None:
        """Store ``item`` under ``id``."""

    @abstractmethod
    def delete(self, id: I) -> None:
        """Remove the item stored under ``id``."""

    @abstractmethod
    def get(self, id: I) -> T | None:
        """The item stored under ``id``, or None."""


class Schedule(ABC, Generic[I]):
    """A ready queue of identifiers."""

    @abstractmethod
    def add(self, id: I) -> None:
        """Put ``id`` in the ready queue."""

    @abstractmethod
    def fetch(self) -> I | None:
        """Take the next ready identifier, or None when the queue is empty."""


def _reparent(rel_map: dict, exiting: ProcId, exit_code: int) -> None:
    rel = rel_map.pop(exiting)
    parent_rel = rel_map.get(rel.parent)
    if parent_rel is not None:
        parent_rel.del_child(exiting, exit_code)
    for child in rel.children:
        rel_map[child].parent = INIT_PROC
        rel_map[INIT_PROC].add_child(child)


class PManager(Generic[P]):
    """Schedules processes and keeps their parent/child relations."""

    def __init__(self) -> None:
        self._rel_map: dict[ProcId, ProcRel] = {}
        self._manager = None
        self._current: ProcId | None = None

    @property
    def current_id(self) -> ProcId | None:
        """Identifier of the running process, if any."""
        return self._current

    def _require_manager(self):
        if self._manager is None:
            raise RuntimeError("process manager not set")
        return self._manager

    def _require_current(self) -> ProcId:
        if self._current is None:
            raise RuntimeError("no current process")
        return self._current

    def set_manager(self, manager) -> None:
        """Use ``manager``, which must implement both Manage and Schedule."""
        self._manager = manager

    def find_next(self) -> P | None:
        """Take the next ready process and make it current."""
        manager = self._require_manager()
        pid = manager.fetch()
        if pid is None:
            return None
        task = manager.get(pid)
        if task is None:
            return None
        self._current = pid
        return task

    def make_current_suspend(self) -> None:
        """Put the current process back in the ready queue."""
        pid = self._require_current()
        self._require_manager().add(pid)
        self._current = None

    def make_current_exited(self, exit_code: int) -> None:
        """End the current process; its children are handed to process 0."""
        pid = self._require_current()
        self._require_manager().delete(pid)
        _reparent(self._rel_map, pid, exit_code)
        self._current = None

    def add(self, id: ProcId, task: P, parent: ProcId) -> None:
        """Add a ready process with the given parent."""
        manager = self._require_manager()
        manager.insert(id, task)
        manager.add(id)
        parent_rel = self._rel_map.get(parent)
        if parent_rel is not None:
            parent_rel.add_child(id)
        self._rel_map[id] = ProcRel(parent)

    def current(self) -> P | None:
        """The running process."""
        return self._require_manager().get(self._require_current())

    def get_task(self, id: ProcId) -> P | None:
        return self._require_manager().get(id)

    def wait(self, child_pid: ProcId) -> tuple[ProcId, int] | None:
        """Wait on behalf of the current process for ``child_pid`` or, with ``ANY_CHILD``, any child."""
        rel = self._rel_map[self._require_current()]
        if _is_any_child(child_pid):
            return rel.wait_any_child()
        return rel.wait_child(child_pid)


class PThreadManager(Generic[P, T]):
    """Schedules threads and keeps process, thread and parent/child relations."""

    def __init__(self) -> None:
        self._rel_map: dict[ProcId, ProcThreadRel] = {}
        self._proc_manager = None
        self._tid2pid: dict[ThreadId, ProcId] = {}
        self._manager = None
        self._current: ThreadId | None = None

    @property
    def current_id(self) -> ThreadId | None:
        """Identifier of the running thread, if any."""
        return self._current

    def _require_manager(self):
        if self._manager is None:
            raise RuntimeError("thread manager not set")
        return self._manager

    def _require_proc_manager(self):
        if self._proc_manager is None:
            raise RuntimeError("process manager not set")
        return self._proc_manager

    def _require_current(self) -> ThreadId:
        if self._current is None:
            raise RuntimeError("no current thread")
        return self._current

    def _current_rel(self) -> ProcThreadRel:
        return self._rel_map[self._tid2pid[self._require_current()]]

    def set_manager(self, manager) -> None:
        """Use ``manager``, implementing Manage and Schedule, for threads."""
        self._manager = manager

    def set_proc_manager(self, proc_manager) -> None:
        """Use ``proc_manager``, implementing Manage, for processes."""
        self._proc_manager = proc_manager

    def find_next(self) -> T | None:
        """Take the next ready thread and make it current."""
        manager = self._require_manager()
        tid = manager.fetch()
        if tid is None:
            return None
        task = manager.get(tid)
        if task is None:
            return None
        self._current = tid
        return task

    def make_current_suspend(self) -> None:
        """Put the current thread, if any, back in the ready queue."""
        if self._current is not None:
            self._require_manager().add(self._current)
            self._current = None

    def make_current_exited(self, exit_code: int) -> None:
        """End the current thread; its process ends with it if no thread is left."""
        tid = self._current
        if tid is None:
            return
        self._require_manager().delete(tid)
        pid = self._tid2pid.pop(tid)
        rel = self._rel_map.get(pid)
        if rel is not None:
            rel.del_thread(tid, exit_code)
            if not rel.threads:
                self.del_proc(pid, exit_code)
        self._current = None

    def make_current_blocked(self) -> None:
        """Stop running the current thread without requeueing it."""
        self._current = None

    def re_enque(self, id: ThreadId) -> None:
        """Put thread ``id`` back in the ready queue."""
        self._require_manager().add(id)

    def add(self, id: ThreadId, task: T, pid: ProcId) -> None:
        """Add a ready thread belonging to process ``pid``."""
        manager = self._require_manager()
        manager.insert(id, task)
        manager.add(id)
        rel = self._rel_map.get(pid)
        if rel is not None:
            rel.add_thread(id)
            self._tid2pid[id] = pid

    def current(self) -> T | None:
        """The running thread."""
        return self._require_manager().get(self._require_current())

    def get_task(self, id: ThreadId) -> T | None:
        return self._require_manager().get(id)

    def add_proc(self, id: ProcId, proc: P, parent: ProcId) -> None:
        """Add a process with the given parent."""
        self._require_proc_manager().insert(id, proc)
        parent_rel = self._rel_map.get(parent)
        if parent_rel is not None:
            parent_rel.add_child(id)
        self._rel_map[id] = ProcThreadRel(parent)

    def get_proc(self, id: ProcId) -> P | None:
        return self._require_proc_manager().get(id)

    def del_proc(self, id: ProcId, exit_code: int) -> None:
        """Remove process ``id``; its children are handed to process 0."""
        self._require_proc_manager().delete(id)
        _reparent(self._rel_map, id, exit_code)

    def wait(self, child_pid: ProcId) -> tuple[ProcId, int] | None:
        """Wait on behalf of the current thread's process; see ``PManager.wait``."""
        rel = self._current_rel()
        if _is_any_child(child_pid):
            return rel.wait_any_child()
        return rel.wait_child(child_pid)

    def waittid(self, tid: ThreadId) -> int | None:
        """Wait for thread ``tid`` of the current process."""
        return self._current_rel().wait_thread(tid)

    def thread_count(self, id: ProcId) -> int:
        """Number of live threads of process ``id``."""
        return len(self._rel_map[id].threads)

    def get_thread(self, id: ProcId) -> list[ThreadId] | None:
        """Live threads of process ``id``, or None for an unknown process."""
        rel = self._rel_map.get(id)
        return None if rel is None else list(rel.threads)

    def get_current_proc(self) -> P | None:
        """The process owning the running thread."""
        if self._current is None:
            return None
        return self._require_proc_manager().get(self._tid2pid[self._current])