"""Parent/child and process/thread relations used to implement wait."""

from __future__ import annotations

from typing import TypeVar

from .ids import ProcId, ThreadId

STILL_RUNNING = ProcId(-2)
"""Process id reported by a wait whose child exists but has not exited."""

RUNNING_EXIT_CODE = -1
"""Exit code paired with ``STILL_RUNNING``."""

THREAD_RUNNING = -2
"""Result of waiting on a thread that has not exited yet."""

_Id = TypeVar("_Id")


def _retire(live: list[_Id], dead: list[tuple[_Id, int]], ident: _Id, exit_code: int) -> None:
    if ident in live:
        live.remove(ident)
        dead.append((ident, exit_code))


def _reap(dead: list[tuple[_Id, int]], ident: _Id) -> tuple[_Id, int] | None:
    for index, (dead_id, _) in enumerate(dead):
        if dead_id == ident:
            return dead.pop(index)
    return None


def _wait_any(
    children: list[ProcId], dead_children: list[tuple[ProcId, int]]
) -> tuple[ProcId, int] | None:
    if dead_children:
        return dead_children.pop()
    if children:
        return STILL_RUNNING, RUNNING_EXIT_CODE
    return None


def _wait_one(
    children: list[ProcId], dead_children: list[tuple[ProcId, int]], child_pid: ProcId
) -> tuple[ProcId, int] | None:
    reaped = _reap(dead_children, child_pid)
    if reaped is not None:
        return reaped
    if child_pid in children:
        return STILL_RUNNING, RUNNING_EXIT_CODE
    return None


class ProcRel:
    """A process's parent, its live children and its exited children."""

    def __init__(self, parent: ProcId) -> None:
        self.parent = parent
        self.children: list[ProcId] = []
        self.dead_children: list[tuple[ProcId, int]] = []

    def add_child(self, child_pid: ProcId) -> None:
        self.children.append(child_pid)

    def del_child(self, child_pid: ProcId, exit_code: int) -> None:
        """Record that ``child_pid`` exited; ignored if it is not a live child."""
        _retire(self.children, self.dead_children, child_pid, exit_code)

    def wait_any_child(self) -> tuple[ProcId, int] | None:
        """Reap the most recently exited child.

        Returns ``(STILL_RUNNING, -1)`` when children exist but none has
        exited, and None when there are no children at all.
        """
        return _wait_any(self.children, self.dead_children)

    def wait_child(self, child_pid: ProcId) -> tuple[ProcId, int] | None:
        """Reap ``child_pid`` if it exited; see ``wait_any_child`` for the other results."""
        return _wait_one(self.children, self.dead_children, child_pid)


class ProcThreadRel:
    """Process relations together with the process's threads."""

    def __init__(self, parent: ProcId) -> None:
        self.parent = parent
        self.children: list[ProcId] = []
        self.dead_children: list[tuple[ProcId, int]] = []
        self.threads: list[ThreadId] = []
        self.dead_threads: list[tuple[ThreadId, int]] = []

    def add_child(self, child_pid: ProcId) -> None:
        self.children.append(child_pid)

    def del_child(self, child_pid: ProcId, exit_code: int) -> None:
        """Record that ``child_pid`` exited; ignored if it is not a live child."""
        _retire(self.children, self.dead_children, child_pid, exit_code)

    def wait_any_child(self) -> tuple[ProcId, int] | None:
        """Reap the most recently exited child, as ``ProcRel.wait_any_child``."""
        return _wait_any(self.children, self.dead_children)

    def wait_child(self, child_pid: ProcId) -> tuple[ProcId, int] | None:
        """Reap ``child_pid`` if it exited, as ``ProcRel.wait_child``."""
        return _wait_one(self.children, self.dead_children, child_pid)

    def add_thread(self, tid: ThreadId) -> None:
        self.threads.append(tid)

    def del_thread(self, tid: ThreadId, exit_code: int) -> None:
        """Record that thread ``tid`` exited; ignored if it is not a live thread."""
        _retire(self.threads, self.dead_threads, tid, exit_code)

    def wait_thread(self, tid: ThreadId) -> int | None:
        """Exit code of ``tid``, ``THREAD_RUNNING`` if still alive, None if unknown."""
        reaped = _reap(self.dead_threads, tid)
        if reaped is not None:
            return reaped[1]
        if tid in self.threads:
            return THREAD_RUNNING
        return None