from collections import deque

import pytest

from easykernel.ids import ProcId, ThreadId
from easykernel.managers import ANY_CHILD, Manage, PManager, PThreadManager, Schedule
from easykernel.relations import RUNNING_EXIT_CODE, STILL_RUNNING, THREAD_RUNNING


class FifoManager(Manage, Schedule):
    def __init__(self):
        self.items = {}
        self.queue = deque()

    def insert(self, id, item):
        self.items[id] = item

    def delete(self, id):
        self.items.pop(id, None)

    def get(self, id):
        return self.items.get(id)

    def add(self, id):
        self.queue.append(id)

    def fetch(self):
        return self.queue.popleft() if self.queue else None


class DictManager(Manage):
    def __init__(self):
        self.items = {}

    def insert(self, id, item):
        self.items[id] = item

    def delete(self, id):
        self.items.pop(id, None)

    def get(self, id):
        return self.items.get(id)


@pytest.fixture
def pm():
    manager = PManager()
    manager.set_manager(FifoManager())
    return manager


@pytest.fixture
def tm():
    manager = PThreadManager()
    manager.set_manager(FifoManager())
    manager.set_proc_manager(DictManager())
    return manager


def test_pmanager_requires_manager():
    with pytest.raises(RuntimeError):
        PManager().add(ProcId(0), "init", ProcId(0))


def test_pmanager_fifo_and_current(pm):
    pm.add(ProcId(0), "init", ProcId(0))
    pm.add(ProcId(1), "shell", ProcId(0))
    assert pm.find_next() == "init"
    assert pm.current() == "init"
    assert pm.current_id == ProcId(0)
    assert pm.get_task(ProcId(1)) == "shell"


def test_pmanager_empty_queue(pm):
    assert pm.find_next() is None
    with pytest.raises(RuntimeError):
        pm.current()


def test_pmanager_suspend_requeues(pm):
    pm.add(ProcId(0), "a", ProcId(0))
    pm.add(ProcId(1), "b", ProcId(0))
    assert pm.find_next() == "a"
    pm.make_current_suspend()
    assert pm.current_id is None
    assert pm.find_next() == "b"
    pm.make_current_suspend()
    assert pm.find_next() == "a"


def test_pmanager_suspend_without_current(pm):
    with pytest.raises(RuntimeError):
        pm.make_current_suspend()


def test_pmanager_exit_and_wait(pm):
    pm.add(ProcId(0), "init", ProcId(0))
    pm.add(ProcId(1), "child", ProcId(0))
    assert pm.find_next() == "init"
    assert pm.wait(ANY_CHILD) == (STILL_RUNNING, RUNNING_EXIT_CODE)
    pm.make_current_suspend()
    assert pm.find_next() == "child"
    pm.make_current_exited(3)
    assert pm.get_task(ProcId(1)) is None
    assert pm.find_next() == "init"
    assert pm.wait(ProcId(1)) == (ProcId(1), 3)
    assert pm.wait(ANY_CHILD) is None


def test_pmanager_orphans_go_to_init(pm):
    pm.add(ProcId(0), "init", ProcId(0))
    pm.add(ProcId(1), "parent", ProcId(0))
    pm.add(ProcId(2), "grandchild", ProcId(1))
    assert pm.find_next() == "init"
    pm.make_current_suspend()
    assert pm.find_next() == "parent"
    pm.make_current_exited(4)
    pm.find_next()  # grandchild
    pm.make_current_suspend()
    assert pm.find_next() == "init"
    assert pm.wait(ANY_CHILD) == (ProcId(1), 4)
    assert pm.wait(ProcId(2)) == (STILL_RUNNING, RUNNING_EXIT_CODE)


def test_pmanager_wait_accepts_minus_one(pm):
    pm.add(ProcId(0), "init", ProcId(0))
    pm.find_next()
    assert pm.wait(ProcId(-1)) is None


def test_pmanager_wait_unknown_child(pm):
    pm.add(ProcId(0), "init", ProcId(0))
    pm.add(ProcId(1), "child", ProcId(0))
    pm.find_next()
    assert pm.wait(ProcId(5)) is None


def test_thread_manager_current_proc(tm):
    tm.add_proc(ProcId(0), "proc0", ProcId(0))
    tm.add(ThreadId(0), "t0", ProcId(0))
    tm.add(ThreadId(1), "t1", ProcId(0))
    assert tm.find_next() == "t0"
    assert tm.current() == "t0"
    assert tm.get_current_proc() == "proc0"
    assert tm.thread_count(ProcId(0)) == 2
    assert tm.get_thread(ProcId(0)) == [ThreadId(0), ThreadId(1)]
    assert tm.waittid(ThreadId(1)) == THREAD_RUNNING


def test_thread_manager_unknown_proc(tm):
    assert tm.get_thread(ProcId(9)) is None
    assert tm.get_proc(ProcId(9)) is None
    with pytest.raises(KeyError):
        tm.thread_count(ProcId(9))


def test_thread_exit_then_waittid(tm):
    tm.add_proc(ProcId(0), "proc0", ProcId(0))
    tm.add(ThreadId(0), "t0", ProcId(0))
    tm.add(ThreadId(1), "t1", ProcId(0))
    tm.find_next()
    tm.make_current_suspend()
    assert tm.find_next() == "t1"
    tm.make_current_exited(7)
    assert tm.get_proc(ProcId(0)) == "proc0"
    assert tm.thread_count(ProcId(0)) == 1
    assert tm.find_next() == "t0"
    assert tm.waittid(ThreadId(1)) == 7
    assert tm.waittid(ThreadId(1)) is None


def test_last_thread_exit_ends_process(tm):
    tm.add_proc(ProcId(0), "proc0", ProcId(0))
    tm.add_proc(ProcId(1), "proc1", ProcId(0))
    tm.add(ThreadId(0), "t0", ProcId(0))
    tm.add(ThreadId(1), "t1", ProcId(1))
    assert tm.find_next() == "t0"
    assert tm.wait(ANY_CHILD) == (STILL_RUNNING, RUNNING_EXIT_CODE)
    tm.make_current_suspend()
    assert tm.find_next() == "t1"
    tm.make_current_exited(5)
    assert tm.get_proc(ProcId(1)) is None
    assert tm.get_thread(ProcId(1)) is None
    assert tm.find_next() == "t0"
    assert tm.wait(ANY_CHILD) == (ProcId(1), 5)


def test_del_proc_reparents_children(tm):
    tm.add_proc(ProcId(0), "proc0", ProcId(0))
    tm.add_proc(ProcId(1), "proc1", ProcId(0))
    tm.add_proc(ProcId(2), "proc2", ProcId(1))
    tm.add(ThreadId(0), "t0", ProcId(0))
    tm.del_proc(ProcId(1), 2)
    tm.find_next()
    assert tm.wait(ProcId(2)) == (STILL_RUNNING, RUNNING_EXIT_CODE)
    assert tm.wait(ProcId(1)) == (ProcId(1), 2)


def test_blocked_and_re_enque(tm):
    tm.add_proc(ProcId(0), "proc0", ProcId(0))
    tm.add(ThreadId(0), "t0", ProcId(0))
    assert tm.find_next() == "t0"
    tm.make_current_blocked()
    assert tm.get_current_proc() is None
    assert tm.find_next() is None
    with pytest.raises(RuntimeError):
        tm.current()
    tm.re_enque(ThreadId(0))
    assert tm.find_next() == "t0"


def test_suspend_without_current_is_noop(tm):
    tm.make_current_suspend()
    tm.make_current_exited(1)
    assert tm.find_next() is None
    assert tm.current_id is None


def test_thread_manager_requires_proc_manager():
    manager = PThreadManager()
    manager.set_manager(FifoManager())
    with pytest.raises(RuntimeError):
        manager.add_proc(ProcId(0), "proc0", ProcId(0))