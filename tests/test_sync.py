import pytest

from easykernel.ids import ThreadId
from easykernel.interrupts import INTR_MASKING_INFO
from easykernel.sync import Condvar, MutexBlocking, Semaphore

FIRST = ThreadId(1)
SECOND = ThreadId(2)
THIRD = ThreadId(3)


def test_mutex_lock_free_then_blocks():
    mutex = MutexBlocking()
    assert mutex.lock(FIRST) is True
    assert mutex.lock(SECOND) is False
    assert mutex.waiting == (SECOND,)
    assert mutex.locked is True


def test_mutex_unlock_hands_to_waiter_in_order():
    mutex = MutexBlocking()
    mutex.lock(FIRST)
    mutex.lock(SECOND)
    mutex.lock(THIRD)
    assert mutex.unlock() == SECOND
    assert mutex.locked is True
    assert mutex.unlock() == THIRD
    assert mutex.unlock() is None
    assert mutex.locked is False


def test_mutex_unlock_when_unlocked_raises():
    with pytest.raises(RuntimeError):
        MutexBlocking().unlock()


def test_mutex_relock_after_release():
    mutex = MutexBlocking()
    mutex.lock(FIRST)
    mutex.unlock()
    assert mutex.lock(SECOND) is True


def test_operations_leave_masking_balanced():
    level = INTR_MASKING_INFO.nested_level
    mutex = MutexBlocking()
    assert mutex.lock(FIRST) is True
    assert mutex.unlock() is None
    assert Semaphore(1).down(FIRST) is True
    assert Condvar().signal() is None
    assert INTR_MASKING_INFO.nested_level == level


def test_semaphore_zero_blocks_until_up():
    sem = Semaphore(0)
    assert sem.down(SECOND) is False
    assert sem.count == -1
    assert sem.up() == SECOND
    assert sem.count == 0


def test_semaphore_counts_resources():
    sem = Semaphore(2)
    assert sem.down(FIRST) is True
    assert sem.down(SECOND) is True
    assert sem.down(THIRD) is False
    assert sem.waiting == (THIRD,)
    assert sem.up() == THIRD
    assert sem.up() is None
    assert sem.count == 1


def test_semaphore_negative_count_rejected():
    with pytest.raises(ValueError):
        Semaphore(-1)


def test_condvar_signal_without_waiters():
    assert Condvar().signal() is None


def test_condvar_wait_no_sched_queues():
    condvar = Condvar()
    assert condvar.wait_no_sched(FIRST) is False
    assert condvar.wait_no_sched(SECOND) is False
    assert condvar.waiting == (FIRST, SECOND)
    assert condvar.signal() == FIRST
    assert condvar.signal() == SECOND
    assert condvar.signal() is None


def test_wait_with_mutex_requires_waiter():
    mutex = MutexBlocking()
    mutex.lock(FIRST)
    with pytest.raises(RuntimeError):
        Condvar().wait_with_mutex(FIRST, mutex)


def test_condvar_scenario_first_wakes_second():
    # Second locks and waits for A == 1; first sets A and signals.
    condvar = Condvar()
    mutex = MutexBlocking()
    a = 0
    assert mutex.lock(SECOND) is True
    assert mutex.lock(FIRST) is False
    assert a == 0
    got_lock, woken = condvar.wait_with_mutex(SECOND, mutex)
    assert woken == FIRST
    assert got_lock is False
    assert mutex.waiting == (SECOND,)
    a = 1
    assert condvar.signal() is None
    assert mutex.unlock() == SECOND
    assert a == 1
    assert mutex.unlock() is None
    assert mutex.locked is False