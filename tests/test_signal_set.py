import pytest

from easykernel.signal_set import SignalSet


def test_add_contains_remove():
    s = SignalSet()
    s.add(3)
    assert s.contains(3)
    assert 3 in s
    assert not s.contains(4)
    s.remove(3)
    assert not s.contains(3)
    assert int(s) == 0


def test_bit_range_checked():
    s = SignalSet()
    with pytest.raises(ValueError):
        s.add(64)
    with pytest.raises(ValueError):
        s.contains(-1)


def test_union_and_difference_in_place():
    s = SignalSet(0b0011)
    s.union(SignalSet(0b0100))
    assert int(s) == 0b0111
    s.difference(SignalSet(0b0001))
    assert int(s) == 0b0110


def test_replace_returns_old():
    s = SignalSet(5)
    old = s.replace(SignalSet(9))
    assert old == 5
    assert s == SignalSet(9)


def test_reset_and_clear():
    s = SignalSet()
    s.reset(7)
    assert int(s) == 7
    s.clear()
    assert s == SignalSet()


def test_trailing_zeros_of_empty_is_width():
    assert SignalSet().trailing_zeros() == 64
    s = SignalSet()
    s.add(10)
    assert s.trailing_zeros() == 10


def test_find_first_one_respects_mask():
    s = SignalSet()
    s.add(2)
    s.add(5)
    assert s.find_first_one(SignalSet()) == 2
    mask = SignalSet()
    mask.add(2)
    assert s.find_first_one(mask) == 5
    mask.add(5)
    assert s.find_first_one(mask) is None


def test_copy_is_independent():
    s = SignalSet(1)
    c = s.copy()
    c.add(6)
    assert not s.contains(6)
    assert c.contains(0)