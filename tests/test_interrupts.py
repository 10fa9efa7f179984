import pytest

from easykernel.interrupts import INTR_MASKING_INFO, IntrMaskingInfo, UPIntrFreeCell


def test_enter_masks_and_exit_restores_enabled():
    info = IntrMaskingInfo()
    info.sie = True
    info.enter()
    assert info.sie is False
    assert info.nested_level == 1
    info.exit()
    assert info.sie is True
    assert info.nested_level == 0


def test_nested_masking_restores_only_at_outermost_exit():
    info = IntrMaskingInfo()
    info.sie = True
    info.enter()
    info.enter()
    info.exit()
    assert info.sie is False
    assert info.nested_level == 1
    info.exit()
    assert info.sie is True


def test_disabled_interrupts_stay_disabled():
    info = IntrMaskingInfo()
    info.sie = False
    info.enter()
    info.exit()
    assert info.sie is False


def test_exit_without_enter_raises():
    info = IntrMaskingInfo()
    with pytest.raises(RuntimeError):
        info.exit()


def test_exclusive_access_masks_during_access():
    info = IntrMaskingInfo()
    info.sie = True
    cell = UPIntrFreeCell([1, 2], info)
    with cell.exclusive_access() as value:
        assert info.sie is False
        assert info.nested_level == 1
        value.append(3)
    assert info.sie is True
    assert cell.exclusive_session(list) == [1, 2, 3]


def test_double_borrow_raises_and_balances_masking():
    info = IntrMaskingInfo()
    cell = UPIntrFreeCell({}, info)
    with cell.exclusive_access():
        with pytest.raises(RuntimeError):
            with cell.exclusive_access():
                pass
        assert info.nested_level == 1
    assert info.nested_level == 0


def test_cell_can_be_borrowed_again_after_release():
    cell = UPIntrFreeCell([0], IntrMaskingInfo())
    cell.exclusive_session(lambda v: v.append(1))
    assert cell.exclusive_session(len) == 2


def test_default_cell_uses_global_masking():
    cell = UPIntrFreeCell([])
    level = INTR_MASKING_INFO.nested_level
    with cell.exclusive_access() as value:
        assert value == []
        value.append("x")
        assert INTR_MASKING_INFO.nested_level == level + 1
    assert INTR_MASKING_INFO.nested_level == level
    assert cell.exclusive_session(list) == ["x"]