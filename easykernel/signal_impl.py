"""Per-process signal state: pending signals, mask, handlers and delivery."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from .context import LocalContext
from .signal_set import SignalSet
from .signals import (
    MAX_SIG,
    DefaultAction,
    SignalAction,
    SignalNo,
    SignalOutcome,
    SignalResult,
)


class Signal(ABC):
    """What a process's signal module offers to the rest of the kernel."""

    @abstractmethod
    def from_fork(self) -> Signal:
        """Signal state for a forked child: handlers and mask inherited."""

    @abstractmethod
    def clear(self) -> None:
        """Drop every handler, as on exec."""

    @abstractmethod
    def add_signal(self, signal: SignalNo) -> None:
        """Mark ``signal`` as received."""

    @abstractmethod
    def is_handling_signal(self) -> bool:
        """Whether a signal is currently being handled."""

    @abstractmethod
    def set_action(self, signum: SignalNo, action: SignalAction) -> bool:
        """Install a handler; False when the signal cannot be caught."""

    @abstractmethod
    def get_action(self, signum: SignalNo) -> SignalAction | None:
        """The installed handler; None when the signal cannot be caught."""

    @abstractmethod
    def update_mask(self, mask: int) -> int:
        """Set the signal mask and return the previous one."""

    @abstractmethod
    def handle_signals(self, current_context: LocalContext) -> SignalResult:
        """Deliver a pending signal, possibly redirecting ``current_context``."""

    @abstractmethod
    def sig_return(self, current_context: LocalContext) -> bool:
        """Leave a user handler, restoring ``current_context``; False if not in one."""


@dataclass(frozen=True)
class HandlingSignal:
    """The signal in progress: stopped by the kernel, or in a user handler."""

    saved_context: LocalContext | None = None

    @classmethod
    def frozen(cls) -> HandlingSignal:
        return cls(None)

    @classmethod
    def user_signal(cls, saved_context: LocalContext) -> HandlingSignal:
        return cls(saved_context)

    @property
    def is_frozen(self) -> bool:
        return self.saved_context is None


_UNCATCHABLE = (SignalNo.SIGKILL, SignalNo.SIGSTOP)


def _restore(target: LocalContext, saved: LocalContext) -> None:
    target.registers[:] = saved.registers
    target.pc = saved.pc
    target.supervisor = saved.supervisor
    target.interrupt = saved.interrupt


class SignalImpl(Signal):
    """Signal state of one process."""

    def __init__(self) -> None:
        self.received = SignalSet()
        self.mask = SignalSet()
        self.handling: HandlingSignal | None = None
        self.actions: list[SignalAction | None] = [None] * (MAX_SIG + 1)

    def _fetch_signal(self) -> SignalNo | None:
        num = self.received.find_first_one(self.mask)
        if num is None:
            return None
        self.received.remove(num)
        return SignalNo.from_number(num)

    def _fetch_and_remove(self, signal_no: SignalNo) -> bool:
        if self.received.contains(signal_no) and not self.mask.contains(signal_no):
            self.received.remove(signal_no)
            return True
        return False

    @staticmethod
    def _check_catchable_range(signum: SignalNo) -> None:
        if not 0 <= signum <= MAX_SIG:
            raise ValueError(f"signal {int(signum)} cannot carry a handler")

    def from_fork(self) -> SignalImpl:
        child = SignalImpl()
        child.mask = self.mask.copy()
        child.actions = list(self.actions)
        return child

    def clear(self) -> None:
        self.actions = [None] * (MAX_SIG + 1)

    def add_signal(self, signal: SignalNo) -> None:
        self.received.add(int(signal))

    def is_handling_signal(self) -> bool:
        return self.handling is not None

    def set_action(self, signum: SignalNo, action: SignalAction) -> bool:
        if signum in _UNCATCHABLE:
            return False
        self._check_catchable_range(signum)
        self.actions[signum] = action
        return True

    def get_action(self, signum: SignalNo) -> SignalAction | None:
        if signum in _UNCATCHABLE:
            return None
        self._check_catchable_range(signum)
        action = self.actions[signum]
        return action if action is not None else SignalAction()

    def update_mask(self, mask: int) -> int:
        return self.mask.replace(SignalSet(mask))

    def handle_signals(self, current_context: LocalContext) -> SignalResult:
        if self.handling is not None:
            if not self.handling.is_frozen:
                return SignalResult(SignalOutcome.IS_HANDLING_SIGNAL)
            if self._fetch_and_remove(SignalNo.SIGCONT):
                self.handling = None
                return SignalResult(SignalOutcome.HANDLED)
            return SignalResult(SignalOutcome.PROCESS_SUSPENDED)
        signal = self._fetch_signal()
        if signal is None:
            return SignalResult(SignalOutcome.NO_SIGNAL)
        if signal is SignalNo.SIGKILL:
            return SignalResult.killed(-int(signal))
        if signal is SignalNo.SIGSTOP:
            self.handling = HandlingSignal.frozen()
            return SignalResult(SignalOutcome.PROCESS_SUSPENDED)
        action = self.actions[signal]
        if action is not None:
            self.handling = HandlingSignal.user_signal(current_context.copy())
            current_context.pc = action.handler
            current_context.set_a(0, int(signal))
            return SignalResult(SignalOutcome.HANDLED)
        return DefaultAction.from_signal(signal).to_result()

    def sig_return(self, current_context: LocalContext) -> bool:
        if self.handling is None or self.handling.is_frozen:
            return False
        saved = self.handling.saved_context
        self.handling = None
        _restore(current_context, saved)
        return True