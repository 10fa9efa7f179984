"""Signal numbers, signal actions and the results of handling a signal."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum, auto

MAX_SIG = 31
"""Highest signal number that may carry a user handler."""


class SignalNo(IntEnum):
    """Signal numbers; 32 and above are the real-time signals."""

    ERR = 0
    SIGHUP = 1
    SIGINT = 2
    SIGQUIT = 3
    SIGILL = 4
    SIGTRAP = 5
    SIGABRT = 6
    SIGBUS = 7
    SIGFPE = 8
    SIGKILL = 9
    SIGUSR1 = 10
    SIGSEGV = 11
    SIGUSR2 = 12
    SIGPIPE = 13
    SIGALRM = 14
    SIGTERM = 15
    SIGSTKFLT = 16
    SIGCHLD = 17
    SIGCONT = 18
    SIGSTOP = 19
    SIGTSTP = 20
    SIGTTIN = 21
    SIGTTOU = 22
    SIGURG = 23
    SIGXCPU = 24
    SIGXFSZ = 25
    SIGVTALRM = 26
    SIGPROF = 27
    SIGWINCH = 28
    SIGIO = 29
    SIGPWR = 30
    SIGSYS = 31
    SIGRTMIN = 32
    SIGRT1 = 33
    SIGRT2 = 34
    SIGRT3 = 35
    SIGRT4 = 36
    SIGRT5 = 37
    SIGRT6 = 38
    SIGRT7 = 39
    SIGRT8 = 40
    SIGRT9 = 41
    SIGRT10 = 42
    SIGRT11 = 43
    SIGRT12 = 44
    SIGRT13 = 45
    SIGRT14 = 46
    SIGRT15 = 47
    SIGRT16 = 48
    SIGRT17 = 49
    SIGRT18 = 50
    SIGRT19 = 51
    SIGRT20 = 52
    SIGRT21 = 53
    SIGRT22 = 54
    SIGRT23 = 55
    SIGRT24 = 56
    SIGRT25 = 57
    SIGRT26 = 58
    SIGRT27 = 59
    SIGRT28 = 60
    SIGRT29 = 61
    SIGRT30 = 62
    SIGRT31 = 63

    @classmethod
    def from_number(cls, num: int) -> SignalNo:
        """Convert a raw number, truncated to a byte; unknown values give ERR."""
        value = num & 0xFF
        try:
            return cls(value)
        except ValueError:
            return cls.ERR


@dataclass(frozen=True)
class SignalAction:
    """A user signal handler: its entry address and the mask to apply."""

    handler: int = 0
    mask: int = 0


class SignalOutcome(Enum):
    """What happened when pending signals were handled."""

    NO_SIGNAL = auto()
    IS_HANDLING_SIGNAL = auto()
    IGNORED = auto()
    HANDLED = auto()
    PROCESS_KILLED = auto()
    PROCESS_SUSPENDED = auto()


@dataclass(frozen=True)
class SignalResult:
    """An outcome, with the exit code when the process is killed."""

    outcome: SignalOutcome
    exit_code: int | None = None

    def __post_init__(self) -> None:
        killed = self.outcome is SignalOutcome.PROCESS_KILLED
        if killed and self.exit_code is None:
            raise ValueError("a killed process needs an exit code")
        if not killed and self.exit_code is not None:
            raise ValueError("only a killed process carries an exit code")

    @classmethod
    def killed(cls, exit_code: int) -> SignalResult:
        """The process must end with ``exit_code``."""
        return cls(SignalOutcome.PROCESS_KILLED, exit_code)


@dataclass(frozen=True)
class DefaultAction:
    """What happens to a signal without a handler: terminate, or ignore when exit_code is None."""

    exit_code: int | None

    @property
    def ignore(self) -> bool:
        return self.exit_code is None

    @classmethod
    def from_signal(cls, signal_no: SignalNo) -> DefaultAction:
        if signal_no in (SignalNo.SIGCHLD, SignalNo.SIGURG):
            return cls(None)
        return cls(-int(signal_no))

    def to_result(self) -> SignalResult:
        if self.exit_code is None:
            return SignalResult(SignalOutcome.IGNORED)
        return SignalResult.killed(self.exit_code)