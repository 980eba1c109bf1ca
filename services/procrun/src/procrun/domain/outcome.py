"""Classification of a finished wait into a Response.

A wait ends in exactly one of three ways: the child exited on its own, the
child was killed by a signal, or the wait itself failed. ``to_response``
turns the first two into a ``Response`` and raises ``WaitFailure`` for the
third.
"""

from __future__ import annotations

from dataclasses import dataclass
import signal
from typing import TypeAlias

from procrun.domain.errors import SignalTermination, WaitFailure
from procrun.domain.response import SIGNALED_CODE, Response


@dataclass(frozen=True)
class CleanExit:
    code: int


@dataclass(frozen=True)
class Signaled:
    signum: int

    @property
    def description(self) -> str:
        return describe_signal(self.signum)


@dataclass(frozen=True)
class OtherFailure:
    error: BaseException


WaitOutcome: TypeAlias = CleanExit | Signaled | OtherFailure


def describe_signal(signum: int) -> str:
    try:
        text = signal.strsignal(signum)
    except ValueError:
        text = None
    if not text:
        return f"signal {signum}"
    return text[0].lower() + text[1:]


def classify_returncode(returncode: int) -> WaitOutcome:
    # Popen reports death by signal N as -N.
    if returncode < 0:
        return Signaled(-returncode)
    return CleanExit(returncode)


def to_response(outcome: WaitOutcome, stdout: bytes, stderr: bytes) -> Response:
    if isinstance(outcome, CleanExit):
        return Response(stdout=stdout, stderr=stderr, code=outcome.code)
    if isinstance(outcome, Signaled):
        return Response(
            stdout=stdout,
            stderr=stderr,
            code=SIGNALED_CODE,
            err=SignalTermination.from_signal(outcome.signum, outcome.description),
        )
    raise WaitFailure.wrap(outcome.error) from outcome.error
