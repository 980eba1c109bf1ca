from __future__ import annotations

from dataclasses import dataclass

from procrun.domain.json_types import JsonDict


@dataclass
class ProcrunError(Exception):
    message: str
    details: JsonDict | None = None
    hint: str | None = None
    cause: BaseException | None = None

    def __str__(self) -> str:
        return self.message


class InvocationError(ProcrunError):
    """Base for every failure reported by the process invoker."""


class SpawnFailure(InvocationError):
    """The process never ran."""

    @classmethod
    def wrap(cls, cause: BaseException) -> "SpawnFailure":
        return cls(f"cannot spawn process: {cause}", cause=cause)


class WaitFailure(InvocationError):
    """The process ran but its exit status could not be collected."""

    @classmethod
    def wrap(cls, cause: BaseException) -> "WaitFailure":
        return cls(
            f"cannot wait for process to terminate: {cause}",
            cause=cause,
            hint="the child may still be running or may have been reaped elsewhere",
        )


@dataclass
class SignalTermination(InvocationError):
    """The process was terminated by a signal.

    Carried in ``Response.err`` rather than raised, so that callers still
    receive whatever output the child produced before it died.
    """

    signum: int | None = None

    @classmethod
    def from_signal(cls, signum: int, description: str) -> "SignalTermination":
        return cls(
            f"signal: {description}",
            details={"signal": signum},
            signum=signum,
        )
