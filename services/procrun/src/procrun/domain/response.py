from __future__ import annotations

from dataclasses import dataclass

from procrun.domain.errors import SignalTermination

SIGNALED_CODE = -1


@dataclass(frozen=True)
class Response:
    """Outcome of a process that was successfully spawned.

    ``code`` is the exit code reported by the operating system, or
    ``SIGNALED_CODE`` when the child was terminated by a signal, in which
    case ``err`` describes the signal. A non-zero exit code on its own is
    not an error.
    """

    stdout: bytes = b""
    stderr: bytes = b""
    code: int = 0
    err: SignalTermination | None = None

    def __post_init__(self) -> None:
        if (self.code == SIGNALED_CODE) != (self.err is not None):
            raise ValueError("code -1 must be paired with a signal error, and only then")
        if self.code < SIGNALED_CODE:
            raise ValueError(f"invalid exit code: {self.code}")

    @property
    def signaled(self) -> bool:
        return self.code == SIGNALED_CODE

    @property
    def ok(self) -> bool:
        return self.code == 0 and self.err is None
