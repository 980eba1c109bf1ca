from __future__ import annotations

from datetime import datetime, timezone
import signal

from procrun.domain.errors import (
    InvocationError,
    ProcrunError,
    SignalTermination,
    SpawnFailure,
    WaitFailure,
)
from procrun.domain.json_types import JsonDict, as_json_dict, decode_bytes
from procrun.domain.response import Response

RESULT_SCHEMA_VERSION = 1

_KINDS: dict[type[ProcrunError], str] = {
    SpawnFailure: "spawn_failure",
    WaitFailure: "wait_failure",
    SignalTermination: "signal_termination",
}


def error_kind(error: ProcrunError) -> str:
    for cls, kind in _KINDS.items():
        if isinstance(error, cls):
            return kind
    return "invocation_error" if isinstance(error, InvocationError) else "usage_error"


def exit_status(response: Response) -> int:
    """Shell-style status: the exit code, or 128 + N for death by signal N."""
    if response.err is not None and response.err.signum is not None:
        return 128 + response.err.signum
    return response.code


def serialize_response(response: Response) -> JsonDict:
    error: JsonDict | None = None
    if response.err is not None:
        signum = response.err.signum
        name = None
        if signum is not None:
            try:
                name = signal.Signals(signum).name
            except ValueError:
                name = None
        error = as_json_dict(
            {
                "kind": error_kind(response.err),
                "message": response.err.message,
                "signal": signum,
                "signal_name": name,
            }
        )
    return as_json_dict(
        {
            "code": response.code,
            "stdout": decode_bytes(response.stdout),
            "stderr": decode_bytes(response.stderr),
            "error": error,
        }
    )


def serialize_error(error: ProcrunError) -> JsonDict:
    return as_json_dict(
        {
            "kind": error_kind(error),
            "message": error.message,
            "hint": error.hint,
            "details": error.details,
        }
    )


def serialize_invocation(
    command: str,
    args: list[str],
    exit_code: int,
    response: Response | None = None,
    error: ProcrunError | None = None,
) -> JsonDict:
    return as_json_dict(
        {
            "result_schema_version": RESULT_SCHEMA_VERSION,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "command": command,
            "args": args,
            "exit_code": exit_code,
            "response": None if response is None else serialize_response(response),
            "error": None if error is None else serialize_error(error),
        }
    )
