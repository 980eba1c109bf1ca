from __future__ import annotations

from dataclasses import dataclass
from importlib import resources
from importlib.resources.abc import Traversable
import json
from pathlib import Path

import jsonschema
import yaml

from procrun.adapters.errors import RequestFileError
from procrun.domain.json_types import JsonDict, as_json_dict, as_json_list
from procrun.domain.request import Request

SCHEMA_PACKAGE = "procrun.adapters.schemas"
SCHEMA_NAME = "request.schema.v1.json"


@dataclass(frozen=True)
class RequestFile:
    request: Request
    timeout: float | None = None


def schema_resource() -> Traversable:
    return resources.files(SCHEMA_PACKAGE) / SCHEMA_NAME


def load_schema() -> JsonDict:
    try:
        raw = json.loads(schema_resource().read_text(encoding="utf-8"))
    except (ImportError, OSError, ValueError) as e:
        raise RequestFileError(
            f"cannot load request descriptor schema {SCHEMA_NAME}: {e}",
            details={"package": SCHEMA_PACKAGE, "schema": SCHEMA_NAME},
            cause=e,
        )
    return as_json_dict(raw)


def load_descriptor(path: Path) -> JsonDict:
    try:
        raw: object = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise RequestFileError(
            f"cannot read request file {path}: {e}",
            details={"path": str(path)},
            cause=e,
        )
    except yaml.YAMLError as e:
        raise RequestFileError(
            f"invalid YAML in request file {path}",
            details={"path": str(path), "error": str(e)},
            cause=e,
        )
    if not isinstance(raw, dict):
        raise RequestFileError(
            f"request file {path} must contain a mapping",
            details={"path": str(path)},
        )
    return as_json_dict(raw)


def validate_descriptor(descriptor: JsonDict, path: Path) -> None:
    try:
        jsonschema.validate(descriptor, load_schema())
    except jsonschema.ValidationError as e:
        location = "/".join(str(p) for p in e.absolute_path) or "<root>"
        raise RequestFileError(
            f"invalid request file {path}: {e.message}",
            details={"path": str(path), "field": location},
            hint=f"see {SCHEMA_NAME} in {SCHEMA_PACKAGE}",
            cause=e,
        )


def load_request_file(path: Path) -> RequestFile:
    descriptor = load_descriptor(path)
    validate_descriptor(descriptor, path)

    stdin: bytes | None = None
    if "stdin" in descriptor:
        stdin = str(descriptor["stdin"]).encode("utf-8")
    elif "stdin_file" in descriptor:
        stdin_path = path.parent / str(descriptor["stdin_file"])
        try:
            stdin = stdin_path.read_bytes()
        except OSError as e:
            raise RequestFileError(
                f"cannot read stdin file {stdin_path}: {e}",
                details={"path": str(path), "stdin_file": str(stdin_path)},
                cause=e,
            )

    env = descriptor.get("env")
    timeout = descriptor.get("timeout")
    request = Request(
        path=str(descriptor["path"]),
        args=tuple(str(a) for a in as_json_list(descriptor.get("args"))),
        env=None if env is None else {k: str(v) for k, v in as_json_dict(env).items()},
        inherit_env=bool(descriptor.get("inherit_env", False)),
        dir=str(descriptor["dir"]) if "dir" in descriptor else None,
        stdin=stdin,
    )
    return RequestFile(
        request=request,
        timeout=float(timeout) if isinstance(timeout, (int, float)) else None,
    )
