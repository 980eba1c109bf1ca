from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
import os
from types import MappingProxyType
from typing import BinaryIO, TypeAlias

StdinSource: TypeAlias = bytes | BinaryIO


def _new_args() -> tuple[str, ...]:
    return ()


@dataclass(frozen=True)
class Request:
    """Immutable description of a process to run.

    ``env`` of ``None`` means the child inherits the caller's environment.
    A mapping replaces the inherited environment, or extends it when
    ``inherit_env`` is set. ``dir`` of ``None`` (or ``""``) runs the child
    in the caller's working directory.
    """

    path: str
    args: tuple[str, ...] = field(default_factory=_new_args)
    env: Mapping[str, str] | None = None
    inherit_env: bool = False
    dir: str | None = None
    stdin: StdinSource | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "path", os.fspath(self.path))
        if isinstance(self.args, (str, bytes)):
            raise TypeError("args must be a sequence of arguments, not a single string")
        object.__setattr__(self, "args", tuple(os.fspath(a) for a in self.args))
        if self.env is not None:
            env = {str(k): str(v) for k, v in self.env.items()}
            object.__setattr__(self, "env", MappingProxyType(env))
        if self.dir is not None:
            object.__setattr__(self, "dir", os.fspath(self.dir) or None)

    def __hash__(self) -> int:
        env = None if self.env is None else frozenset(self.env.items())
        return hash((self.path, self.args, env, self.inherit_env, self.dir, self.stdin))

    @property
    def argv(self) -> list[str]:
        return [self.path, *self.args]

    def resolve_env(self, inherited: Mapping[str, str]) -> dict[str, str] | None:
        """Environment handed to the child, or ``None`` to inherit unchanged."""
        if self.env is None:
            return None
        if self.inherit_env:
            return {**inherited, **self.env}
        return dict(self.env)


def parse_env_assignments(assignments: Iterable[str]) -> dict[str, str]:
    """Turn ``KEY=VALUE`` strings into a mapping; later keys win."""
    env: dict[str, str] = {}
    for item in assignments:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise ValueError(f"invalid environment assignment: {item!r} (expected KEY=VALUE)")
        env[key] = value
    return env
