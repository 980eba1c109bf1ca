from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path
import os
import signal
import tomllib

from procrun.domain.errors import ProcrunError
from procrun.domain.json_types import JsonDict, as_json_dict

CONFIG_FILENAME = "procrun.toml"
ENV_PREFIX = "PROCRUN_"


class SettingsError(ProcrunError):
    pass


@dataclass(frozen=True)
class InvokerSettings:
    kill_signal: signal.Signals = signal.SIGKILL
    chunk_size: int = 64 * 1024
    timeout: float | None = None


def parse_signal(value: object) -> signal.Signals:
    if isinstance(value, bool):
        raise SettingsError(f"kill_signal: invalid signal {value!r}")
    if isinstance(value, int):
        try:
            return signal.Signals(value)
        except ValueError:
            raise SettingsError(f"kill_signal: unknown signal number {value}")
    name = str(value).strip().upper()
    if name.isdigit():
        return parse_signal(int(name))
    if not name.startswith("SIG"):
        name = "SIG" + name
    try:
        return signal.Signals[name]
    except KeyError:
        raise SettingsError(f"kill_signal: unknown signal name {value!r}")


def _parse_chunk_size(value: object) -> int:
    try:
        size = int(str(value))
    except ValueError:
        raise SettingsError(f"chunk_size: expected an integer, got {value!r}")
    if size <= 0:
        raise SettingsError(f"chunk_size: must be positive, got {size}")
    return size


def parse_timeout(value: object) -> float | None:
    if value is None or value == "":
        return None
    try:
        seconds = float(str(value))
    except ValueError:
        raise SettingsError(f"timeout: expected a number of seconds, got {value!r}")
    if not seconds > 0:
        raise SettingsError(f"timeout: must be positive, got {seconds}")
    return seconds


def _apply(settings: InvokerSettings, raw: Mapping[str, object]) -> InvokerSettings:
    unknown = set(raw) - {"kill_signal", "chunk_size", "timeout"}
    if unknown:
        raise SettingsError(f"unknown settings: {', '.join(sorted(unknown))}")
    if "kill_signal" in raw:
        settings = replace(settings, kill_signal=parse_signal(raw["kill_signal"]))
    if "chunk_size" in raw:
        settings = replace(settings, chunk_size=_parse_chunk_size(raw["chunk_size"]))
    if "timeout" in raw:
        settings = replace(settings, timeout=parse_timeout(raw["timeout"]))
    return settings


def _read_config(path: Path) -> JsonDict:
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise SettingsError(
            f"cannot read settings from {path}: {e}",
            details={"path": str(path)},
            cause=e,
        )
    tool = as_json_dict(data.get("tool"))
    return as_json_dict(tool.get("procrun"))


def load_settings(
    config_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
    cwd: Path | None = None,
) -> InvokerSettings:
    """Defaults, then ``[tool.procrun]`` from the config file, then ``PROCRUN_*``."""
    settings = InvokerSettings()
    if config_path is None:
        candidate = (cwd or Path.cwd()) / CONFIG_FILENAME
        if candidate.is_file():
            config_path = candidate
    elif not config_path.is_file():
        raise SettingsError(
            f"settings file not found: {config_path}",
            details={"path": str(config_path)},
        )
    if config_path is not None:
        settings = _apply(settings, _read_config(config_path))

    env = os.environ if environ is None else environ
    overrides = {
        key[len(ENV_PREFIX) :].lower(): value
        for key, value in env.items()
        if key in {"PROCRUN_KILL_SIGNAL", "PROCRUN_CHUNK_SIZE", "PROCRUN_TIMEOUT"}
    }
    return _apply(settings, overrides)
