import signal

import pytest

from procrun.application.settings import (
    InvokerSettings,
    SettingsError,
    load_settings,
    parse_signal,
    parse_timeout,
)


def test_defaults(tmp_path):
    settings = load_settings(environ={}, cwd=tmp_path)
    assert settings == InvokerSettings()
    assert settings.kill_signal == signal.SIGKILL
    assert settings.timeout is None


def test_config_file_in_cwd(tmp_path):
    (tmp_path / "procrun.toml").write_text(
        '[tool.procrun]\nkill_signal = "TERM"\nchunk_size = 4096\ntimeout = 1.5\n'
    )
    settings = load_settings(environ={}, cwd=tmp_path)
    assert settings.kill_signal == signal.SIGTERM
    assert settings.chunk_size == 4096
    assert settings.timeout == 1.5


def test_environment_overrides_file(tmp_path):
    config = tmp_path / "custom.toml"
    config.write_text("[tool.procrun]\ntimeout = 1\n")
    settings = load_settings(
        config_path=config,
        environ={"PROCRUN_TIMEOUT": "7", "PROCRUN_KILL_SIGNAL": "15", "UNRELATED": "x"},
        cwd=tmp_path,
    )
    assert settings.timeout == 7.0
    assert settings.kill_signal == signal.SIGTERM


def test_missing_explicit_config(tmp_path):
    with pytest.raises(SettingsError):
        load_settings(config_path=tmp_path / "missing.toml", environ={})


def test_unreadable_toml(tmp_path):
    (tmp_path / "procrun.toml").write_text("[tool.procrun\n")
    with pytest.raises(SettingsError) as excinfo:
        load_settings(environ={}, cwd=tmp_path)
    assert excinfo.value.details == {"path": str(tmp_path / "procrun.toml")}


def test_unknown_key(tmp_path):
    (tmp_path / "procrun.toml").write_text("[tool.procrun]\nshell = true\n")
    with pytest.raises(SettingsError):
        load_settings(environ={}, cwd=tmp_path)


@pytest.mark.parametrize(
    "env",
    [
        {"PROCRUN_CHUNK_SIZE": "0"},
        {"PROCRUN_CHUNK_SIZE": "big"},
        {"PROCRUN_TIMEOUT": "-1"},
        {"PROCRUN_KILL_SIGNAL": "SIGNOPE"},
    ],
)
def test_invalid_environment_values(tmp_path, env):
    with pytest.raises(SettingsError):
        load_settings(environ=env, cwd=tmp_path)


def test_parse_signal_forms():
    assert parse_signal("SIGINT") == signal.SIGINT
    assert parse_signal("int") == signal.SIGINT
    assert parse_signal(9) == signal.SIGKILL
    assert parse_signal("9") == signal.SIGKILL
    with pytest.raises(SettingsError):
        parse_signal(True)


@pytest.mark.parametrize("value", [0, -1, "nan", "soon"])
def test_parse_timeout_rejects_non_positive(value):
    with pytest.raises(SettingsError):
        parse_timeout(value)


def test_parse_timeout_accepts_seconds():
    assert parse_timeout(None) is None
    assert parse_timeout(2) == 2.0
