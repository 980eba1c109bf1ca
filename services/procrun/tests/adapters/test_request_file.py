import pytest

from procrun.adapters.errors import RequestFileError
from procrun.adapters import request_file
from procrun.adapters.request_file import load_request_file, load_schema, schema_resource


def test_schema_ships_as_package_resource():
    assert schema_resource().is_file()
    schema = load_schema()
    assert schema["required"] == ["path"]


def test_missing_schema_is_a_request_file_error(tmp_path, monkeypatch):
    monkeypatch.setattr(request_file, "SCHEMA_PACKAGE", "procrun_missing_schemas")
    path = tmp_path / "req.yaml"
    path.write_text("path: /bin/true\n")
    with pytest.raises(RequestFileError) as excinfo:
        load_request_file(path)
    assert "schema" in str(excinfo.value)


def test_minimal_descriptor(tmp_path):
    path = tmp_path / "req.yaml"
    path.write_text("path: /bin/true\n")
    loaded = load_request_file(path)
    assert loaded.request.path == "/bin/true"
    assert loaded.request.args == ()
    assert loaded.request.env is None
    assert loaded.request.stdin is None
    assert loaded.timeout is None


def test_full_descriptor(tmp_path):
    path = tmp_path / "req.yaml"
    path.write_text(
        "path: /bin/sh\n"
        "args: ['-c', 'cat']\n"
        "env: {GREETING: hello}\n"
        "inherit_env: true\n"
        "dir: /tmp\n"
        "stdin: 'fed to the child'\n"
        "timeout: 2.5\n"
    )
    loaded = load_request_file(path)
    req = loaded.request
    assert req.argv == ["/bin/sh", "-c", "cat"]
    assert req.env == {"GREETING": "hello"}
    assert req.inherit_env is True
    assert req.dir == "/tmp"
    assert req.stdin == b"fed to the child"
    assert loaded.timeout == 2.5


def test_stdin_file_is_relative_to_descriptor(tmp_path):
    (tmp_path / "input.bin").write_bytes(b"\x00\x01binary")
    path = tmp_path / "req.yaml"
    path.write_text("path: /bin/cat\nstdin_file: input.bin\n")
    assert load_request_file(path).request.stdin == b"\x00\x01binary"


def test_missing_path_is_rejected(tmp_path):
    path = tmp_path / "req.yaml"
    path.write_text("args: [a]\n")
    with pytest.raises(RequestFileError) as excinfo:
        load_request_file(path)
    assert "path" in str(excinfo.value)
    assert excinfo.value.details is not None
    assert excinfo.value.details["path"] == str(path)


def test_unknown_keys_are_rejected(tmp_path):
    path = tmp_path / "req.yaml"
    path.write_text("path: /bin/true\nshell: true\n")
    with pytest.raises(RequestFileError):
        load_request_file(path)


def test_stdin_and_stdin_file_are_exclusive(tmp_path):
    path = tmp_path / "req.yaml"
    path.write_text("path: /bin/cat\nstdin: a\nstdin_file: b\n")
    with pytest.raises(RequestFileError):
        load_request_file(path)


def test_non_string_env_values_are_rejected(tmp_path):
    path = tmp_path / "req.yaml"
    path.write_text("path: /bin/true\nenv: {N: 1}\n")
    with pytest.raises(RequestFileError) as excinfo:
        load_request_file(path)
    assert excinfo.value.details is not None
    assert excinfo.value.details["field"] == "env/N"


def test_invalid_yaml(tmp_path):
    path = tmp_path / "req.yaml"
    path.write_text("path: [unterminated\n")
    with pytest.raises(RequestFileError):
        load_request_file(path)


def test_missing_file(tmp_path):
    with pytest.raises(RequestFileError):
        load_request_file(tmp_path / "nope.yaml")


def test_top_level_must_be_mapping(tmp_path):
    path = tmp_path / "req.yaml"
    path.write_text("- /bin/true\n")
    with pytest.raises(RequestFileError):
        load_request_file(path)
