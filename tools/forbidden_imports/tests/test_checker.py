from pathlib import Path

from forbidden_imports.checker import extract_imports, load_config, scan_files


def _config(tmp_path: Path) -> Path:
    cfg = tmp_path / "forbidden_imports.yaml"
    cfg.write_text(
        "layers:\n"
        "  domain:\n"
        "    include: ['domain/*.py']\n"
        "    deny: ['subprocess', 'procrun.adapters']\n"
    )
    return cfg


def test_domain_rejects_subprocess(tmp_path: Path) -> None:
    bad = tmp_path / "domain" / "bad.py"
    bad.parent.mkdir(parents=True)
    bad.write_text("import subprocess\n")

    violations = scan_files(load_config(_config(tmp_path)), [bad])
    assert violations, "Expected a violation for domain layer"
    assert "bad.py:1" in violations[0]


def test_submodule_imports_are_denied(tmp_path: Path) -> None:
    bad = tmp_path / "domain" / "bad.py"
    bad.parent.mkdir(parents=True)
    bad.write_text("x = 1\nfrom procrun.adapters.subprocess_runner import SubprocessRunner\n")

    violations = scan_files(load_config(_config(tmp_path)), [bad])
    assert len(violations) == 1
    assert "bad.py:2" in violations[0]


def test_similar_prefix_is_allowed(tmp_path: Path) -> None:
    ok = tmp_path / "domain" / "ok.py"
    ok.parent.mkdir(parents=True)
    ok.write_text("import subprocess_tee\n")

    assert scan_files(load_config(_config(tmp_path)), [ok]) == []


def test_files_outside_layers_are_ignored(tmp_path: Path) -> None:
    other = tmp_path / "adapters" / "runner.py"
    other.parent.mkdir(parents=True)
    other.write_text("import subprocess\n")

    assert scan_files(load_config(_config(tmp_path)), [other]) == []


def test_relative_imports_are_skipped() -> None:
    assert extract_imports("from . import sibling\nimport os\n") == [("os", 2)]
