from __future__ import annotations

from pathlib import Path

from bugledger.config import CONFIG_FILENAME, load_config


def _write_config(root: Path, body: str) -> Path:
    path = root / CONFIG_FILENAME
    path.write_text(body.strip() + "\n", encoding="utf-8")
    return path


def test_load_config_defaults_without_file(tmp_path: Path) -> None:
    cfg = load_config(tmp_path)

    assert cfg.path is None
    assert cfg.error is None
    assert cfg.issues_root == tmp_path
    assert cfg.default_priority == "medium"
    assert cfg.include_closed is False


def test_load_config_found_from_subdirectory(tmp_path: Path) -> None:
    path = _write_config(
        tmp_path,
        """
[issues]
root = "tracker"
default_priority = "High"

[graph]
include_closed = true
""",
    )
    nested = tmp_path / "src" / "pkg"
    nested.mkdir(parents=True)

    cfg = load_config(nested)

    assert cfg.error is None
    assert cfg.path == path.resolve()
    assert cfg.issues_root == (tmp_path / "tracker").resolve()
    assert cfg.default_priority == "high"
    assert cfg.include_closed is True


def test_load_config_reports_invalid_toml(tmp_path: Path) -> None:
    _write_config(tmp_path, "[issues\nroot = 1")

    cfg = load_config(tmp_path)

    assert cfg.error is not None
    assert "invalid TOML" in cfg.error
    assert cfg.include_closed is False


def test_load_config_reports_invalid_priority(tmp_path: Path) -> None:
    _write_config(
        tmp_path,
        """
[issues]
default_priority = "urgent"
""",
    )

    cfg = load_config(tmp_path)

    assert cfg.error is not None
    assert "[issues].default_priority must be one of" in cfg.error
    assert cfg.default_priority == "medium"


def test_load_config_reports_non_bool_include_closed(tmp_path: Path) -> None:
    _write_config(
        tmp_path,
        """
[graph]
include_closed = "yes"
""",
    )

    cfg = load_config(tmp_path)

    assert cfg.error is not None
    assert "[graph].include_closed must be true or false" in cfg.error


def test_load_config_rejects_non_table_section(tmp_path: Path) -> None:
    _write_config(tmp_path, 'graph = "all"')

    cfg = load_config(tmp_path)

    assert cfg.error is not None
    assert "[graph] must be a table" in cfg.error
