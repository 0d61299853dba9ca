from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import tomllib

from .records import ISSUE_PRIORITIES


CONFIG_FILENAME = ".bugledger.toml"


@dataclass(frozen=True)
class BugledgerConfig:
    issues_root: Path
    default_priority: str = "medium"
    include_closed: bool = False
    path: Path | None = None
    error: str | None = None


class ConfigValidationError(ValueError):
    pass


def _as_table(value: object, *, field: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigValidationError(f"[{field}] must be a table")
    return value


def _as_bool(value: object, *, field: str, default: bool) -> bool:
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ConfigValidationError(f"{field} must be true or false")
    return value


def _as_priority(value: object) -> str:
    if value is None:
        return "medium"
    if not isinstance(value, str) or value.strip().lower() not in ISSUE_PRIORITIES:
        raise ConfigValidationError(
            "[issues].default_priority must be one of " + ", ".join(ISSUE_PRIORITIES)
        )
    return value.strip().lower()


def find_config(start: Path | None = None) -> Path | None:
    """Walk up from *start* looking for ``.bugledger.toml``."""
    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def parse_config(raw: dict[str, Any], *, base_dir: Path) -> BugledgerConfig:
    issues = _as_table(raw.get("issues"), field="issues")
    graph = _as_table(raw.get("graph"), field="graph")

    root_value = issues.get("root")
    if root_value is None:
        issues_root = base_dir
    elif isinstance(root_value, str) and root_value.strip():
        issues_root = (base_dir / Path(root_value.strip()).expanduser()).resolve()
    else:
        raise ConfigValidationError("[issues].root must be a non-empty string")

    return BugledgerConfig(
        issues_root=issues_root,
        default_priority=_as_priority(issues.get("default_priority")),
        include_closed=_as_bool(
            graph.get("include_closed"), field="[graph].include_closed", default=False
        ),
    )


def load_config(start: Path | None = None) -> BugledgerConfig:
    """Load the nearest config; fall back to defaults rooted at *start*.

    Problems never raise: the returned config carries an ``error`` string and
    default values instead.
    """
    cwd = start or Path.cwd()
    path = find_config(cwd)
    if path is None:
        return BugledgerConfig(issues_root=cwd)

    try:
        raw = tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError) as exc:
        return BugledgerConfig(
            issues_root=path.parent,
            path=path,
            error=f"invalid TOML in {path}: {exc}",
        )

    try:
        config = parse_config(raw, base_dir=path.parent)
    except ConfigValidationError as exc:
        return BugledgerConfig(issues_root=path.parent, path=path, error=f"{path}: {exc}")

    return BugledgerConfig(
        issues_root=config.issues_root,
        default_priority=config.default_priority,
        include_closed=config.include_closed,
        path=path,
    )
