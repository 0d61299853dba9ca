"""File-backed issue repository: one MDX file per issue under issues/open|closed."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Callable

import yaml

from .graph.errors import IssueNotFound
from .jsonl import now_ts, write_text_atomic
from .records import (
    new_record,
    normalize_status,
    parse_mdx,
    render_mdx,
    slugify,
)

ISSUES_DIR = "issues"
OPEN_DIR = "open"
CLOSED_DIR = "closed"
ALIASES_FILE = ".aliases.yaml"

_ISSUE_FILE_RE = re.compile(r"^(\d+)-.*\.mdx?$")
_BUG_REF_RE = re.compile(r"^(?:bug-)?(\d+)$", re.IGNORECASE)


class UnknownReference(LookupError):
    pass


class IssueRepository:
    """Issue store rooted at ``<base_dir>/issues``.

    Every call goes back to disk; nothing is cached between operations.
    """

    def __init__(self, base_dir: Path) -> None:
        self.base_dir = base_dir

    @classmethod
    def from_workdir(cls, root: Path | None = None) -> IssueRepository:
        return cls(root or Path.cwd())

    @property
    def issues_dir(self) -> Path:
        return self.base_dir / ISSUES_DIR

    @property
    def open_dir(self) -> Path:
        return self.issues_dir / OPEN_DIR

    @property
    def closed_dir(self) -> Path:
        return self.issues_dir / CLOSED_DIR

    @property
    def aliases_path(self) -> Path:
        return self.issues_dir / ALIASES_FILE

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    def _iter_files(self, *dirs: Path):
        for directory in dirs:
            if not directory.is_dir():
                continue
            for path in sorted(directory.iterdir()):
                match = _ISSUE_FILE_RE.match(path.name)
                if match and path.is_file():
                    yield int(match.group(1)), path

    def find_path(self, issue_id: int) -> Path | None:
        for file_id, path in self._iter_files(self.open_dir, self.closed_dir):
            if file_id == issue_id:
                return path
        return None

    def _read(self, path: Path) -> dict[str, Any]:
        return parse_mdx(path.read_text(encoding="utf-8"), source=str(path))

    def _write(self, path: Path, record: dict[str, Any]) -> None:
        write_text_atomic(path, render_mdx(record))

    def _target_path(self, record: dict[str, Any], *, is_open: bool) -> Path:
        directory = self.open_dir if is_open else self.closed_dir
        return directory / f"{record['id']:02d}-{slugify(record['title'])}.mdx"

    # ------------------------------------------------------------------
    # Repository contract
    # ------------------------------------------------------------------

    def get(self, issue_id: int) -> dict[str, Any] | None:
        path = self.find_path(issue_id)
        if path is None:
            return None
        return self._read(path)

    def exists(self, issue_id: int) -> bool:
        return self.find_path(issue_id) is not None

    def list(self, *, include_closed: bool = False) -> list[dict[str, Any]]:
        dirs = [self.open_dir]
        if include_closed:
            dirs.append(self.closed_dir)
        rows = [self._read(path) for _, path in self._iter_files(*dirs)]
        rows.sort(key=lambda row: row["id"])
        return rows

    def update(
        self, issue_id: int, mutator: Callable[[dict[str, Any]], None]
    ) -> dict[str, Any]:
        """Load one record, apply *mutator* in place, and write it back."""
        path = self.find_path(issue_id)
        if path is None:
            raise IssueNotFound(issue_id)
        record = self._read(path)
        mutator(record)
        record["id"] = issue_id
        self._write(path, record)
        return record

    def next_id(self) -> int:
        ids = [file_id for file_id, _ in self._iter_files(self.open_dir, self.closed_dir)]
        return max(ids, default=0) + 1

    def create(self, title: str, **fields: Any) -> dict[str, Any]:
        record = new_record(self.next_id(), title, **fields)
        self._write(self._target_path(record, is_open=True), record)
        return record

    def _move(self, issue_id: int, *, to_open: bool, **fields: Any) -> dict[str, Any]:
        src = self.find_path(issue_id)
        if src is None:
            raise IssueNotFound(issue_id)
        record = self._read(src)
        record.update(fields)
        dest = self._target_path(record, is_open=to_open)
        self._write(dest, record)
        if dest != src:
            src.unlink()
        return record

    def close(self, issue_id: int) -> dict[str, Any]:
        return self._move(issue_id, to_open=False, status="closed", closed=now_ts())

    def reopen(self, issue_id: int) -> dict[str, Any]:
        return self._move(issue_id, to_open=True, status="not_started", closed=None)

    def is_open(self, issue_id: int) -> bool:
        path = self.find_path(issue_id)
        return path is not None and path.parent == self.open_dir

    def set_status(self, issue_id: int, status: str, **fields: Any) -> dict[str, Any]:
        """Change the status of an open issue. Edges are left alone.

        Closing goes through :meth:`close`, which also moves the file.
        """
        value = normalize_status(status)
        if value == "closed":
            raise ValueError("use close() to close an issue")
        record = self.get(issue_id)
        if record is None:
            raise IssueNotFound(issue_id)
        if record["status"] == "closed":
            raise ValueError(f"BUG-{issue_id} is closed; reopen it before changing its status")

        def mutate(row: dict[str, Any]) -> None:
            row["status"] = value
            row.update(fields)

        return self.update(issue_id, mutate)

    def start(self, issue_id: int) -> dict[str, Any]:
        return self.set_status(issue_id, "in_progress", started=now_ts(), blocked_reason=None)

    def block(self, issue_id: int, reason: str) -> dict[str, Any]:
        text = reason.strip()
        if not text:
            raise ValueError("a blocked issue needs a reason")
        return self.set_status(issue_id, "blocked", blocked_reason=text)

    def finish(self, issue_id: int) -> dict[str, Any]:
        return self.set_status(issue_id, "done", blocked_reason=None)

    # ------------------------------------------------------------------
    # References and aliases
    # ------------------------------------------------------------------

    def load_aliases(self) -> dict[str, int]:
        if not self.aliases_path.exists():
            return {}
        try:
            raw = yaml.safe_load(self.aliases_path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"{self.aliases_path}: failed to parse aliases: {exc}") from exc
        if not isinstance(raw, dict):
            raise ValueError(f"{self.aliases_path}: aliases must be a mapping of name to id")
        aliases: dict[str, int] = {}
        for name, value in raw.items():
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ValueError(f"{self.aliases_path}: alias {name!r} has invalid id {value!r}")
            aliases[str(name)] = value
        return aliases

    def save_aliases(self, aliases: dict[str, int]) -> None:
        write_text_atomic(
            self.aliases_path,
            yaml.safe_dump(dict(sorted(aliases.items())), sort_keys=False),
        )

    def add_alias(self, issue_id: int, alias: str) -> None:
        name = alias.strip()
        if not name or _BUG_REF_RE.match(name):
            raise ValueError(f"invalid alias: {alias!r}")
        if not self.exists(issue_id):
            raise IssueNotFound(issue_id)
        aliases = self.load_aliases()
        aliases[name] = issue_id
        self.save_aliases(aliases)

    def remove_alias(self, alias: str) -> bool:
        aliases = self.load_aliases()
        if aliases.pop(alias, None) is None:
            return False
        self.save_aliases(aliases)
        return True

    def resolve_ref(self, ref: str | int) -> int:
        """Resolve ``12``, ``BUG-12`` or an alias to an issue id."""
        if isinstance(ref, int):
            return ref
        text = ref.strip()
        match = _BUG_REF_RE.match(text)
        if match:
            return int(match.group(1))
        aliases = self.load_aliases()
        if text in aliases:
            return aliases[text]
        raise UnknownReference(f"unknown issue reference: {ref}")
