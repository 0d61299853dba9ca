"""Issue records: field vocabularies, normalization, and MDX (frontmatter) codec."""

from __future__ import annotations

import re
from typing import Any

import yaml

from .jsonl import now_ts


ISSUE_STATUSES = (
    "not_started",
    "in_progress",
    "blocked",
    "done",
    "closed",
)
ISSUE_PRIORITIES = (
    "critical",
    "high",
    "medium",
    "low",
)
STATUS_MARKERS = {
    "not_started": "⭕",
    "in_progress": "🔄",
    "blocked": "🚫",
    "done": "✅",
    "closed": "✅",
}

# Frontmatter key order on disk.
_FIELD_ORDER = (
    "id",
    "title",
    "priority",
    "status",
    "created",
    "files",
    "effort",
    "context",
    "started",
    "blocked_reason",
    "closed",
    "depends_on",
    "blocks",
)
_OPTIONAL_FIELDS = ("effort", "context", "started", "blocked_reason", "closed")

_FRONTMATTER_RE = re.compile(r"^---\s*\n(.*?)\n---\s*\n(.*)", re.DOTALL)
_SLUG_RE = re.compile(r"[^a-zA-Z0-9]+")


def normalize_status(status: str) -> str:
    value = status.strip().lower()
    if value not in ISSUE_STATUSES:
        raise ValueError(f"invalid status: {status}")
    return value


def normalize_priority(priority: str) -> str:
    value = priority.strip().lower()
    if value not in ISSUE_PRIORITIES:
        raise ValueError(f"invalid priority: {priority}")
    return value


def priority_rank(priority: str) -> int:
    try:
        return ISSUE_PRIORITIES.index(priority)
    except ValueError:
        return len(ISSUE_PRIORITIES)


def _id_list(value: object, *, field: str) -> list[int]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"{field} must be a list of issue ids")
    ids: set[int] = set()
    for item in value:
        if isinstance(item, bool) or not isinstance(item, int) or item <= 0:
            raise ValueError(f"{field} contains an invalid issue id: {item!r}")
        ids.add(item)
    return sorted(ids)


def slugify(title: str) -> str:
    return _SLUG_RE.sub("-", title.strip().lower()).strip("-")


def new_record(
    issue_id: int,
    title: str,
    *,
    priority: str = "medium",
    files: list[str] | None = None,
    issue: str = "",
    impact: str = "",
    acceptance: str = "",
    effort: str | None = None,
    context: str | None = None,
) -> dict[str, Any]:
    """Build a fresh ``not_started`` record with empty dependency lists."""
    issue_title = title.strip()
    if not issue_title:
        raise ValueError("title cannot be empty")

    body = f"# BUG-{issue_id}: {issue_title}\n\n"
    if issue:
        body += f"**Issue**: {issue}\n\n"
    if impact:
        body += f"**Impact**: {impact}\n\n"
    if acceptance:
        body += f"**Acceptance**: {acceptance}\n\n"

    return {
        "id": issue_id,
        "title": issue_title,
        "priority": normalize_priority(priority),
        "status": "not_started",
        "created": now_ts(),
        "files": list(files or []),
        "effort": effort,
        "context": context,
        "started": None,
        "blocked_reason": None,
        "closed": None,
        "depends_on": [],
        "blocks": [],
        "body": body,
    }


def parse_mdx(text: str, *, source: str = "<issue>") -> dict[str, Any]:
    """Parse an MDX issue file into a record dict (frontmatter fields + ``body``)."""
    match = _FRONTMATTER_RE.match(text)
    if match is None:
        raise ValueError(f"{source}: invalid MDX format: missing frontmatter")
    try:
        meta = yaml.safe_load(match.group(1)) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"{source}: failed to parse YAML frontmatter: {exc}") from exc
    if not isinstance(meta, dict):
        raise ValueError(f"{source}: frontmatter must be a mapping")

    issue_id = meta.get("id")
    if isinstance(issue_id, bool) or not isinstance(issue_id, int) or issue_id <= 0:
        raise ValueError(f"{source}: frontmatter id must be a positive integer")

    record: dict[str, Any] = dict(meta)
    record["title"] = str(meta.get("title") or "")
    record["priority"] = str(meta.get("priority") or "medium")
    record["status"] = str(meta.get("status") or "not_started")
    record["files"] = list(meta.get("files") or [])
    for key in _OPTIONAL_FIELDS:
        record.setdefault(key, None)
    record["depends_on"] = _id_list(meta.get("depends_on"), field=f"{source}: depends_on")
    record["blocks"] = _id_list(meta.get("blocks"), field=f"{source}: blocks")
    record["body"] = match.group(2)
    return record


def render_mdx(record: dict[str, Any]) -> str:
    meta: dict[str, Any] = {}
    for key in _FIELD_ORDER:
        value = record.get(key)
        if key in _OPTIONAL_FIELDS and value is None:
            continue
        meta[key] = value
    for key, value in record.items():
        if key not in meta and key not in _FIELD_ORDER and key != "body":
            meta[key] = value
    meta["depends_on"] = sorted(set(record.get("depends_on") or []))
    meta["blocks"] = sorted(set(record.get("blocks") or []))
    header = yaml.safe_dump(meta, sort_keys=False, allow_unicode=True)
    return f"---\n{header}---\n\n{record.get('body', '')}"


def summary(record: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": record["id"],
        "title": record.get("title", ""),
        "status": record.get("status", "not_started"),
    }
