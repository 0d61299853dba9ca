from __future__ import annotations

import pytest

from bugledger.records import (
    new_record,
    normalize_priority,
    normalize_status,
    parse_mdx,
    priority_rank,
    render_mdx,
    slugify,
)


_LEGACY = """---
id: 7
title: Parser drops trailing newline
priority: high
status: in_progress
created: 1700000000
files:
- src/parse.rs
---

# BUG-7: Parser drops trailing newline
"""


def test_parse_mdx_defaults_missing_dependency_lists() -> None:
    record = parse_mdx(_LEGACY)

    assert record["id"] == 7
    assert record["priority"] == "high"
    assert record["files"] == ["src/parse.rs"]
    assert record["depends_on"] == []
    assert record["blocks"] == []
    assert record["closed"] is None
    assert record["body"].startswith("# BUG-7: Parser drops trailing newline")


def test_parse_mdx_sorts_and_dedupes_ids() -> None:
    text = _LEGACY.replace("files:", "depends_on: [5, 3, 5]\nblocks: [9]\nfiles:")

    record = parse_mdx(text)

    assert record["depends_on"] == [3, 5]
    assert record["blocks"] == [9]


def test_parse_mdx_rejects_missing_frontmatter() -> None:
    with pytest.raises(ValueError, match="07-x.mdx: invalid MDX format"):
        parse_mdx("# just markdown\n", source="07-x.mdx")


def test_parse_mdx_rejects_bad_ids() -> None:
    with pytest.raises(ValueError, match="depends_on"):
        parse_mdx(_LEGACY.replace("files:", "depends_on: [0]\nfiles:"))
    with pytest.raises(ValueError, match="id must be a positive integer"):
        parse_mdx(_LEGACY.replace("id: 7", "id: seven"))


def test_render_mdx_keeps_unknown_fields_and_omits_unset_optionals() -> None:
    record = parse_mdx(_LEGACY.replace("files:", "owner: sam\nfiles:"))
    record["depends_on"] = [4, 2]

    text = render_mdx(record)

    assert text.startswith("---\nid: 7\ntitle: Parser drops trailing newline\n")
    assert "owner: sam" in text
    assert "closed:" not in text
    assert "depends_on:\n- 2\n- 4\n" in text
    assert parse_mdx(text)["depends_on"] == [2, 4]


def test_new_record_builds_body_sections() -> None:
    record = new_record(3, "  Crash on empty input ", priority="HIGH", issue="panics", impact="data loss")

    assert record["title"] == "Crash on empty input"
    assert record["priority"] == "high"
    assert record["status"] == "not_started"
    assert record["depends_on"] == [] and record["blocks"] == []
    assert record["body"].startswith("# BUG-3: Crash on empty input\n\n**Issue**: panics\n\n")
    assert "**Impact**: data loss" in record["body"]
    assert "**Acceptance**" not in record["body"]


def test_new_record_rejects_empty_title() -> None:
    with pytest.raises(ValueError, match="title cannot be empty"):
        new_record(1, "   ")


def test_vocabularies() -> None:
    assert normalize_status(" Blocked ") == "blocked"
    assert normalize_priority("Low") == "low"
    with pytest.raises(ValueError, match="invalid status"):
        normalize_status("wontfix")
    assert priority_rank("critical") < priority_rank("low") < priority_rank("unknown")
    assert slugify("Fix: crash on /tmp paths!") == "fix-crash-on-tmp-paths"
