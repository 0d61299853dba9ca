from __future__ import annotations

from pathlib import Path

import pytest

from bugledger.graph import IssueNode
from bugledger.storage import IssueRepository


@pytest.fixture
def repo(tmp_path: Path) -> IssueRepository:
    return IssueRepository(tmp_path)


def seed(repo: IssueRepository, count: int) -> list[int]:
    """Create *count* issues titled "Issue N"; returns their ids (1..count)."""
    return [repo.create(f"Issue {n}")["id"] for n in range(1, count + 1)]


def make_nodes(edges: dict[int, list[int]]) -> dict[int, IssueNode]:
    """Build a symmetric snapshot from ``{id: depends_on}``."""
    ids = set(edges)
    for deps in edges.values():
        ids.update(deps)
    blocks: dict[int, set[int]] = {issue_id: set() for issue_id in ids}
    for issue_id, deps in edges.items():
        for dep in deps:
            blocks[dep].add(issue_id)
    return {
        issue_id: IssueNode(
            id=issue_id,
            depends_on=tuple(sorted(set(edges.get(issue_id, [])))),
            blocks=tuple(sorted(blocks[issue_id])),
        )
        for issue_id in ids
    }
