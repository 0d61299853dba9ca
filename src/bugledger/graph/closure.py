"""Dependency closure of one issue: its prerequisites and its dependents."""

from __future__ import annotations

from collections import deque
from typing import Mapping

from .view import IssueNode


def _walk(root: int, nodes: Mapping[int, IssueNode], field: str) -> set[int]:
    seen: set[int] = set()
    q: deque[int] = deque([root])
    while q:
        issue_id = q.popleft()
        if issue_id in seen:
            continue
        seen.add(issue_id)
        node = nodes.get(issue_id)
        if node is None:
            continue
        for other in getattr(node, field):
            if other in nodes and other not in seen:
                q.append(other)
    return seen


def closure(root: int, nodes: Mapping[int, IssueNode]) -> set[int]:
    """Return *root*, everything it transitively depends on, and everything
    that transitively depends on it.

    The two directions are walked separately, so a sibling that only shares a
    prerequisite with *root* is not included.
    """
    return _walk(root, nodes, "depends_on") | _walk(root, nodes, "blocks")
