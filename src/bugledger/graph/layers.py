"""Topological layering for drawing the dependency graph."""

from __future__ import annotations

from typing import Iterable, Mapping

from .view import IssueNode


def layers(ids: Iterable[int], nodes_by_id: Mapping[int, IssueNode]) -> list[list[int]]:
    """Partition *ids* so each node sits after all its in-set prerequisites.

    Prerequisites outside *ids* are ignored. If a pass places nothing (a
    cycle), every remaining id goes into one final layer.
    """
    remaining = set(ids)
    working_set = frozenset(remaining)
    placed: set[int] = set()
    result: list[list[int]] = []

    while remaining:
        eligible = sorted(
            issue_id
            for issue_id in remaining
            if all(
                dep in placed or dep not in working_set
                for dep in _depends_on(issue_id, nodes_by_id)
            )
        )
        if not eligible:
            result.append(sorted(remaining))
            break
        result.append(eligible)
        placed.update(eligible)
        remaining.difference_update(eligible)

    return result


def _depends_on(issue_id: int, nodes_by_id: Mapping[int, IssueNode]) -> tuple[int, ...]:
    node = nodes_by_id.get(issue_id)
    return node.depends_on if node is not None else ()
