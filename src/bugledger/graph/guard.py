"""Cycle guard for candidate dependency edges."""

from __future__ import annotations

from .view import IssueSource


def would_cycle(repo: IssueSource, source: int, target: int) -> bool:
    """Return True if "source depends on target" would close a cycle.

    That is the case exactly when *target* already reaches *source* through
    existing ``depends_on`` edges. Only stored edges are followed, so the walk
    terminates on graphs that are already cyclic.
    """
    if source == target:
        return True

    stack = [target]
    visited: set[int] = set()
    while stack:
        issue_id = stack.pop()
        if issue_id == source:
            return True
        if issue_id in visited:
            continue
        visited.add(issue_id)

        record = repo.get(issue_id)
        if record is None:
            continue
        for dep in record.get("depends_on") or []:
            if dep not in visited:
                stack.append(dep)
    return False
