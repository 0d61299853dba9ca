"""Critical path: the longest chain of consecutive dependencies."""

from __future__ import annotations

from typing import Iterator, Mapping

from .view import IssueNode


def longest_chain(nodes: Mapping[int, IssueNode]) -> list[int]:
    """Return the longest ``n0..nk`` where each ``n(i+1)`` depends on ``n(i)``.

    Every node is tried as a start, walking ``blocks`` edges depth-first. A
    node already on the current path is skipped, which ends the branch on a
    cycle. The first longest chain found wins. Exhaustive search: fine for
    the small, sparse graphs an issue tracker holds.
    """
    best: list[int] = []

    def dependents(issue_id: int) -> Iterator[int]:
        return (b for b in nodes[issue_id].blocks if b in nodes)

    for start in sorted(nodes):
        path = [start]
        on_path = {start}
        frames = [dependents(start)]
        if len(path) > len(best):
            best = list(path)

        while frames:
            nxt = next(frames[-1], None)
            if nxt is None:
                frames.pop()
                on_path.discard(path.pop())
                continue
            if nxt in on_path:
                continue
            path.append(nxt)
            on_path.add(nxt)
            frames.append(dependents(nxt))
            if len(path) > len(best):
                best = list(path)

    return best
