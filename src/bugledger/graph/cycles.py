"""Cycle detection over a graph snapshot (Tarjan's strongly connected components)."""

from __future__ import annotations

from typing import Mapping

from .view import IssueNode


def find_cycles(nodes: Mapping[int, IssueNode]) -> list[list[int]]:
    """Return every strongly connected component with more than one node.

    Components are sorted ascending and ordered by their smallest id. Edges to
    ids outside *nodes* are ignored. An empty result means the snapshot is
    acyclic.
    """
    index: dict[int, int] = {}
    lowlink: dict[int, int] = {}
    on_stack: set[int] = set()
    scc_stack: list[int] = []
    components: list[list[int]] = []
    counter = 0

    def successors(issue_id: int) -> list[int]:
        return [dep for dep in nodes[issue_id].depends_on if dep in nodes]

    for root in sorted(nodes):
        if root in index:
            continue

        # Each frame is (node, successors, next successor position).
        work: list[tuple[int, list[int], int]] = []
        index[root] = lowlink[root] = counter
        counter += 1
        scc_stack.append(root)
        on_stack.add(root)
        work.append((root, successors(root), 0))

        while work:
            node, succ, pos = work[-1]
            if pos < len(succ):
                work[-1] = (node, succ, pos + 1)
                nxt = succ[pos]
                if nxt not in index:
                    index[nxt] = lowlink[nxt] = counter
                    counter += 1
                    scc_stack.append(nxt)
                    on_stack.add(nxt)
                    work.append((nxt, successors(nxt), 0))
                elif nxt in on_stack:
                    lowlink[node] = min(lowlink[node], index[nxt])
                continue

            work.pop()
            if work:
                parent = work[-1][0]
                lowlink[parent] = min(lowlink[parent], lowlink[node])

            if lowlink[node] == index[node]:
                component: list[int] = []
                while True:
                    member = scc_stack.pop()
                    on_stack.discard(member)
                    component.append(member)
                    if member == node:
                        break
                if len(component) > 1:
                    components.append(sorted(component))

    components.sort(key=lambda component: component[0])
    return components
