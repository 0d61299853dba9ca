"""Read-only graph snapshot built from repository records."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Protocol


class IssueSource(Protocol):
    def get(self, issue_id: int) -> dict[str, Any] | None: ...

    def list(self, *, include_closed: bool = False) -> list[dict[str, Any]]: ...


@dataclass(frozen=True)
class IssueNode:
    id: int
    depends_on: tuple[int, ...] = ()
    blocks: tuple[int, ...] = ()


@dataclass(frozen=True)
class Asymmetry:
    """One half-edge: ``issue_id`` lists ``other`` under ``field`` but not vice versa."""

    issue_id: int
    field: str
    other: int


def node_from_record(record: Mapping[str, Any]) -> IssueNode:
    issue_id = int(record["id"])
    return IssueNode(
        id=issue_id,
        depends_on=tuple(sorted({int(d) for d in record.get("depends_on") or []} - {issue_id})),
        blocks=tuple(sorted({int(b) for b in record.get("blocks") or []} - {issue_id})),
    )


def build_nodes(records: Iterable[Mapping[str, Any]]) -> dict[int, IssueNode]:
    nodes: dict[int, IssueNode] = {}
    for record in records:
        node = node_from_record(record)
        nodes[node.id] = node
    return nodes


def load_nodes(repo: IssueSource, *, include_closed: bool = False) -> dict[int, IssueNode]:
    """Snapshot the working set: open issues, or every issue with *include_closed*."""
    return build_nodes(repo.list(include_closed=include_closed))


def recompute_blocks(nodes: Mapping[int, IssueNode]) -> dict[int, tuple[int, ...]]:
    """Derive each node's ``blocks`` from the ``depends_on`` lists in *nodes*."""
    derived: dict[int, set[int]] = {issue_id: set() for issue_id in nodes}
    for node in nodes.values():
        for dep in node.depends_on:
            if dep in derived:
                derived[dep].add(node.id)
    return {issue_id: tuple(sorted(ids)) for issue_id, ids in derived.items()}


def asymmetries(nodes: Mapping[int, IssueNode]) -> list[Asymmetry]:
    """Every edge whose reverse entry is missing. Ids outside *nodes* are skipped."""
    found: list[Asymmetry] = []
    for issue_id in sorted(nodes):
        node = nodes[issue_id]
        for dep in node.depends_on:
            other = nodes.get(dep)
            if other is not None and issue_id not in other.blocks:
                found.append(Asymmetry(issue_id, "depends_on", dep))
        for blocked in node.blocks:
            other = nodes.get(blocked)
            if other is not None and issue_id not in other.depends_on:
                found.append(Asymmetry(issue_id, "blocks", blocked))
    return found
