"""Dependency operations as plain data, shared by the CLI and the web API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

from . import graph
from .events import EventLog
from .graph.errors import CycleDetected, IssueNotFound, MalformedRequest, PartialWriteFailure
from .graph.view import node_from_record
from .records import summary
from .storage import IssueRepository


@dataclass
class DependencyService:
    repo: IssueRepository
    events: EventLog | None = None
    include_closed: bool = False
    source: str = "cli"

    @classmethod
    def for_repo(
        cls,
        repo: IssueRepository,
        *,
        include_closed: bool = False,
        source: str = "cli",
    ) -> "DependencyService":
        return cls(
            repo,
            events=EventLog.for_issues_dir(repo.issues_dir),
            include_closed=include_closed,
            source=source,
        )

    def _emit(self, event_type: str, issue_id: int, payload: dict[str, Any]) -> None:
        if self.events is not None:
            self.events.emit(event_type, source=self.source, issue_id=issue_id, payload=payload)

    def _nodes(self) -> dict[int, graph.IssueNode]:
        return graph.load_nodes(self.repo, include_closed=self.include_closed)

    def _require(self, issue_id: int) -> dict[str, Any]:
        record = self.repo.get(issue_id)
        if record is None:
            raise IssueNotFound(issue_id)
        return record

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def depend(
        self,
        subject: int,
        add: Iterable[int] = (),
        remove: Iterable[int] = (),
    ) -> dict[str, Any]:
        add_ids = list(dict.fromkeys(add))
        remove_ids = list(dict.fromkeys(remove))
        request = {"add": add_ids, "remove": remove_ids}
        try:
            depends_on = graph.apply(self.repo, subject, add_ids, remove_ids)
        except (CycleDetected, IssueNotFound, MalformedRequest) as exc:
            self._emit(
                "dep.rejected",
                subject,
                {**request, "error": type(exc).__name__, "message": str(exc)},
            )
            raise
        except PartialWriteFailure as exc:
            self._emit(
                "dep.partial_write",
                subject,
                {
                    **request,
                    "failures": [
                        {"id": issue_id, "cause": str(cause)}
                        for issue_id, cause in exc.failures
                    ],
                },
            )
            raise

        self._emit("dep.changed", subject, {**request, "depends_on": depends_on})
        return {
            "id": subject,
            "added": add_ids,
            "removed": remove_ids,
            "depends_on": depends_on,
        }

    def dependencies(self, subject: int) -> dict[str, Any]:
        """Prerequisites of *subject* and working-set issues that depend on it."""
        record = self._require(subject)

        depends_on = []
        for dep in record["depends_on"]:
            dep_record = self.repo.get(dep)
            if dep_record is not None:
                depends_on.append(summary(dep_record))

        blocks = [
            summary(row)
            for row in self.repo.list(include_closed=self.include_closed)
            if subject in row["depends_on"]
        ]
        return {
            "issue": {"id": subject, "title": record["title"]},
            "depends_on": depends_on,
            "blocks": blocks,
        }

    def critical_path(self) -> dict[str, Any]:
        records = {row["id"]: row for row in self.repo.list(include_closed=self.include_closed)}
        chain = graph.longest_chain(graph.build_nodes(records.values()))
        return {
            "length": len(chain),
            "chain": [
                {
                    **summary(records[issue_id]),
                    "priority": records[issue_id]["priority"],
                }
                for issue_id in chain
            ],
        }

    def deps_graph(self, focus: int | None = None) -> dict[str, Any]:
        records = {row["id"]: row for row in self.repo.list(include_closed=self.include_closed)}
        nodes = graph.build_nodes(records.values())
        if focus is not None:
            if focus not in nodes:
                # Outside the working set (e.g. closed) but still a valid focus.
                focus_record = self._require(focus)
                records[focus] = focus_record
                nodes[focus] = node_from_record(focus_record)
            ids = graph.closure(focus, nodes)
        else:
            ids = set(nodes)

        return {
            "focus": focus,
            "layers": [
                [
                    {
                        **summary(records[issue_id]),
                        "depends_on": list(nodes[issue_id].depends_on),
                    }
                    for issue_id in layer
                ]
                for layer in graph.layers(ids, nodes)
            ],
        }

    def cycles(self) -> dict[str, Any]:
        return {"cycles": graph.find_cycles(self._nodes())}

    def history(
        self,
        issue_id: int | None = None,
        *,
        event_type: str | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        if self.events is None:
            return []
        return self.events.read(event_type=event_type, issue_id=issue_id, limit=limit)

    def doctor(self, *, fix: bool = False) -> dict[str, Any]:
        """Check stored edges against the invariants of the graph.

        Always checks every issue, open or closed, and reports issues listing
        themselves (``self_loops``), half-edges (``asymmetries``), references
        to issues with no record (``dangling`` for ``depends_on``,
        ``dangling_blocks`` for ``blocks``) and cycles. With *fix*, drops
        self references from ``depends_on`` and rewrites every ``blocks``
        list from the ``depends_on`` lists, logging one ``blocks.repaired``
        event per rewritten issue. Dangling ``depends_on`` entries are kept.
        """
        records = {row["id"]: row for row in self.repo.list(include_closed=True)}
        nodes = graph.build_nodes(records.values())

        self_loops = sorted(
            issue_id
            for issue_id, row in records.items()
            if issue_id in row["depends_on"] or issue_id in row["blocks"]
        )
        dangling = sorted(
            (issue_id, dep)
            for issue_id, row in records.items()
            for dep in row["depends_on"]
            if dep not in records
        )
        dangling_blocks = sorted(
            (issue_id, blocked)
            for issue_id, row in records.items()
            for blocked in row["blocks"]
            if blocked not in records
        )

        repaired: list[int] = []
        if fix:
            derived = graph.recompute_blocks(nodes)
            for issue_id in sorted(records):
                row = records[issue_id]
                blocks = list(derived[issue_id])
                if row["blocks"] == blocks and issue_id not in row["depends_on"]:
                    continue

                def mutate(record: dict[str, Any], blocks: list[int] = blocks) -> None:
                    record["depends_on"] = [
                        dep for dep in record["depends_on"] if dep != record["id"]
                    ]
                    record["blocks"] = blocks

                self.repo.update(issue_id, mutate)
                repaired.append(issue_id)
                self._emit(
                    "blocks.repaired",
                    issue_id,
                    {"before": row["blocks"], "after": blocks},
                )

        return {
            "self_loops": self_loops,
            "asymmetries": [
                {"id": p.issue_id, "field": p.field, "other": p.other}
                for p in graph.asymmetries(nodes)
            ],
            "dangling": [{"id": issue_id, "depends_on": dep} for issue_id, dep in dangling],
            "dangling_blocks": [
                {"id": issue_id, "blocks": blocked} for issue_id, blocked in dangling_blocks
            ],
            "cycles": graph.find_cycles(nodes),
            "repaired": repaired,
        }
