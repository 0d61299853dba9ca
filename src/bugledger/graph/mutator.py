"""Add and remove dependency edges, keeping depends_on/blocks symmetric."""

from __future__ import annotations

from typing import Any, Callable, Iterable, Protocol

from .errors import CycleDetected, IssueNotFound, MalformedRequest, PartialWriteFailure
from .guard import would_cycle


class IssueRepository(Protocol):
    def get(self, issue_id: int) -> dict[str, Any] | None: ...

    def update(
        self, issue_id: int, mutator: Callable[[dict[str, Any]], None]
    ) -> dict[str, Any]: ...


def _dedupe(ids: Iterable[int]) -> list[int]:
    return list(dict.fromkeys(int(i) for i in ids))


def _link(subject: int) -> Callable[[dict[str, Any]], None]:
    def mutate(record: dict[str, Any]) -> None:
        record["blocks"] = sorted(set(record.get("blocks") or []) | {subject})

    return mutate


def _unlink(subject: int) -> Callable[[dict[str, Any]], None]:
    def mutate(record: dict[str, Any]) -> None:
        record["blocks"] = sorted(set(record.get("blocks") or []) - {subject})

    return mutate


def apply(
    repo: IssueRepository,
    subject: int,
    add: Iterable[int] = (),
    remove: Iterable[int] = (),
) -> list[int]:
    """Make *subject* depend on every id in *add* and on none in *remove*.

    All checks run before the first write: an unknown id or a single cyclic
    candidate rejects the whole request. Removal is applied after addition, so
    an id in both lists ends up absent. Returns the new ``depends_on``.

    The subject is written first, then each counterpart's ``blocks``. Those
    writes are separate files; if any of them fails the rest are still
    attempted and :class:`PartialWriteFailure` is raised with every failure.
    """
    add_ids = _dedupe(add)
    remove_ids = _dedupe(remove)
    if not add_ids and not remove_ids:
        raise MalformedRequest("nothing to add or remove")
    if subject in add_ids:
        raise CycleDetected(subject, subject)

    if repo.get(subject) is None:
        raise IssueNotFound(subject)
    for dep in add_ids:
        if repo.get(dep) is None:
            raise IssueNotFound(dep)
    for dep in add_ids:
        if would_cycle(repo, subject, dep):
            raise CycleDetected(subject, dep)

    def mutate_subject(record: dict[str, Any]) -> None:
        deps = set(record.get("depends_on") or [])
        deps.update(add_ids)
        deps.difference_update(remove_ids)
        record["depends_on"] = sorted(deps)

    updated = repo.update(subject, mutate_subject)

    failures: list[tuple[int, BaseException]] = []
    for dep in add_ids:
        try:
            repo.update(dep, _link(subject))
        except Exception as exc:
            failures.append((dep, exc))
    for dep in remove_ids:
        if dep == subject:
            continue
        try:
            # A removed id may be a dangling reference with no record left.
            if dep not in add_ids and repo.get(dep) is None:
                continue
            repo.update(dep, _unlink(subject))
        except Exception as exc:
            failures.append((dep, exc))

    if failures:
        raise PartialWriteFailure(subject, failures)
    return list(updated["depends_on"])
