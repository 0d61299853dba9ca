"""Errors raised by dependency-graph operations."""

from __future__ import annotations


class GraphError(Exception):
    pass


class IssueNotFound(GraphError, KeyError):
    def __init__(self, issue_id: int) -> None:
        super().__init__(issue_id)
        self.issue_id = issue_id

    def __str__(self) -> str:
        return f"BUG-{self.issue_id} not found"


class CycleDetected(GraphError):
    """Adding ``source -> target`` ("source depends on target") would close a cycle."""

    def __init__(self, source: int, target: int) -> None:
        super().__init__(source, target)
        self.source = source
        self.target = target

    def __str__(self) -> str:
        if self.source == self.target:
            return f"BUG-{self.source} cannot depend on itself"
        return (
            f"BUG-{self.source} cannot depend on BUG-{self.target}: "
            f"BUG-{self.target} already depends on BUG-{self.source}"
        )


class MalformedRequest(GraphError, ValueError):
    pass


class PartialWriteFailure(GraphError):
    """A ``blocks`` update failed after the subject's ``depends_on`` was saved.

    ``failures`` lists every ``(issue_id, cause)`` pair; ``issue_id``/``cause``
    mirror the first one.
    """

    def __init__(
        self,
        subject: int,
        failures: list[tuple[int, BaseException]],
    ) -> None:
        if not failures:
            raise ValueError("PartialWriteFailure requires at least one failure")
        super().__init__(subject, failures)
        self.subject = subject
        self.failures = list(failures)
        self.issue_id, self.cause = self.failures[0]

    def __str__(self) -> str:
        detail = ", ".join(f"BUG-{issue_id} ({cause})" for issue_id, cause in self.failures)
        return (
            f"BUG-{self.subject} dependencies saved but reverse links failed for "
            f"{detail}; retry the same request or run `bugledger doctor --fix`"
        )
