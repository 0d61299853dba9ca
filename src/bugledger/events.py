"""Append-only JSONL audit log of dependency changes.

Each line is a fixed, versioned envelope. Appends are a single write under
``flock`` where available, so concurrent CLI invocations never interleave.
"""

from __future__ import annotations

import json
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from .jsonl import now_ts_ms, read_jsonl

try:
    import fcntl
except ImportError:  # not available on Windows
    fcntl = None  # type: ignore[assignment]

EVENT_VERSION = 1
EVENTS_FILE = ".events.jsonl"


@contextmanager
def _locked_append(path: Path) -> Iterator[int]:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd = os.open(path, os.O_WRONLY | os.O_APPEND | os.O_CREAT, 0o644)
    try:
        if fcntl is not None:
            fcntl.flock(fd, fcntl.LOCK_EX)
        yield fd
    finally:
        # Closing the descriptor releases the lock.
        os.close(fd)


class EventLog:
    def __init__(self, path: Path) -> None:
        self.path = path

    @classmethod
    def for_issues_dir(cls, issues_dir: Path) -> "EventLog":
        return cls(issues_dir / EVENTS_FILE)

    def emit(
        self,
        event_type: str,
        *,
        source: str,
        issue_id: int,
        payload: dict[str, Any],
    ) -> dict[str, Any]:
        """Append one event about *issue_id* and return it."""
        event = {
            "v": EVENT_VERSION,
            "ts_ms": now_ts_ms(),
            "type": event_type,
            "source": source,
            "issue_id": issue_id,
            "payload": payload,
        }
        data = (json.dumps(event, separators=(",", ":")) + "\n").encode("utf-8")
        with _locked_append(self.path) as fd:
            view = memoryview(data)
            while view:
                view = view[os.write(fd, view):]
        return event

    def read(
        self,
        *,
        event_type: str | None = None,
        issue_id: int | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Events in append order, optionally filtered.

        *issue_id* matches the event's subject and any issue named in its
        payload (``add``/``remove`` ids), so ``read(issue_id=3)`` also shows
        requests that made something depend on BUG-3. *limit* keeps the most
        recent events.
        """
        rows = [
            row
            for row in read_jsonl(self.path)
            if (event_type is None or row.get("type") == event_type)
            and (issue_id is None or issue_id in _mentioned(row))
        ]
        if limit is not None:
            rows = rows[-limit:] if limit > 0 else []
        return rows


def _mentioned(event: dict[str, Any]) -> set[int]:
    ids = {event.get("issue_id")}
    payload = event.get("payload") or {}
    for key in ("add", "remove"):
        ids.update(payload.get(key) or [])
    return ids
