"""Low-level file helpers shared by the record store and the event log."""

from __future__ import annotations

import json
import os
import time
from pathlib import Path


def now_ts() -> int:
    return int(time.time())


def now_ts_ms() -> int:
    return time.time_ns() // 1_000_000


def read_jsonl(path: Path) -> list[dict]:
    if not path.exists():
        return []
    rows: list[dict] = []
    with open(path, encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if line:
                rows.append(json.loads(line))
    return rows


def write_text_atomic(path: Path, text: str) -> None:
    """Replace *path* with *text* via a sibling temp file and ``os.replace``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(f".{path.name}.tmp")
    with open(tmp, "w", encoding="utf-8") as f:
        f.write(text)
    os.replace(tmp, path)
