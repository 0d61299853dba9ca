"""Issue dependency graph: snapshot, guard, mutation and analyses."""

from __future__ import annotations

from .closure import closure
from .critical import longest_chain
from .cycles import find_cycles
from .errors import (
    CycleDetected,
    GraphError,
    IssueNotFound,
    MalformedRequest,
    PartialWriteFailure,
)
from .guard import would_cycle
from .layers import layers
from .mutator import apply
from .view import (
    Asymmetry,
    IssueNode,
    asymmetries,
    build_nodes,
    load_nodes,
    recompute_blocks,
)

__all__ = [
    "Asymmetry",
    "CycleDetected",
    "GraphError",
    "IssueNode",
    "IssueNotFound",
    "MalformedRequest",
    "PartialWriteFailure",
    "apply",
    "asymmetries",
    "build_nodes",
    "closure",
    "find_cycles",
    "layers",
    "load_nodes",
    "longest_chain",
    "recompute_blocks",
    "would_cycle",
]
