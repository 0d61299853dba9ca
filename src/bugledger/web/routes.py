"""JSON routes over the dependency operations."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from ..graph.errors import (
    CycleDetected,
    GraphError,
    IssueNotFound,
    MalformedRequest,
    PartialWriteFailure,
)
from ..service import DependencyService
from ..storage import IssueRepository, UnknownReference

router = APIRouter(prefix="/api")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _service(req: Request) -> DependencyService:
    return req.app.state.service


def _repo(req: Request) -> IssueRepository:
    return req.app.state.repo


def _resolve(req: Request, ref: str) -> int:
    try:
        return _repo(req).resolve_ref(ref)
    except UnknownReference as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


def _http_error(exc: GraphError) -> HTTPException:
    if isinstance(exc, IssueNotFound):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, CycleDetected):
        return HTTPException(
            status_code=409,
            detail={"error": str(exc), "from": exc.source, "to": exc.target},
        )
    if isinstance(exc, MalformedRequest):
        return HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, PartialWriteFailure):
        return HTTPException(
            status_code=500,
            detail={
                "error": str(exc),
                "failures": [
                    {"id": issue_id, "cause": str(cause)} for issue_id, cause in exc.failures
                ],
            },
        )
    return HTTPException(status_code=500, detail=str(exc))


# ---------------------------------------------------------------------------
# Data API (read-only)
# ---------------------------------------------------------------------------


@router.get("/issues/{ref}/dependencies")
async def api_dependencies(request: Request, ref: str):
    try:
        return _service(request).dependencies(_resolve(request, ref))
    except GraphError as exc:
        raise _http_error(exc) from exc


@router.get("/critical-path")
async def api_critical_path(request: Request):
    return _service(request).critical_path()


@router.get("/deps-graph")
async def api_deps_graph(request: Request, issue: str | None = None):
    focus = _resolve(request, issue) if issue else None
    try:
        return _service(request).deps_graph(focus)
    except GraphError as exc:
        raise _http_error(exc) from exc


@router.get("/cycles")
async def api_cycles(request: Request):
    return _service(request).cycles()


# ---------------------------------------------------------------------------
# Actions API (mutating)
# ---------------------------------------------------------------------------


class DependRequest(BaseModel):
    add: list[str] = []
    remove: list[str] = []


@router.post("/issues/{ref}/depend")
async def api_depend(request: Request, ref: str, body: DependRequest):
    subject = _resolve(request, ref)
    add = [_resolve(request, dep) for dep in body.add]
    remove = [_resolve(request, dep) for dep in body.remove]
    try:
        return _service(request).depend(subject, add, remove)
    except GraphError as exc:
        raise _http_error(exc) from exc
