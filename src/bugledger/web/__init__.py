"""bugledger JSON API: FastAPI app factory."""

from __future__ import annotations

from pathlib import Path

from fastapi import FastAPI

from .. import __version__
from ..config import load_config
from ..service import DependencyService
from ..storage import IssueRepository


def create_app(repo_root: Path | None = None, *, include_closed: bool | None = None) -> FastAPI:
    config = load_config(repo_root)
    repo = IssueRepository(config.issues_root)
    service = DependencyService.for_repo(
        repo,
        include_closed=config.include_closed if include_closed is None else include_closed,
        source="web",
    )

    app = FastAPI(title="bugledger", version=__version__)
    app.state.repo = repo
    app.state.service = service
    app.state.config = config

    from .routes import router

    app.include_router(router)
    return app
