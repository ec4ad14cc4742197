"""HTTP API over the repository coordinator.

Routes:
  GET /{owner}/{repo}?a=<user>  — who approved <user>'s pull requests
  GET /{owner}/{repo}?r=<user>  — whose pull requests <user> approved
  GET /health                   — liveness probe

The app knows nothing about the config file format: the CLI builds the
coordinator and the allow list and hands them to create_app().
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.responses import PlainTextResponse

from mergelens_core.coordinator import AnalysisError, CoordinatorClosedError, RepoCoordinator
from mergelens_core.models import RepoId

logger = logging.getLogger(__name__)

router = APIRouter()


def get_coordinator(request: Request) -> RepoCoordinator:
    return request.app.state.coordinator


def get_allow_list(request: Request) -> frozenset[RepoId]:
    return request.app.state.allow_list


@router.get("/health")
def health():
    return {"status": "ok"}


@router.get("/{owner}/{repo}", response_class=PlainTextResponse)
async def repo_report(
    owner: str,
    repo: str,
    a: Optional[str] = Query(None, description="Rank the approvers of this author's pull requests"),
    r: Optional[str] = Query(None, description="Rank the authors of pull requests this user approved"),
    coordinator: RepoCoordinator = Depends(get_coordinator),
    allow_list: frozenset[RepoId] = Depends(get_allow_list),
):
    if a is None and r is None:
        return PlainTextResponse("Expected either `a=<username>` or `r=<username>` query parameter", status_code=400)

    repo_id = RepoId(owner=owner, name=repo)
    if repo_id not in allow_list:
        return PlainTextResponse(f"Repository `{repo_id}` is not in the allow list", status_code=403)

    try:
        analysis = await coordinator.request_analysis(repo_id)
    except AnalysisError as e:
        return PlainTextResponse(f"Internal error while analyzing `{repo_id}`: {e.__cause__ or e}", status_code=500)
    except CoordinatorClosedError as e:
        return PlainTextResponse(f"Service unavailable: {e}", status_code=503)

    # `a` wins when both parameters are given.
    if a is not None:
        report = analysis.report_authored_by(a)
        return report or f"{a} does not have any pull requests merged into `{repo_id}`"

    report = analysis.report_approved_by(r)
    return report or f"{r} hasn't approved any pull requests in `{repo_id}`"


def create_app(coordinator: RepoCoordinator, allow_list: Iterable[RepoId]) -> FastAPI:
    """Build the FastAPI app; the coordinator runs for the lifetime of the app."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        coordinator.start()
        logger.info("Serving %d allow-listed repositories", len(app.state.allow_list))
        try:
            yield
        finally:
            await coordinator.close()

    app = FastAPI(
        title="mergelens",
        description="Rankings of pull request authors and approvers mined from merge-bot commits.",
        lifespan=lifespan,
    )
    app.state.coordinator = coordinator
    app.state.allow_list = frozenset(allow_list)
    app.include_router(router)
    return app
