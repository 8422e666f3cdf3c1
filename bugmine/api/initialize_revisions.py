"""
POST /initialize-revisions
Runs the initialize-revisions pipeline for one project and returns the
run summary. The run is synchronous; it executes in a worker thread so the
event loop stays responsive.
"""
import logging
import threading
from typing import Optional, Set

from fastapi import APIRouter, HTTPException
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, field_validator

from bugmine.agents.orchestrator import Orchestrator
from bugmine.core.config import PipelineConfig
from bugmine.core.errors import BugMineError, ConfigError
from bugmine.models.run_summary import RunSummary
from bugmine.models.version_id import BugSelection
from bugmine.projects.registry import get_project

logger = logging.getLogger(__name__)

router = APIRouter()

# Projects with a run in progress; runs of one project share scratch roots and patch files
_active_projects: Set[str] = set()
_active_lock = threading.Lock()


class InitializeRequest(BaseModel):
    project_id: str
    work_dir: Optional[str] = None
    bug_id: Optional[str] = None
    fail_fast: bool = True

    @field_validator("bug_id")
    @classmethod
    def validate_selection(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            BugSelection.parse(v)
        return v


def _claim_project(project_id: str) -> bool:
    with _active_lock:
        if project_id in _active_projects:
            return False
        _active_projects.add(project_id)
        return True


def _release_project(project_id: str) -> None:
    with _active_lock:
        _active_projects.discard(project_id)


def _run(request: InitializeRequest) -> RunSummary:
    config = PipelineConfig.from_work_dir(request.work_dir, fail_fast=request.fail_fast)
    project = get_project(request.project_id, config)
    selection = BugSelection.parse(request.bug_id) if request.bug_id else None
    return Orchestrator(config, project).run(selection)


@router.post("/initialize-revisions", response_model=RunSummary)
async def initialize_revisions(request: InitializeRequest):
    if not _claim_project(request.project_id):
        logger.warning("Rejected run for %s: another run is in progress", request.project_id)
        raise HTTPException(
            status_code=409,
            detail=f"A run for project {request.project_id} is already in progress",
        )
    try:
        return await run_in_threadpool(_run, request)
    except ConfigError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except BugMineError as e:
        logger.error("Run aborted [%s]: %s", e.reason, e)
        raise HTTPException(
            status_code=422,
            detail={"reason": e.reason, "message": str(e), "command": e.command},
        )
    finally:
        _release_project(request.project_id)
