"""
Run Summary Model
=================
Pydantic models recording what happened to every selected bug in one
initialize-revisions run.

BugOutcome.status is one of:
    initialized          — both revisions initialized, patches derived, sanity check passed
    skipped_empty_patch  — patches derived, source patch empty, sanity check skipped
    failed               — a pipeline stage raised; see failure_reason / failure_stage

Used by:
    - Orchestrator to track per-bug results
    - ResultsWriter to persist the run as JSON
    - GET /results/{pid}
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from bugmine.models.layout import Layout
from bugmine.models.sanity_result import SanityResult

STATUS_INITIALIZED = "initialized"
STATUS_SKIPPED_EMPTY_PATCH = "skipped_empty_patch"
STATUS_FAILED = "failed"


class BugOutcome(BaseModel):
    bug_id: int
    status: str = "pending"
    buggy_rev: str = ""
    fixed_rev: str = ""
    layout: Optional[Layout] = None
    src_patch_hash: str = ""
    test_patch_hash: str = ""
    sanity: Optional[SanityResult] = None
    failure_reason: str = ""
    failure_stage: str = ""
    error_message: str = ""
    elapsed_seconds: float = 0.0


class RunSummary(BaseModel):
    project_id: str
    selection: str = ""
    fail_fast: bool = True
    started_at: datetime
    finished_at: Optional[datetime] = None
    outcomes: List[BugOutcome] = []
    fileset_report_path: str = ""

    @property
    def failed(self) -> List[BugOutcome]:
        return [o for o in self.outcomes if o.status == STATUS_FAILED]

    @property
    def succeeded(self) -> bool:
        return not self.failed
