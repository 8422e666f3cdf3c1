"""
GET /results/{project_id}
Returns the summary of the last initialize-revisions run of a project.
"""
from typing import Optional

from fastapi import APIRouter, HTTPException

from bugmine.core.config import PipelineConfig
from bugmine.models.run_summary import RunSummary
from bugmine.services.results_writer import ResultsWriter

router = APIRouter()


@router.get("/results/{project_id}", response_model=RunSummary)
async def get_results(project_id: str, work_dir: Optional[str] = None):
    config = PipelineConfig.from_work_dir(work_dir)
    summary = ResultsWriter.read_results(config.project_dir(project_id))
    if summary is None:
        raise HTTPException(status_code=404, detail=f"No results for {project_id}")
    return summary
