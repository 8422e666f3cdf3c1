"""
Results Writer
==============
Serializes a RunSummary into ``initialize-revisions.json`` in the project
directory, and reads it back for the API.
"""
import json
import logging
import os
from typing import Optional

from bugmine.core.constants import RESULTS_FILE
from bugmine.models.run_summary import RunSummary

logger = logging.getLogger(__name__)


class ResultsWriter:
    """
    Service responsible for persisting the outcome of an
    initialize-revisions run for downstream tooling.
    """

    @staticmethod
    def results_path(project_dir: str) -> str:
        return os.path.join(project_dir, RESULTS_FILE)

    @staticmethod
    def write_results(summary: RunSummary, project_dir: str) -> bool:
        """
        Write the summary as JSON. Returns False (and logs) on I/O errors;
        a summary that cannot be written never masks the run's own outcome.
        """
        output_path = ResultsWriter.results_path(project_dir)
        try:
            data = summary.model_dump(mode="json")
            data["totals"] = {
                "bugs": len(summary.outcomes),
                "failed": len(summary.failed),
            }
            logger.info("Writing run summary to %s", output_path)
            with open(output_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            return True
        except OSError as e:
            logger.error("Failed to write %s: %s", output_path, e, exc_info=True)
            return False

    @staticmethod
    def read_results(project_dir: str) -> Optional[RunSummary]:
        path = ResultsWriter.results_path(project_dir)
        if not os.path.isfile(path):
            return None
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        data.pop("totals", None)
        return RunSummary.model_validate(data)
