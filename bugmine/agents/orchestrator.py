"""
Orchestrator
============
Drives the initialize-revisions pipeline over the selected bugs of one
project.

Per bug (strictly sequential, each stage consumes the previous stage's
filesystem state):
    1. Remove previously generated analyzer output and patches.
    2. Initialize the buggy, then the fixed revision.
    3. Assert both revisions share the same layout (LayoutMismatch).
    4. Derive the fixed → buggy source and test patches.
    5. Empty source patch → skip the sanity check (logged, not an error).
       Otherwise sanity-check the fixed revision.

Failure policy:
    fail_fast=True   — the first failure is recorded, the run summary is
                       written, and the error propagates (aborting the run).
    fail_fast=False  — the error is recorded in that bug's outcome and the
                       run continues with the next bug.
    Errors outside the BugMineError taxonomy are recorded as INTERNAL_ERROR.
    Nothing is retried. Partial artifacts and the failing bug's scratch
    root are left on disk for postmortem inspection.

At the end of the run the include/exclude fileset report and the run summary
JSON are written to the project directory.
"""
import time
import logging
from datetime import datetime, timezone
from typing import Optional

from bugmine.agents.patch_deriver import PatchDeriver
from bugmine.agents.revision_initializer import RevisionInitializer
from bugmine.agents.sanity_checker import SanityChecker
from bugmine.core.config import PipelineConfig
from bugmine.core.errors import BugMineError, SanityCheckFailure
from bugmine.executor.build_synthesizer import BuildSynthesizer
from bugmine.executor.layout_detector import assert_same_layout
from bugmine.models.layout import Layout
from bugmine.models.run_summary import (
    STATUS_FAILED,
    STATUS_INITIALIZED,
    STATUS_SKIPPED_EMPTY_PATCH,
    BugOutcome,
    RunSummary,
)
from bugmine.models.version_id import BugSelection, VersionTag
from bugmine.projects.project_config import ProjectConfig
from bugmine.services.fileset_report import write_fileset_report
from bugmine.services.results_writer import ResultsWriter
from bugmine.services.revision_registry import RevisionRegistry
from bugmine.services.workspace_service import (
    clean_bug_artifacts,
    ensure_project_dirs,
    prepare_scratch_root,
    release_scratch_root,
)
from bugmine.utils.failure_reasons import get_stage_hint
from bugmine.vcs.git_adapter import GitAdapter

logger = logging.getLogger(__name__)


class Orchestrator:
    """
    Initializes the revisions of every selected bug of one project.
    """

    def __init__(
        self,
        config: PipelineConfig,
        project: ProjectConfig,
        vcs: Optional[GitAdapter] = None,
    ) -> None:
        self.config = config
        self.project = project
        self.vcs = vcs or GitAdapter(config, project)
        self.registry = RevisionRegistry(config.project_dir(project.pid))
        self.synthesizer = BuildSynthesizer(config, project)
        self.initializer = RevisionInitializer(config, self.vcs, self.synthesizer, self.registry)
        self.patch_deriver = PatchDeriver(config, self.vcs)
        self.sanity_checker = SanityChecker(config, self.vcs, self.registry)

    # -------------------------------------------------------------------
    # One bug
    # -------------------------------------------------------------------
    def process_bug(self, bug_id: int, outcome: Optional[BugOutcome] = None) -> BugOutcome:
        """
        Run all stages for ``bug_id``, filling ``outcome`` as stages complete.

        Raises whatever BugMineError a stage raised; ``outcome`` then holds
        everything that was established before the failure.
        """
        outcome = outcome or BugOutcome(bug_id=bug_id)
        pid = self.project.pid

        clean_bug_artifacts(self.config, pid, bug_id)
        prepare_scratch_root(self.config, pid, bug_id)

        buggy = self.initializer.initialize(bug_id, VersionTag.BUGGY)
        outcome.buggy_rev = buggy.rev_id
        fixed = self.initializer.initialize(bug_id, VersionTag.FIXED)
        outcome.fixed_rev = fixed.rev_id

        fixed_layout = Layout(src_dir=fixed.src_dir, test_dir=fixed.test_dir)
        assert_same_layout(bug_id, Layout(src_dir=buggy.src_dir, test_dir=buggy.test_dir), fixed_layout)
        outcome.layout = fixed_layout

        # Minimization doesn't matter here; it is done manually later.
        patches = self.patch_deriver.derive(
            bug_id, buggy.rev_id, fixed.rev_id, fixed.src_dir, fixed.test_dir,
        )
        outcome.src_patch_hash = patches.src_patch_hash
        outcome.test_patch_hash = patches.test_patch_hash

        if patches.src_is_empty:
            logger.info("      -> Skipping sanity check (empty source patch) for bug %d", bug_id)
            outcome.status = STATUS_SKIPPED_EMPTY_PATCH
            return outcome

        outcome.sanity = self.sanity_checker.check(bug_id)
        outcome.status = STATUS_INITIALIZED
        return outcome

    # -------------------------------------------------------------------
    # Whole run
    # -------------------------------------------------------------------
    def run(self, selection: Optional[BugSelection] = None) -> RunSummary:
        """
        Process the selected bugs (all bugs in the commit-db by default).

        Raises
        ------
        BugMineError
            Only when ``fail_fast`` is set: the first bug failure.
        """
        pid = self.project.pid
        ensure_project_dirs(self.config, pid)

        summary = RunSummary(
            project_id=pid,
            selection=str(selection) if selection else "",
            fail_fast=self.config.fail_fast,
            started_at=datetime.now(timezone.utc),
        )
        bug_ids = self.vcs.commit_db.select(selection)
        logger.info("Initializing %d bug(s) of %s", len(bug_ids), pid)

        for bug_id in bug_ids:
            logger.info("%4d: %s", bug_id, self.project.name)
            outcome = BugOutcome(bug_id=bug_id)
            summary.outcomes.append(outcome)
            start = time.monotonic()
            try:
                self._process_guarded(bug_id, outcome)
            except BugMineError as e:
                self._record_failure(outcome, e)
                outcome.elapsed_seconds = round(time.monotonic() - start, 3)
                logger.error("Bug %d failed [%s]: %s", bug_id, e.reason, e)
                logger.info(
                    "Leaving scratch root %s for inspection",
                    self.config.bug_scratch_dir(pid, bug_id),
                )
                if self.config.fail_fast:
                    self._finish(summary)
                    raise
                continue
            finally:
                self.registry.forget(outcome.buggy_rev)
                self.registry.forget(outcome.fixed_rev)

            outcome.elapsed_seconds = round(time.monotonic() - start, 3)
            release_scratch_root(self.config, pid, bug_id)

        summary.fileset_report_path = write_fileset_report(
            self.config.analyzer_output_dir(pid), self.config.project_dir(pid),
        )
        self._finish(summary)
        logger.info(
            "Run complete | bugs=%d | failed=%d",
            len(summary.outcomes), len(summary.failed),
        )
        return summary

    def _process_guarded(self, bug_id: int, outcome: BugOutcome) -> None:
        """Run ``process_bug``; any non-taxonomy error becomes an INTERNAL_ERROR BugMineError."""
        try:
            self.process_bug(bug_id, outcome)
        except BugMineError:
            raise
        except Exception as e:
            logger.exception("Unexpected error while processing bug %d", bug_id)
            raise BugMineError(f"Unexpected error while processing bug {bug_id}: {e!r}") from e

    def _record_failure(self, outcome: BugOutcome, error: BugMineError) -> None:
        outcome.status = STATUS_FAILED
        outcome.failure_reason = error.reason
        outcome.failure_stage = get_stage_hint(error.reason)
        outcome.error_message = str(error)
        if isinstance(error, SanityCheckFailure) and error.result is not None:
            outcome.sanity = error.result

    def _finish(self, summary: RunSummary) -> None:
        summary.finished_at = datetime.now(timezone.utc)
        ResultsWriter.write_results(summary, self.config.project_dir(self.project.pid))
