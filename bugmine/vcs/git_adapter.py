"""
Git Adapter
===========
Uniform version-control interface over a project's git repository.

Responsibilities:
    - Resolve version ids ("5b", "5f") to revision ids via the commit database.
    - Check out a revision into an exclusively owned workspace, then run the
      project's post-checkout hook synchronously.
    - Export unified diffs between two revisions, scoped to one directory.

Checkout modes:
    apply_patches=False  — plain checkout of the revision itself. Used while
                           initializing revisions, to observe the revision's
                           true, unpatched build.
    apply_patches=True   — checkout for running the framework: cached
                           generated build files are restored, and a buggy
                           version is obtained by applying the (possibly
                           minimized) source patch to the fixed revision.
"""
import os
import shutil
import logging
from typing import List, Optional

from bugmine.core.config import PipelineConfig
from bugmine.core.constants import src_patch_name
from bugmine.core.errors import CheckoutFailure
from bugmine.executor.command_runner import ExecutionResult, run_command
from bugmine.models.version_id import VersionId, VersionTag
from bugmine.projects.project_config import ProjectConfig
from bugmine.vcs.commit_db import CommitDatabase

logger = logging.getLogger(__name__)


class GitAdapter:
    """
    Git-backed version-control adapter for one project.
    """

    def __init__(
        self,
        config: PipelineConfig,
        project: ProjectConfig,
        commit_db: Optional[CommitDatabase] = None,
    ) -> None:
        self.config = config
        self.project = project
        self.commit_db = commit_db or CommitDatabase.load(project.commit_db_path)

    # -------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------
    def resolve(self, vid: VersionId) -> str:
        """Revision id of ``vid``; raises UnknownRevision if absent."""
        return self.commit_db.lookup(vid)

    def lookup_vid(self, rev_id: str) -> int:
        """Bug id owning ``rev_id``; raises UnknownRevision if absent."""
        return self.commit_db.lookup_vid(rev_id)

    def bug_ids(self) -> List[int]:
        return self.commit_db.ids()

    # -------------------------------------------------------------------
    # Git plumbing
    # -------------------------------------------------------------------
    def _git(self, args: List[str], cwd: Optional[str] = None, description: str = "",
             stdout_path: Optional[str] = None) -> ExecutionResult:
        return run_command(
            [self.config.tools.git, *args],
            cwd=cwd,
            description=description,
            timeout_seconds=self.config.command_timeout,
            stdout_path=stdout_path,
        )

    def _git_or_fail(self, args: List[str], cwd: Optional[str] = None,
                     description: str = "", stdout_path: Optional[str] = None) -> ExecutionResult:
        result = self._git(args, cwd=cwd, description=description, stdout_path=stdout_path)
        if not result.ok:
            raise CheckoutFailure(
                f"{description or 'git ' + args[0]} failed: {result.describe()}",
                command=result.command,
                exit_code=result.exit_code,
                log=result.log_excerpt,
            )
        return result

    # -------------------------------------------------------------------
    # Checkout
    # -------------------------------------------------------------------
    def checkout(self, vid: VersionId, dest: str, apply_patches: bool = False) -> str:
        """
        Materialize ``vid`` in ``dest`` (wiped first) and run the post-checkout hook.

        Returns
        -------
        str
            Revision id of ``vid``.

        Raises
        ------
        UnknownRevision
            ``vid`` is not in the commit database.
        CheckoutFailure
            Git error, filesystem error, hook failure, or patch failure.
        """
        rev_id = self.resolve(vid)
        checkout_rev = rev_id
        src_patch = None
        if apply_patches and vid.is_buggy:
            candidate = os.path.join(self.config.patch_dir(self.project.pid), src_patch_name(vid.bug_id))
            if os.path.isfile(candidate) and os.path.getsize(candidate) > 0:
                src_patch = candidate
                checkout_rev = self.resolve(VersionId(bug_id=vid.bug_id, tag=VersionTag.FIXED))

        try:
            if os.path.exists(dest):
                shutil.rmtree(dest)
            os.makedirs(os.path.dirname(os.path.abspath(dest)), exist_ok=True)
        except OSError as e:
            raise CheckoutFailure(f"Cannot prepare workspace {dest}: {e}") from e

        self._git_or_fail(
            ["clone", "--quiet", "--no-checkout", self.project.repo_path, dest],
            description=f"Clone {self.project.name} for {vid}",
        )
        self._git_or_fail(
            ["checkout", "--quiet", checkout_rev],
            cwd=dest,
            description=f"Check out {vid} ({checkout_rev})",
        )

        self._run_post_checkout(checkout_rev, dest)

        if apply_patches:
            self._restore_build_files(checkout_rev, dest)
            if src_patch:
                self.apply_patch(dest, src_patch)

        logger.info("Checked out %s (%s) into %s", vid, rev_id, dest)
        return rev_id

    def _run_post_checkout(self, rev_id: str, work_dir: str) -> None:
        hook = self.project.post_checkout
        if hook is None:
            return
        try:
            hook(self, rev_id, work_dir)
        except CheckoutFailure:
            raise
        except Exception as e:
            raise CheckoutFailure(f"Post-checkout hook failed for {rev_id}: {e}") from e

    def _restore_build_files(self, rev_id: str, work_dir: str) -> None:
        """Copy cached generated build files of ``rev_id`` into the workspace."""
        cached = os.path.join(self.config.build_files_dir(self.project.pid), rev_id)
        if not os.path.isdir(cached):
            return
        try:
            for name in sorted(os.listdir(cached)):
                shutil.copy2(os.path.join(cached, name), os.path.join(work_dir, name))
        except OSError as e:
            raise CheckoutFailure(f"Cannot restore build files of {rev_id}: {e}") from e
        logger.info("Restored generated build files of %s", rev_id)

    def apply_patch(self, work_dir: str, patch_file: str) -> None:
        """Apply ``patch_file`` to the tree in ``work_dir``; CheckoutFailure on error."""
        self._git_or_fail(
            ["apply", "--whitespace=nowarn", os.path.abspath(patch_file)],
            cwd=work_dir,
            description=f"Apply patch {os.path.basename(patch_file)}",
        )

    # -------------------------------------------------------------------
    # Diff export
    # -------------------------------------------------------------------
    def export_diff(self, from_rev: str, to_rev: str, out_path: str, scope_dir: str = "") -> str:
        """
        Write the unified diff ``from_rev`` → ``to_rev`` restricted to ``scope_dir``.

        An empty file is written when the revisions do not differ in scope.
        Output is deterministic for a given revision pair and scope.
        """
        os.makedirs(os.path.dirname(os.path.abspath(out_path)), exist_ok=True)
        args = ["-C", self.project.repo_path, "diff", "--no-ext-diff", "--no-color", "--binary",
                from_rev, to_rev]
        if scope_dir:
            args += ["--", scope_dir]
        self._git_or_fail(
            args,
            description=f"Export diff {from_rev[:12]}..{to_rev[:12]} ({scope_dir or '.'})",
            stdout_path=out_path,
        )
        return out_path

