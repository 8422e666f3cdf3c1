"""
Sanity Checker
==============
End-to-end check that the fixed revision of a bug builds and runs its test
suite under the build descriptor established during initialization.

Procedure:
    1. Discard the bug's previous sanity workspace.
    2. Check out the fixed revision with patches/cached build files applied.
    3. Run ``ant -f <build file> <sanity targets>`` locally, or inside an
       ephemeral container when ``sanity_docker_image`` is configured.

A non-zero exit, a signal, or a timeout raises SanityCheckFailure; the
candidate is unusable until the cause is fixed upstream.
"""
import os
import shutil
import logging
from typing import List, Optional

from bugmine.core.config import PipelineConfig
from bugmine.core.constants import ANT_BUILD_FILE
from bugmine.core.errors import CheckoutFailure, SanityCheckFailure
from bugmine.executor.command_runner import ExecutionResult, run_command, run_in_container
from bugmine.models.build_descriptor import BuildDescriptor
from bugmine.models.sanity_result import SanityResult
from bugmine.models.version_id import VersionId, VersionTag
from bugmine.services.revision_registry import RevisionRegistry
from bugmine.vcs.git_adapter import GitAdapter

logger = logging.getLogger(__name__)

SANITY_DIR_NAME = "sanity"


class SanityChecker:

    def __init__(self, config: PipelineConfig, vcs: GitAdapter, registry: RevisionRegistry) -> None:
        self.config = config
        self.vcs = vcs
        self.registry = registry

    def workspace_for(self, bug_id: int) -> str:
        return os.path.join(self.config.bug_scratch_dir(self.vcs.project.pid, bug_id), SANITY_DIR_NAME)

    def build_command(self, descriptor: Optional[BuildDescriptor]) -> List[str]:
        """Ant invocation building and testing under ``descriptor``."""
        command = [self.config.tools.ant]
        build_file = ANT_BUILD_FILE
        if descriptor is not None:
            build_file = descriptor.build_file
            if descriptor.dependency_cache_dir:
                command.append(f"-Dmaven.repo.local={descriptor.dependency_cache_dir}")
        command += ["-f", build_file, *self.vcs.project.sanity_targets]
        return command

    def _execute(self, command: List[str], work_dir: str,
                 descriptor: Optional[BuildDescriptor]) -> ExecutionResult:
        env = self.vcs.project.env_for(work_dir)
        description = f"Sanity check: {' '.join(command)}"
        if self.config.sanity_docker_image:
            extra = [descriptor.dependency_cache_dir] if descriptor and descriptor.dependency_cache_dir else []
            return run_in_container(
                command,
                workspace_path=work_dir,
                docker_image=self.config.sanity_docker_image,
                description=description,
                env=env,
                timeout_seconds=self.config.command_timeout,
                extra_volumes=extra,
            )
        return run_command(
            command,
            cwd=work_dir,
            description=description,
            env=env,
            timeout_seconds=self.config.command_timeout,
        )

    def check(self, bug_id: int) -> SanityResult:
        """
        Build and test the fixed revision of ``bug_id``.

        Raises
        ------
        CheckoutFailure
            The fresh checkout failed.
        SanityCheckFailure
            Build or tests failed; ``.result`` holds the SanityResult.
        """
        work_dir = self.workspace_for(bug_id)
        try:
            if os.path.exists(work_dir):
                shutil.rmtree(work_dir)
        except OSError as e:
            raise CheckoutFailure(f"Cannot clean sanity workspace {work_dir}: {e}") from e

        vid = VersionId(bug_id=bug_id, tag=VersionTag.FIXED)
        rev_id = self.vcs.checkout(vid, work_dir, apply_patches=True)

        info = self.registry.get(rev_id)
        descriptor = info.descriptor if info else None
        command = self.build_command(descriptor)
        execution = self._execute(command, work_dir, descriptor)

        result = SanityResult(
            bug_id=bug_id,
            rev_id=rev_id,
            passed=execution.ok,
            exit_code=execution.exit_code,
            signal_name=execution.signal_name,
            timed_out=execution.timed_out,
            command=execution.command,
            log_excerpt=execution.log_excerpt,
            execution_time_seconds=execution.execution_time_seconds,
        )

        if not result.passed:
            raise SanityCheckFailure(
                f"Sanity check failed for {vid} ({rev_id}): {execution.describe()}",
                result=result,
                command=execution.command,
                exit_code=execution.exit_code,
                log=execution.log_excerpt,
            )

        logger.info("Sanity check passed for %s in %.2fs", vid, result.execution_time_seconds)
        return result
