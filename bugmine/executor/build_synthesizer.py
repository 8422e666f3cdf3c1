"""
Build Descriptor Synthesizer
============================
Determines a revision's native build system and produces the canonical
(Ant) build descriptor plus the analyzer's test include/exclude sets.

Strategy (ordered, first applicable branch wins):
    1. build.xml present  → run the build-file analyzer on it directly.
    2. pom.xml present    → convert with ``mvn ant:ant``, patch the generated
                            build.xml, cache the generated files under
                            build_files/<rev_id>, run the analyzer on
                            maven-build.xml, download dependencies into the
                            project's local repository.
    3. otherwise          → UnsupportedBuildSystem (fatal, not retried).

Exclusivity:
    - analyzer_output/<bug_id> is owned by one bug.
    - build_files/<rev_id> is published atomically (rename of a private temp
      directory); an existing entry for the same revision is reused rather
      than regenerated, so bugs sharing a revision never clobber each other.
"""
import glob
import os
import shutil
import tempfile
import logging
from typing import List, Optional

from bugmine.core.config import PipelineConfig
from bugmine.core.constants import (
    ANT_BUILD_FILE,
    BUILD_FILE_PATCH,
    MAVEN_ANT_BUILD_FILE,
    MAVEN_ANT_GLOB,
    MAVEN_POM_FILE,
)
from bugmine.core.errors import (
    AnalyzerFailure,
    BuildConversionFailure,
    DependencyResolutionFailure,
    UnsupportedBuildSystem,
)
from bugmine.executor.command_runner import ExecutionResult, run_command
from bugmine.models.build_descriptor import BuildDescriptor
from bugmine.projects.project_config import ProjectConfig

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Signal File → Build System mapping (ordered by priority)
# ---------------------------------------------------------------------------
SIGNAL_MAP: list[tuple[str, str]] = [
    (ANT_BUILD_FILE,  "ant"),
    (MAVEN_POM_FILE,  "maven"),
    ("build.gradle",  "gradle"),
]

SUPPORTED_BUILD_SYSTEMS = frozenset({"ant", "maven"})


def detect_build_system(workspace_path: str) -> Optional[str]:
    """
    Return the build system of the first signal file found in the workspace
    root, or None. Only the root directory is checked.
    """
    for signal_file, build_system in SIGNAL_MAP:
        if os.path.isfile(os.path.join(workspace_path, signal_file)):
            return build_system
    return None


class BuildSynthesizer:
    """
    Produces the BuildDescriptor of a checked-out revision.
    """

    def __init__(self, config: PipelineConfig, project: ProjectConfig) -> None:
        self.config = config
        self.project = project

    # -------------------------------------------------------------------
    # Paths
    # -------------------------------------------------------------------
    @property
    def project_dir(self) -> str:
        return self.config.project_dir(self.project.pid)

    def analyzer_output_dir(self, bug_id: int) -> str:
        return os.path.join(self.config.analyzer_output_dir(self.project.pid), str(bug_id))

    def generated_dir(self, rev_id: str) -> str:
        return os.path.join(self.config.build_files_dir(self.project.pid), rev_id)

    # -------------------------------------------------------------------
    # Entry point
    # -------------------------------------------------------------------
    def synthesize(self, workspace: str, bug_id: int, rev_id: str) -> BuildDescriptor:
        """
        Characterize the build of ``rev_id`` checked out in ``workspace``.

        Raises
        ------
        UnsupportedBuildSystem
            Neither build.xml nor pom.xml is present.
        BuildConversionFailure, AnalyzerFailure, DependencyResolutionFailure
            The corresponding external tool failed.
        """
        out_dir = self.analyzer_output_dir(bug_id)
        try:
            os.makedirs(out_dir, exist_ok=True)
        except OSError as e:
            raise AnalyzerFailure(f"Cannot create analyzer output directory {out_dir}: {e}") from e

        build_system = detect_build_system(workspace)
        if build_system not in SUPPORTED_BUILD_SYSTEMS:
            found = build_system or "none"
            raise UnsupportedBuildSystem(
                f"Unsupported build system for {self.project.pid} revision {rev_id} (detected: {found})"
            )

        if build_system == "ant":
            self._run_analyzer(workspace, out_dir, ANT_BUILD_FILE)
            return BuildDescriptor(
                rev_id=rev_id,
                build_system=build_system,
                build_file=ANT_BUILD_FILE,
                analyzed_file=ANT_BUILD_FILE,
                analyzer_output_dir=out_dir,
            )

        generated = self._convert_maven(workspace, rev_id)
        self._run_analyzer(workspace, out_dir, MAVEN_ANT_BUILD_FILE)
        dep_cache = self._download_dependencies(workspace, bug_id)
        return BuildDescriptor(
            rev_id=rev_id,
            build_system=build_system,
            build_file=ANT_BUILD_FILE,
            analyzed_file=MAVEN_ANT_BUILD_FILE,
            analyzer_output_dir=out_dir,
            generated_dir=generated,
            dependency_cache_dir=dep_cache,
        )

    # -------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------
    def _run(self, command: List[str], workspace: str, description: str) -> ExecutionResult:
        return run_command(
            command,
            cwd=workspace,
            description=description,
            env=self.project.env_for(workspace),
            timeout_seconds=self.config.command_timeout,
        )

    def _run_analyzer(self, workspace: str, out_dir: str, build_file: str) -> None:
        result = self._run(
            [self.config.tools.java, "-jar", self.config.analyzer_jar, workspace, out_dir, build_file],
            workspace,
            f"Run build-file analyzer on {build_file}.",
        )
        if not result.ok:
            raise AnalyzerFailure(
                f"Build-file analyzer failed on {build_file}: {result.describe()}",
                command=result.command, exit_code=result.exit_code, log=result.log_excerpt,
            )

    def _convert_maven(self, workspace: str, rev_id: str) -> str:
        """Materialize build.xml/maven-build.xml in the workspace; return the cache dir."""
        cached = self.generated_dir(rev_id)
        if os.path.isfile(os.path.join(cached, ANT_BUILD_FILE)):
            logger.info("Reusing generated build files of %s", rev_id)
            for name in sorted(os.listdir(cached)):
                shutil.copy2(os.path.join(cached, name), os.path.join(workspace, name))
            return cached

        result = self._run(
            [self.config.tools.mvn, "ant:ant", "-Doverwrite=true"],
            workspace,
            f"Convert Maven to Ant build file: {rev_id}",
        )
        if not result.ok:
            raise BuildConversionFailure(
                f"mvn ant:ant failed for {rev_id}: {result.describe()}",
                command=result.command, exit_code=result.exit_code, log=result.log_excerpt,
            )

        build_patch = os.path.join(self.project_dir, BUILD_FILE_PATCH)
        if os.path.isfile(build_patch):
            result = self._run(
                [self.config.tools.patch, ANT_BUILD_FILE, build_patch],
                workspace,
                f"Patch generated {ANT_BUILD_FILE}",
            )
            if not result.ok:
                raise BuildConversionFailure(
                    f"Cannot apply {build_patch} to generated {ANT_BUILD_FILE}: {result.describe()}",
                    command=result.command, exit_code=result.exit_code, log=result.log_excerpt,
                )

        return self._publish_generated(workspace, rev_id)

    def _publish_generated(self, workspace: str, rev_id: str) -> str:
        final = self.generated_dir(rev_id)
        parent = os.path.dirname(final)
        os.makedirs(parent, exist_ok=True)

        generated = sorted(glob.glob(os.path.join(workspace, MAVEN_ANT_GLOB)))
        generated.append(os.path.join(workspace, ANT_BUILD_FILE))
        staging = tempfile.mkdtemp(prefix=f".{rev_id}.", dir=parent)
        try:
            for path in generated:
                shutil.copy2(path, staging)
        except OSError as e:
            shutil.rmtree(staging, ignore_errors=True)
            raise BuildConversionFailure(f"Cannot cache generated build files of {rev_id}: {e}") from e

        try:
            os.rename(staging, final)
        except OSError:
            # Another bug published the same revision first
            shutil.rmtree(staging, ignore_errors=True)
            logger.info("Generated build files of %s already cached", rev_id)
        else:
            logger.info("Cached %d generated build files under %s", len(generated), final)
        return final

    def _download_dependencies(self, workspace: str, bug_id: int) -> str:
        dep_cache = self.config.dependency_cache_dir(self.project.pid, bug_id)
        result = self._run(
            [self.config.tools.ant, f"-Dmaven.repo.local={dep_cache}", "get-deps"],
            workspace,
            f"Download dependencies for {MAVEN_ANT_BUILD_FILE}",
        )
        if not result.ok:
            raise DependencyResolutionFailure(
                f"Dependency download failed: {result.describe()}",
                command=result.command, exit_code=result.exit_code, log=result.log_excerpt,
            )
        return dep_cache
