"""
Configuration
=============
Loads environment variables from .env file using python-dotenv.

Environment Variables:
    BUGMINE_WORK_DIR            — Bug-mining working directory (default: cwd)
    BUGMINE_LIB_DIR             — Directory holding analyzer.jar and build-system libs
    BUGMINE_SCRATCH_DIR         — Root for per-bug scratch checkouts (default: system tmp)
    BUGMINE_FAIL_FAST           — Abort the whole run on the first failing bug (default: true)
    BUGMINE_KEEP_SCRATCH        — Keep per-bug scratch roots after processing (default: false)
    BUGMINE_COMMAND_TIMEOUT     — Max seconds for one external command (default: 3600)
    BUGMINE_SANITY_DOCKER_IMAGE — Run sanity checks in this image instead of locally
    GIT_CMD / JAVA_CMD / MVN_CMD / ANT_CMD / PATCH_CMD — External tool executables

Immutability:
    Module-level values are only defaults. Every component receives a frozen
    PipelineConfig in its constructor; nothing mutates shared path constants
    at runtime.
"""
import os
import tempfile
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


WORK_DIR = os.getenv("BUGMINE_WORK_DIR", os.getcwd())
LIB_DIR = os.getenv(
    "BUGMINE_LIB_DIR",
    os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))), "lib"),
)
SCRATCH_DIR = os.getenv("BUGMINE_SCRATCH_DIR", os.path.join(tempfile.gettempdir(), "bugmine"))
FAIL_FAST = _env_flag("BUGMINE_FAIL_FAST", True)
KEEP_SCRATCH = _env_flag("BUGMINE_KEEP_SCRATCH", False)
SANITY_DOCKER_IMAGE = os.getenv("BUGMINE_SANITY_DOCKER_IMAGE") or None

# Max seconds for a single external command
DEFAULT_COMMAND_TIMEOUT = int(os.getenv("BUGMINE_COMMAND_TIMEOUT", 3600))

GIT_CMD = os.getenv("GIT_CMD", "git")
JAVA_CMD = os.getenv("JAVA_CMD", "java")
MVN_CMD = os.getenv("MVN_CMD", "mvn")
ANT_CMD = os.getenv("ANT_CMD", "ant")
PATCH_CMD = os.getenv("PATCH_CMD", "patch")


@dataclass(frozen=True)
class ToolCommands:
    """Executables used for external tool invocations."""
    git: str = GIT_CMD
    java: str = JAVA_CMD
    mvn: str = MVN_CMD
    ant: str = ANT_CMD
    patch: str = PATCH_CMD


@dataclass(frozen=True)
class PipelineConfig:
    """
    Immutable configuration shared by all pipeline components.

    Fields
    ------
    work_dir : str
        Bug-mining working directory. Holds ``project_repos`` and
        ``framework/projects``.
    lib_dir : str
        Directory containing ``analyzer.jar`` and the ``build_systems``
        subtree used by project hooks.
    scratch_dir : str
        Root under which every bug gets its own scratch directory.
    fail_fast : bool
        True aborts the run on the first failing bug; False records the
        failure and continues with the next bug.
    keep_scratch : bool
        Keep per-bug scratch directories for inspection.
    command_timeout : int
        Timeout in seconds applied to every external command.
    sanity_docker_image : str | None
        When set, sanity builds run in an ephemeral container of this image.
    tools : ToolCommands
        External executables.
    """
    work_dir: str
    lib_dir: str = LIB_DIR
    scratch_dir: str = SCRATCH_DIR
    fail_fast: bool = FAIL_FAST
    keep_scratch: bool = KEEP_SCRATCH
    command_timeout: int = DEFAULT_COMMAND_TIMEOUT
    sanity_docker_image: Optional[str] = SANITY_DOCKER_IMAGE
    tools: ToolCommands = field(default_factory=ToolCommands)

    @classmethod
    def from_work_dir(cls, work_dir: Optional[str] = None, **overrides) -> "PipelineConfig":
        """Build a config rooted at ``work_dir`` (absolute), env defaults for the rest."""
        return cls(work_dir=os.path.abspath(work_dir or WORK_DIR), **overrides)

    # -- Derived paths ----------------------------------------------------
    @property
    def repo_dir(self) -> str:
        return os.path.join(self.work_dir, "project_repos")

    @property
    def projects_dir(self) -> str:
        return os.path.join(self.work_dir, "framework", "projects")

    @property
    def analyzer_jar(self) -> str:
        return os.path.join(self.lib_dir, "analyzer.jar")

    @property
    def build_systems_lib_dir(self) -> str:
        return os.path.join(self.lib_dir, "build_systems")

    def project_dir(self, pid: str) -> str:
        return os.path.join(self.projects_dir, pid)

    def patch_dir(self, pid: str) -> str:
        return os.path.join(self.project_dir(pid), "patches")

    def analyzer_output_dir(self, pid: str) -> str:
        return os.path.join(self.project_dir(pid), "analyzer_output")

    def build_files_dir(self, pid: str) -> str:
        return os.path.join(self.project_dir(pid), "build_files")

    def bug_scratch_dir(self, pid: str, bug_id: int) -> str:
        """Scratch root owned by a single bug; disjoint across bugs."""
        return os.path.join(self.scratch_dir, pid, str(bug_id))

    def dependency_cache_dir(self, pid: str, bug_id: int) -> str:
        """Local Maven repository of one bug, inside its scratch root."""
        return os.path.join(self.bug_scratch_dir(pid, bug_id), "deps")
