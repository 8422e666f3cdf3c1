"""
Workspace Service
=================
Manages project directories, per-bug scratch roots, and per-bug artifacts.

Philosophy:
    - Every bug owns <scratch_dir>/<pid>/<bug_id>; no two bugs share a
      scratch root, so bugs can be processed concurrently.
    - Scratch roots are wiped before use and removed after use (unless kept).
    - Previously generated per-bug artifacts are removed before a bug is
      re-initialized; artifacts of a failed run are left for inspection.
"""
import os
import shutil
import logging

from bugmine.core.config import PipelineConfig
from bugmine.core.constants import src_patch_name, test_patch_name
from bugmine.core.errors import CheckoutFailure, ConfigError

logger = logging.getLogger(__name__)


def ensure_project_dirs(config: PipelineConfig, pid: str) -> None:
    """
    Check the project and patch directories exist; create the generated ones.

    Raises
    ------
    ConfigError
        Project or patch directory missing.
    """
    for required in (config.project_dir(pid), config.patch_dir(pid)):
        if not os.path.isdir(required):
            raise ConfigError(f"{required} does not exist")
    os.makedirs(config.analyzer_output_dir(pid), exist_ok=True)
    os.makedirs(config.build_files_dir(pid), exist_ok=True)


def prepare_scratch_root(config: PipelineConfig, pid: str, bug_id: int) -> str:
    """Wipe and recreate the scratch root of ``bug_id``; CheckoutFailure on error."""
    root = config.bug_scratch_dir(pid, bug_id)
    try:
        if os.path.exists(root):
            shutil.rmtree(root)
        os.makedirs(root, exist_ok=True)
    except OSError as e:
        raise CheckoutFailure(f"Cannot prepare scratch root {root}: {e}") from e
    return root


def release_scratch_root(config: PipelineConfig, pid: str, bug_id: int) -> None:
    root = config.bug_scratch_dir(pid, bug_id)
    if config.keep_scratch:
        logger.info("Keeping scratch root %s", root)
        return
    if os.path.exists(root):
        shutil.rmtree(root, ignore_errors=True)
        logger.debug("Removed scratch root %s", root)


def clean_bug_artifacts(config: PipelineConfig, pid: str, bug_id: int) -> None:
    """Remove analyzer output and patches previously generated for ``bug_id``."""
    analyzer_dir = os.path.join(config.analyzer_output_dir(pid), str(bug_id))
    try:
        if os.path.exists(analyzer_dir):
            shutil.rmtree(analyzer_dir)
        for name in (src_patch_name(bug_id), test_patch_name(bug_id)):
            path = os.path.join(config.patch_dir(pid), name)
            if os.path.exists(path):
                os.remove(path)
    except OSError as e:
        raise CheckoutFailure(f"Cannot remove previous artifacts of bug {bug_id}: {e}") from e
