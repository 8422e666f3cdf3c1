"""
Patch Deriver
=============
Computes the source and test patches of a bug and writes them to the
project's patch directory as ``{bug_id}.src.patch`` / ``{bug_id}.test.patch``.

Both patches go from the fixed revision to the buggy one, so applying the
source patch to a fixed checkout yields the buggy sources. Minimization is a
separate, manual step; an empty patch is a valid result.
"""
import os
import logging

from bugmine.core.config import PipelineConfig
from bugmine.core.constants import src_patch_name, test_patch_name
from bugmine.models.patch_pair import PatchPair
from bugmine.utils.patch_hash import compute_patch_hash
from bugmine.vcs.git_adapter import GitAdapter

logger = logging.getLogger(__name__)


class PatchDeriver:

    def __init__(self, config: PipelineConfig, vcs: GitAdapter) -> None:
        self.config = config
        self.vcs = vcs

    @property
    def patch_dir(self) -> str:
        return self.config.patch_dir(self.vcs.project.pid)

    def patch_paths(self, bug_id: int) -> tuple[str, str]:
        return (
            os.path.join(self.patch_dir, src_patch_name(bug_id)),
            os.path.join(self.patch_dir, test_patch_name(bug_id)),
        )

    def derive(self, bug_id: int, buggy_rev: str, fixed_rev: str,
               src_dir: str, test_dir: str) -> PatchPair:
        """Export fixed → buggy diffs scoped to ``src_dir`` and ``test_dir``."""
        src_patch, test_patch = self.patch_paths(bug_id)

        self.vcs.export_diff(fixed_rev, buggy_rev, src_patch, src_dir)
        self.vcs.export_diff(fixed_rev, buggy_rev, test_patch, test_dir)

        pair = PatchPair(
            bug_id=bug_id,
            src_patch_path=src_patch,
            test_patch_path=test_patch,
            src_patch_hash=compute_patch_hash(src_patch),
            test_patch_hash=compute_patch_hash(test_patch),
        )
        logger.info(
            "Derived patches for bug %d: src=%s test=%s",
            bug_id, pair.src_patch_hash or "<empty>", pair.test_patch_hash or "<empty>",
        )
        return pair
