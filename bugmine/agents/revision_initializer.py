"""
Revision Initializer
====================
Initializes one version (buggy or fixed) of a bug:

    resolve → checkout (no patches) → synthesize build descriptor
            → detect layout → register revision metadata

Returns the (rev_id, src_dir, test_dir) tuple. Any failure propagates; there
is no degraded result for a revision whose build cannot be characterized.
"""
import os
import logging

from bugmine.core.config import PipelineConfig
from bugmine.executor.build_synthesizer import BuildSynthesizer
from bugmine.executor.layout_detector import detect_layout
from bugmine.models.revision import InitializedRevision, RevisionInfo
from bugmine.models.version_id import VersionId, VersionTag
from bugmine.services.revision_registry import RevisionRegistry
from bugmine.vcs.git_adapter import GitAdapter

logger = logging.getLogger(__name__)


class RevisionInitializer:

    def __init__(
        self,
        config: PipelineConfig,
        vcs: GitAdapter,
        synthesizer: BuildSynthesizer,
        registry: RevisionRegistry,
    ) -> None:
        self.config = config
        self.vcs = vcs
        self.synthesizer = synthesizer
        self.registry = registry

    @property
    def project(self):
        return self.vcs.project

    def workspace_for(self, vid: VersionId) -> str:
        """Checkout directory of ``vid`` inside its bug's scratch root."""
        return os.path.join(self.config.bug_scratch_dir(self.project.pid, vid.bug_id), str(vid))

    def initialize(self, bug_id: int, tag: VersionTag) -> InitializedRevision:
        vid = VersionId(bug_id=bug_id, tag=tag)
        work_dir = self.workspace_for(vid)

        # Plain checkout: the cached, possibly minimized patch is not applied,
        # so the revision's own build is what gets characterized.
        rev_id = self.vcs.checkout(vid, work_dir, apply_patches=False)

        descriptor = self.synthesizer.synthesize(work_dir, bug_id, rev_id)
        layout = detect_layout(work_dir, self.project.layout_rules)

        self.registry.register(RevisionInfo(
            rev_id=rev_id,
            vid=str(vid),
            workspace=work_dir,
            layout=layout,
            descriptor=descriptor,
        ))
        logger.info(
            "Initialized %s: rev=%s build=%s src=%s test=%s",
            vid, rev_id, descriptor.build_system, layout.src_dir, layout.test_dir,
        )
        return InitializedRevision(rev_id, layout.src_dir, layout.test_dir)
