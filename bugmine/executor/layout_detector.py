"""
Layout Detector
===============
Detects the relative source/test directories of a checked-out workspace.

Detection is deterministic: the same tree always yields the same layout.
Rules are checked in order; first match wins. No side effects.
"""
import os
from typing import Sequence, Tuple

from bugmine.core.errors import LayoutMismatch, UnknownLayout
from bugmine.models.layout import Layout, LayoutRule


# ---------------------------------------------------------------------------
# Marker path → Layout (ordered by priority)
# ---------------------------------------------------------------------------
# Order matters: the nested Maven-style tree must be checked before the
# flat "src" directory, which also exists in Maven-style trees.
DEFAULT_LAYOUT_RULES: Tuple[LayoutRule, ...] = (
    LayoutRule(marker="src/main/java", src_dir="src/main/java", test_dir="src/test/java"),
    LayoutRule(marker="src",           src_dir="src",           test_dir="test"),
)


def detect_layout(workspace_path: str,
                  rules: Sequence[LayoutRule] = DEFAULT_LAYOUT_RULES) -> Layout:
    """
    Return the layout of the first rule whose marker exists in the workspace.

    Parameters
    ----------
    workspace_path : str
        Absolute path to the checked-out tree.
    rules : Sequence[LayoutRule]
        Ordered detection rules.

    Raises
    ------
    UnknownLayout
        No marker matched.
    """
    for rule in rules:
        if os.path.exists(os.path.join(workspace_path, rule.marker)):
            return rule.to_layout()

    markers = ", ".join(rule.marker for rule in rules)
    raise UnknownLayout(f"Unknown directory layout in {workspace_path} (checked: {markers})")


def assert_same_layout(bug_id: int, buggy: Layout, fixed: Layout) -> None:
    """Raise LayoutMismatch unless both revisions of ``bug_id`` agree."""
    if buggy.src_dir != fixed.src_dir:
        raise LayoutMismatch(
            f"Source directories don't match for buggy and fixed revisions of {bug_id}: "
            f"{buggy.src_dir} != {fixed.src_dir}"
        )
    if buggy.test_dir != fixed.test_dir:
        raise LayoutMismatch(
            f"Test directories don't match for buggy and fixed revisions of {bug_id}: "
            f"{buggy.test_dir} != {fixed.test_dir}"
        )
