"""
Revision Registry
=================
Per-revision metadata registered during initialization.

In memory:
    rev_id → RevisionInfo (version id, workspace, layout, build descriptor),
    so later stages find an already checked-out tree without a second checkout.

On disk:
    <project_dir>/layouts.csv with one ``rev_id,src_dir,test_dir`` row per
    revision (upserted, sorted by rev_id), the durable layout map other
    tooling reads.
"""
import csv
import os
import logging
from typing import Dict, Optional

from bugmine.core.constants import LAYOUT_FILE
from bugmine.models.layout import Layout
from bugmine.models.revision import RevisionInfo

logger = logging.getLogger(__name__)


class RevisionRegistry:

    def __init__(self, project_dir: str) -> None:
        self.layout_file = os.path.join(project_dir, LAYOUT_FILE)
        self._revisions: Dict[str, RevisionInfo] = {}

    def register(self, info: RevisionInfo) -> None:
        self._revisions[info.rev_id] = info
        self._persist_layout(info.rev_id, info.layout)
        logger.debug("Registered %s (%s): %s", info.rev_id, info.vid, info.layout)

    def get(self, rev_id: str) -> Optional[RevisionInfo]:
        return self._revisions.get(rev_id)

    def forget(self, rev_id: str) -> None:
        self._revisions.pop(rev_id, None)

    def load_layouts(self) -> Dict[str, Layout]:
        """Read the persisted layout map."""
        layouts: Dict[str, Layout] = {}
        if not os.path.isfile(self.layout_file):
            return layouts
        with open(self.layout_file, "r", encoding="utf-8", newline="") as f:
            for row in csv.reader(f):
                if len(row) == 3:
                    layouts[row[0]] = Layout(src_dir=row[1], test_dir=row[2])
        return layouts

    def _persist_layout(self, rev_id: str, layout: Layout) -> None:
        layouts = self.load_layouts()
        if layouts.get(rev_id) == layout:
            return
        layouts[rev_id] = layout
        os.makedirs(os.path.dirname(self.layout_file), exist_ok=True)
        tmp_file = f"{self.layout_file}.{os.getpid()}.tmp"
        with open(tmp_file, "w", encoding="utf-8", newline="") as f:
            writer = csv.writer(f)
            for rid in sorted(layouts):
                writer.writerow([rid, layouts[rid].src_dir, layouts[rid].test_dir])
        os.replace(tmp_file, self.layout_file)

    def __len__(self) -> int:
        return len(self._revisions)
