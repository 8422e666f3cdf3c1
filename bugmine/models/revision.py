"""
Revision Models
===============
Per-revision metadata registered by the Revision Initializer.

InitializedRevision is the (rev_id, src_dir, test_dir) tuple handed back to
the Orchestrator; RevisionInfo is what later stages look up by rev_id to
find the already checked-out tree without a second checkout.
"""
from typing import NamedTuple, Optional

from pydantic import BaseModel

from bugmine.models.build_descriptor import BuildDescriptor
from bugmine.models.layout import Layout


class InitializedRevision(NamedTuple):
    rev_id: str
    src_dir: str
    test_dir: str


class RevisionInfo(BaseModel):
    rev_id: str
    vid: str
    workspace: str
    layout: Layout
    descriptor: Optional[BuildDescriptor] = None
