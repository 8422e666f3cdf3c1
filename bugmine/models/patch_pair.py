"""
Patch Pair Model
================
Source and test patches of one bug, both transforming the fixed tree into
the buggy tree.

An empty source patch is a valid outcome; it means the sanity check is
skipped for that bug.
"""
import os

from pydantic import BaseModel


class PatchPair(BaseModel):
    bug_id: int
    src_patch_path: str
    test_patch_path: str
    src_patch_hash: str = ""
    test_patch_hash: str = ""

    @property
    def src_is_empty(self) -> bool:
        return os.path.getsize(self.src_patch_path) == 0

    @property
    def test_is_empty(self) -> bool:
        return os.path.getsize(self.test_patch_path) == 0
