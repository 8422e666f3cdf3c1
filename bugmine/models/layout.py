"""
Layout Model
============
Relative source/test directory convention of a checked-out tree.

Two Layout values are equal iff both relative paths are equal. For one bug,
the buggy and fixed layouts must be equal.
"""
from pydantic import BaseModel, ConfigDict


class Layout(BaseModel):
    model_config = ConfigDict(frozen=True)

    src_dir: str
    test_dir: str


class LayoutRule(BaseModel):
    """If ``marker`` exists in the workspace, the layout is (src_dir, test_dir)."""
    model_config = ConfigDict(frozen=True)

    marker: str
    src_dir: str
    test_dir: str

    def to_layout(self) -> Layout:
        return Layout(src_dir=self.src_dir, test_dir=self.test_dir)
