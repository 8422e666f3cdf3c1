"""
Build Descriptor Model
======================
Canonical build file of one revision plus the artifacts generated for it.

Fields:
    rev_id               — revision the descriptor belongs to
    build_system         — native build system ("ant" or "maven")
    build_file           — canonical build file name, relative to the workspace
    analyzed_file        — build file the analyzer ran against
    analyzer_output_dir  — per-bug directory holding includes/excludes
    generated_dir        — revision-keyed cache of converted build files (maven only)
    dependency_cache_dir — local dependency repository populated by get-deps (maven only)
"""
from typing import Optional

from pydantic import BaseModel


class BuildDescriptor(BaseModel):
    rev_id: str
    build_system: str
    build_file: str
    analyzed_file: str
    analyzer_output_dir: str
    generated_dir: Optional[str] = None
    dependency_cache_dir: Optional[str] = None

    @property
    def is_generated(self) -> bool:
        return self.generated_dir is not None
