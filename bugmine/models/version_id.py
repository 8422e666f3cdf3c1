"""
Version Id Model
================
Pydantic models for bug identifiers and their checkout keys.

Fields:
    bug_id   — integer key of a tracked defect (from the commit database)
    tag      — BUGGY ("b") or FIXED ("f")

String form of a VersionId is the bug id followed by the tag, e.g. "5b".
BugSelection is either a single bug id or an inclusive range, parsed from
"N" or "N:M".
"""
import re
from enum import Enum
from typing import Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from bugmine.core.constants import BUGGY_TAG, FIXED_TAG, BUG_SELECTION_PATTERN

_VID_RE = re.compile(r"^(\d+)([bf])$")
_SELECTION_RE = re.compile(BUG_SELECTION_PATTERN)


class VersionTag(str, Enum):
    BUGGY = BUGGY_TAG
    FIXED = FIXED_TAG


class VersionId(BaseModel):
    model_config = ConfigDict(frozen=True)

    bug_id: int
    tag: VersionTag

    @field_validator("bug_id")
    @classmethod
    def positive_id(cls, v: int) -> int:
        if v < 1:
            raise ValueError("bug id must be a positive integer")
        return v

    @classmethod
    def parse(cls, vid: str) -> "VersionId":
        """Parse the string form ("5b", "12f")."""
        match = _VID_RE.match(vid.strip())
        if not match:
            raise ValueError(f"Wrong version id format ((\\d+)[bf]): {vid}")
        return cls(bug_id=int(match.group(1)), tag=VersionTag(match.group(2)))

    @property
    def is_buggy(self) -> bool:
        return self.tag is VersionTag.BUGGY

    def __str__(self) -> str:
        return f"{self.bug_id}{self.tag.value}"


class BugSelection(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: int
    end: Optional[int] = None

    @model_validator(mode="after")
    def ordered_range(self) -> "BugSelection":
        if self.end is not None and self.end < self.start:
            raise ValueError(f"Empty bug id range: {self.start}:{self.end}")
        return self

    @classmethod
    def parse(cls, raw: str) -> "BugSelection":
        """Parse "N" or "N:M"; raises ValueError on any other format."""
        match = _SELECTION_RE.match(raw.strip())
        if not match:
            raise ValueError(f"Wrong bug id format ((\\d+)(:(\\d+))?): {raw}")
        end = int(match.group(3)) if match.group(3) else None
        return cls(start=int(match.group(1)), end=end)

    def contains(self, bug_id: int) -> bool:
        if self.end is None:
            return bug_id == self.start
        return self.start <= bug_id <= self.end

    def filter(self, ids: Iterable[int]) -> List[int]:
        return [bid for bid in ids if self.contains(bid)]

    def __str__(self) -> str:
        return str(self.start) if self.end is None else f"{self.start}:{self.end}"
