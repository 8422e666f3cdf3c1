"""
Commit Database
===============
Read-only view of a project's commit database: one line per bug mapping the
bug id to its (buggy, fixed) revision pair.

Format:
    bug_id,buggy_rev,fixed_rev[,report_id,report_url,...]

    - Extra columns are ignored.
    - A header row (first cell not an integer, e.g. "bug.id") is skipped.
    - Blank lines and lines starting with "#" are skipped.

Invariants (checked at load):
    - bug ids are positive and unique
    - buggy_rev != fixed_rev
"""
import csv
import logging
from typing import Dict, List, NamedTuple, Optional

from bugmine.core.errors import CommitDbError, UnknownRevision
from bugmine.models.version_id import BugSelection, VersionId

logger = logging.getLogger(__name__)


class CommitEntry(NamedTuple):
    bug_id: int
    buggy_rev: str
    fixed_rev: str


class CommitDatabase:
    """In-memory, read-only commit database."""

    def __init__(self, entries: List[CommitEntry], path: str = "") -> None:
        self.path = path
        self._entries: Dict[int, CommitEntry] = {}
        self._by_rev: Dict[str, int] = {}
        for entry in entries:
            if entry.bug_id in self._entries:
                raise CommitDbError(f"Duplicate bug id {entry.bug_id} in commit-db {path}")
            if entry.buggy_rev == entry.fixed_rev:
                raise CommitDbError(
                    f"Buggy and fixed revision of bug {entry.bug_id} are identical: {entry.buggy_rev}"
                )
            self._entries[entry.bug_id] = entry
            self._by_rev.setdefault(entry.buggy_rev, entry.bug_id)
            self._by_rev.setdefault(entry.fixed_rev, entry.bug_id)

    @classmethod
    def load(cls, path: str) -> "CommitDatabase":
        """
        Parse a commit database file.

        Raises
        ------
        CommitDbError
            File missing, malformed row, or invariant violation.
        """
        entries: List[CommitEntry] = []
        try:
            with open(path, "r", encoding="utf-8", newline="") as f:
                for line_no, row in enumerate(csv.reader(f), 1):
                    cells = [c.strip() for c in row]
                    if not cells or not cells[0] or cells[0].startswith("#"):
                        continue
                    if not cells[0].isdigit():
                        if line_no == 1:
                            continue  # header
                        raise CommitDbError(f"{path}:{line_no}: invalid bug id '{cells[0]}'")
                    if len(cells) < 3 or not cells[1] or not cells[2]:
                        raise CommitDbError(f"{path}:{line_no}: expected bug_id,buggy_rev,fixed_rev")
                    bug_id = int(cells[0])
                    if bug_id < 1:
                        raise CommitDbError(f"{path}:{line_no}: bug ids start at 1, got {bug_id}")
                    entries.append(CommitEntry(bug_id, cells[1], cells[2]))
        except OSError as e:
            raise CommitDbError(f"Cannot read commit-db {path}: {e}") from e

        logger.info("Loaded %d bugs from commit-db %s", len(entries), path)
        return cls(entries, path=path)

    def ids(self) -> List[int]:
        """All bug ids, ascending."""
        return sorted(self._entries)

    def select(self, selection: Optional[BugSelection]) -> List[int]:
        if selection is None:
            return self.ids()
        return selection.filter(self.ids())

    def entry(self, bug_id: int) -> CommitEntry:
        try:
            return self._entries[bug_id]
        except KeyError:
            raise UnknownRevision(f"Bug {bug_id} is not in the commit-db {self.path}") from None

    def lookup(self, vid: VersionId) -> str:
        """Resolve a version id to its revision id."""
        entry = self.entry(vid.bug_id)
        return entry.buggy_rev if vid.is_buggy else entry.fixed_rev

    def lookup_vid(self, rev_id: str) -> int:
        """Reverse lookup: bug id owning ``rev_id``."""
        try:
            return self._by_rev[rev_id]
        except KeyError:
            raise UnknownRevision(f"Revision {rev_id} is not in the commit-db {self.path}") from None

    def __contains__(self, bug_id: int) -> bool:
        return bug_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)
