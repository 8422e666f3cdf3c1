"""
Unit Tests — Commit Database and bug selections
===============================================
"""
import pytest

from bugmine.core.errors import CommitDbError, UnknownRevision
from bugmine.models.version_id import BugSelection, VersionId, VersionTag
from bugmine.vcs.commit_db import CommitDatabase, CommitEntry


def _write(tmp_path, content):
    path = tmp_path / "commit-db"
    path.write_text(content)
    return str(path)


# ---------------------------------------------------------------------------
# 1. Loading
# ---------------------------------------------------------------------------
class TestLoad:

    def test_plain_rows(self, tmp_path):
        db = CommitDatabase.load(_write(tmp_path, "1,aaa,bbb\n2,ccc,ddd\n"))
        assert db.ids() == [1, 2]
        assert db.entry(2) == CommitEntry(2, "ccc", "ddd")

    def test_header_and_extra_columns_are_ignored(self, tmp_path):
        content = (
            "bug.id,revision.id.buggy,revision.id.fixed,report.id,report.url\n"
            "3,b3,f3,ISSUE-1,https://example.com/1\n"
        )
        db = CommitDatabase.load(_write(tmp_path, content))
        assert db.entry(3) == CommitEntry(3, "b3", "f3")

    def test_blank_lines_and_comments_are_skipped(self, tmp_path):
        db = CommitDatabase.load(_write(tmp_path, "# comment\n\n5,b5,f5\n"))
        assert len(db) == 1

    def test_ids_sorted(self, tmp_path):
        db = CommitDatabase.load(_write(tmp_path, "10,a,b\n2,c,d\n7,e,f\n"))
        assert db.ids() == [2, 7, 10]

    def test_duplicate_id_rejected(self, tmp_path):
        with pytest.raises(CommitDbError, match="Duplicate"):
            CommitDatabase.load(_write(tmp_path, "1,a,b\n1,c,d\n"))

    def test_identical_revisions_rejected(self, tmp_path):
        with pytest.raises(CommitDbError, match="identical"):
            CommitDatabase.load(_write(tmp_path, "1,same,same\n"))

    def test_missing_column_rejected(self, tmp_path):
        with pytest.raises(CommitDbError):
            CommitDatabase.load(_write(tmp_path, "1,only-buggy\n"))

    def test_non_numeric_id_after_header_rejected(self, tmp_path):
        with pytest.raises(CommitDbError, match="invalid bug id"):
            CommitDatabase.load(_write(tmp_path, "1,a,b\nx,c,d\n"))

    @pytest.mark.parametrize("row", ["0,a,b\n", "00,a,b\n"])
    def test_zero_bug_id_rejected(self, tmp_path, row):
        with pytest.raises(CommitDbError, match="bug ids start at 1"):
            CommitDatabase.load(_write(tmp_path, "1,x,y\n" + row))

    def test_missing_file(self, tmp_path):
        with pytest.raises(CommitDbError, match="Cannot read"):
            CommitDatabase.load(str(tmp_path / "nope"))


# ---------------------------------------------------------------------------
# 2. Lookup
# ---------------------------------------------------------------------------
class TestLookup:

    @pytest.fixture
    def db(self):
        return CommitDatabase([CommitEntry(5, "ref_b5", "ref_f5"), CommitEntry(6, "ref_b6", "ref_f6")])

    def test_lookup_buggy_and_fixed(self, db):
        assert db.lookup(VersionId(bug_id=5, tag=VersionTag.BUGGY)) == "ref_b5"
        assert db.lookup(VersionId.parse("5f")) == "ref_f5"

    def test_pair_never_identical(self, db):
        for bug_id in db.ids():
            assert db.lookup(VersionId.parse(f"{bug_id}b")) != db.lookup(VersionId.parse(f"{bug_id}f"))

    def test_unknown_bug(self, db):
        with pytest.raises(UnknownRevision):
            db.lookup(VersionId.parse("99b"))

    def test_reverse_lookup(self, db):
        assert db.lookup_vid("ref_f6") == 6
        with pytest.raises(UnknownRevision):
            db.lookup_vid("nope")

    def test_select(self, db):
        assert db.select(None) == [5, 6]
        assert db.select(BugSelection.parse("6")) == [6]
        assert db.select(BugSelection.parse("1:5")) == [5]
        assert db.select(BugSelection.parse("7:9")) == []


# ---------------------------------------------------------------------------
# 3. Version ids and selections
# ---------------------------------------------------------------------------
class TestVersionIds:

    def test_parse_and_str(self):
        vid = VersionId.parse("12b")
        assert vid.bug_id == 12 and vid.is_buggy
        assert str(vid) == "12b"

    @pytest.mark.parametrize("raw", ["12", "b12", "12x", "-1b", ""])
    def test_parse_rejects(self, raw):
        with pytest.raises(ValueError):
            VersionId.parse(raw)

    def test_selection_single_and_range(self):
        assert BugSelection.parse("4").filter([1, 4, 5]) == [4]
        assert BugSelection.parse("2:4").filter([1, 2, 3, 4, 5]) == [2, 3, 4]
        assert str(BugSelection.parse("2:4")) == "2:4"

    @pytest.mark.parametrize("raw", ["a", "1-3", "1:", ":3", "5:2"])
    def test_selection_rejects(self, raw):
        with pytest.raises(ValueError):
            BugSelection.parse(raw)
