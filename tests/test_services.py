"""
Unit Tests — Services
=====================
Fileset report, results writer, revision registry and workspace service.
"""
import json
import os
from dataclasses import replace
from datetime import datetime, timezone

import pytest

from bugmine.core.errors import CheckoutFailure, ConfigError
from bugmine.models.layout import Layout
from bugmine.models.revision import RevisionInfo
from bugmine.models.run_summary import STATUS_FAILED, STATUS_INITIALIZED, BugOutcome, RunSummary
from bugmine.services.fileset_report import REPORT_HEADER, build_fileset_report, write_fileset_report
from bugmine.services.results_writer import ResultsWriter
from bugmine.services.revision_registry import RevisionRegistry
from bugmine.services import workspace_service
from bugmine.utils.failure_reasons import ALL_FAILURE_REASONS, STAGE_HINTS, get_stage_hint

from conftest import PID


# ---------------------------------------------------------------------------
# 1. Fileset report
# ---------------------------------------------------------------------------
class TestFilesetReport:

    def _bug(self, root, bug_id, includes, excludes):
        bug_dir = root / str(bug_id)
        bug_dir.mkdir(parents=True)
        (bug_dir / "includes").write_text("".join(f"{line}\n" for line in includes))
        (bug_dir / "excludes").write_text("".join(f"{line}\n" for line in excludes))

    def test_sorted_and_deduplicated(self, tmp_path):
        root = tmp_path / "analyzer_output"
        self._bug(root, 1, ["b/BTest.java", "a/ATest.java"], ["z/Abstract.java"])
        self._bug(root, 2, ["a/ATest.java"], ["y/Base.java", ""])
        assert build_fileset_report(str(root)) == [
            "<include name='a/ATest.java' />",
            "<include name='b/BTest.java' />",
            "<exclude name='y/Base.java' />",
            "<exclude name='z/Abstract.java' />",
        ]

    def test_empty_output(self, tmp_path):
        assert build_fileset_report(str(tmp_path)) == []

    def test_write(self, tmp_path):
        root = tmp_path / "analyzer_output"
        self._bug(root, 1, ["a/ATest.java"], [])
        path = write_fileset_report(str(root), str(tmp_path))
        with open(path) as f:
            assert f.read() == f"{REPORT_HEADER}\n<include name='a/ATest.java' />\n"


# ---------------------------------------------------------------------------
# 2. Results writer
# ---------------------------------------------------------------------------
class TestResultsWriter:

    def _summary(self):
        return RunSummary(
            project_id=PID,
            selection="1:2",
            started_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
            outcomes=[
                BugOutcome(bug_id=1, status=STATUS_INITIALIZED,
                           layout=Layout(src_dir="src", test_dir="test")),
                BugOutcome(bug_id=2, status=STATUS_FAILED, failure_reason="UNKNOWN_LAYOUT"),
            ],
        )

    def test_write_and_read(self, tmp_path):
        assert ResultsWriter.write_results(self._summary(), str(tmp_path))
        with open(ResultsWriter.results_path(str(tmp_path))) as f:
            data = json.load(f)
        assert data["totals"] == {"bugs": 2, "failed": 1}
        assert data["outcomes"][0]["layout"] == {"src_dir": "src", "test_dir": "test"}

        restored = ResultsWriter.read_results(str(tmp_path))
        assert restored.project_id == PID
        assert [o.bug_id for o in restored.failed] == [2]

    def test_read_missing(self, tmp_path):
        assert ResultsWriter.read_results(str(tmp_path)) is None

    def test_write_failure_returns_false(self, tmp_path):
        assert not ResultsWriter.write_results(self._summary(), str(tmp_path / "missing" / "dir"))


# ---------------------------------------------------------------------------
# 3. Revision registry
# ---------------------------------------------------------------------------
class TestRevisionRegistry:

    def _info(self, rev_id, src="src"):
        return RevisionInfo(rev_id=rev_id, vid="1b", workspace="/ws",
                            layout=Layout(src_dir=src, test_dir="test"))

    def test_register_get_forget(self, tmp_path):
        registry = RevisionRegistry(str(tmp_path))
        registry.register(self._info("r1"))
        assert registry.get("r1").layout.src_dir == "src"
        assert len(registry) == 1
        registry.forget("r1")
        assert registry.get("r1") is None
        registry.forget("r1")

    def test_layout_file_upserted_and_sorted(self, tmp_path):
        registry = RevisionRegistry(str(tmp_path))
        registry.register(self._info("r2"))
        registry.register(self._info("r1"))
        registry.register(self._info("r2", src="source"))
        with open(os.path.join(str(tmp_path), "layouts.csv")) as f:
            assert f.read().splitlines() == ["r1,src,test", "r2,source,test"]

    def test_layouts_survive_new_instance(self, tmp_path):
        RevisionRegistry(str(tmp_path)).register(self._info("r1"))
        fresh = RevisionRegistry(str(tmp_path))
        assert fresh.get("r1") is None
        assert fresh.load_layouts() == {"r1": Layout(src_dir="src", test_dir="test")}


# ---------------------------------------------------------------------------
# 4. Workspace service
# ---------------------------------------------------------------------------
class TestWorkspaceService:

    def test_ensure_project_dirs(self, config):
        workspace_service.ensure_project_dirs(config, PID)
        assert os.path.isdir(config.analyzer_output_dir(PID))
        assert os.path.isdir(config.build_files_dir(PID))

    def test_missing_project_dir(self, config):
        with pytest.raises(ConfigError, match="does not exist"):
            workspace_service.ensure_project_dirs(config, "Unknown")

    def test_scratch_roots_are_disjoint(self, config):
        one = workspace_service.prepare_scratch_root(config, PID, 1)
        two = workspace_service.prepare_scratch_root(config, PID, 2)
        assert not one.startswith(two) and not two.startswith(one)
        with open(os.path.join(one, "marker"), "w") as f:
            f.write("x")
        assert workspace_service.prepare_scratch_root(config, PID, 1) == one
        assert os.listdir(one) == []

    def test_release_respects_keep_scratch(self, config):
        root = workspace_service.prepare_scratch_root(config, PID, 3)
        workspace_service.release_scratch_root(replace(config, keep_scratch=True), PID, 3)
        assert os.path.isdir(root)
        workspace_service.release_scratch_root(config, PID, 3)
        assert not os.path.exists(root)

    def test_clean_bug_artifacts(self, config):
        analyzer_dir = os.path.join(config.analyzer_output_dir(PID), "4")
        os.makedirs(analyzer_dir)
        patches = [os.path.join(config.patch_dir(PID), name) for name in ("4.src.patch", "4.test.patch")]
        other = os.path.join(config.patch_dir(PID), "5.src.patch")
        for path in patches + [other]:
            with open(path, "w") as f:
                f.write("diff")

        workspace_service.clean_bug_artifacts(config, PID, 4)
        assert not os.path.exists(analyzer_dir)
        assert not any(os.path.exists(p) for p in patches)
        assert os.path.exists(other)

    def test_unremovable_scratch_root(self, config):
        root = config.bug_scratch_dir(PID, 6)
        os.makedirs(os.path.dirname(root))
        with open(root, "w") as f:
            f.write("not a directory")
        with pytest.raises(CheckoutFailure, match="Cannot prepare scratch root") as exc:
            workspace_service.prepare_scratch_root(config, PID, 6)
        assert isinstance(exc.value.__cause__, OSError)

    def test_unremovable_analyzer_output(self, config):
        os.makedirs(config.analyzer_output_dir(PID))
        with open(os.path.join(config.analyzer_output_dir(PID), "8"), "w") as f:
            f.write("not a directory")
        with pytest.raises(CheckoutFailure, match="previous artifacts of bug 8"):
            workspace_service.clean_bug_artifacts(config, PID, 8)


# ---------------------------------------------------------------------------
# 5. Failure reasons
# ---------------------------------------------------------------------------
def test_every_stage_hint_is_a_known_reason():
    assert set(STAGE_HINTS) <= ALL_FAILURE_REASONS


def test_stage_hints():
    assert get_stage_hint("LAYOUT_MISMATCH") == "layout"
    assert get_stage_hint("SANITY_CHECK_FAILURE") == "sanity_check"
    assert get_stage_hint("INTERNAL_ERROR") == "unknown"
