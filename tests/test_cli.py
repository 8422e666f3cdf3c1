"""
Unit Tests — CLI
================
"""
from datetime import datetime, timezone

import pytest
from unittest.mock import patch, MagicMock

from bugmine import cli
from bugmine.core.errors import ConfigError, LayoutMismatch
from bugmine.models.run_summary import STATUS_FAILED, STATUS_INITIALIZED, BugOutcome, RunSummary
from bugmine.services.fileset_report import REPORT_HEADER

from conftest import PID


def _summary(*statuses):
    return RunSummary(
        project_id=PID,
        started_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        outcomes=[BugOutcome(bug_id=i + 1, status=s) for i, s in enumerate(statuses)],
    )


@pytest.fixture
def orchestrator(project):
    mock = MagicMock()
    with patch("bugmine.cli.get_project", return_value=project), \
         patch("bugmine.cli.Orchestrator", mock), \
         patch("bugmine.cli.setup_logging"):
        yield mock


def test_success_prints_report(orchestrator, work_dir, capsys):
    orchestrator.return_value.run.return_value = _summary(STATUS_INITIALIZED)
    assert cli.main(["-p", PID, "-w", str(work_dir), "-b", "5"]) == 0

    config = orchestrator.call_args.args[0]
    assert config.fail_fast is True
    assert str(orchestrator.return_value.run.call_args.args[0]) == "5"
    assert REPORT_HEADER in capsys.readouterr().out


def test_continue_on_error_and_keep_scratch(orchestrator, work_dir):
    orchestrator.return_value.run.return_value = _summary(STATUS_INITIALIZED, STATUS_FAILED)
    assert cli.main(["-p", PID, "-w", str(work_dir), "--continue-on-error", "--keep-scratch"]) == 1
    config = orchestrator.call_args.args[0]
    assert config.fail_fast is False
    assert config.keep_scratch is True


def test_bug_failure_exit_code(orchestrator, work_dir):
    orchestrator.return_value.run.side_effect = LayoutMismatch("Source directories don't match")
    assert cli.main(["-p", PID, "-w", str(work_dir)]) == 1


def test_config_error_exit_code(work_dir):
    with patch("bugmine.cli.setup_logging"), \
         patch("bugmine.cli.get_project", side_effect=ConfigError("Unknown project id 'X'")):
        assert cli.main(["-p", "X", "-w", str(work_dir)]) == 2


@pytest.mark.parametrize("bad", ["abc", "4:2"])
def test_invalid_bug_selection(bad, work_dir):
    with pytest.raises(SystemExit) as exc:
        cli.main(["-p", PID, "-w", str(work_dir), "-b", bad])
    assert exc.value.code == 2


def test_required_arguments():
    with pytest.raises(SystemExit):
        cli.main(["-p", PID])
