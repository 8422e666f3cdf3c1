"""
CLI
===
``bugmine-init -p <project_id> -w <work_dir> [-b <bug_id>|<from>:<to>]``

Initializes all revisions of the selected bugs: identifies the directory
layout, derives the source/test patches, and sanity-checks each fixed
revision. Prints the fileset report at the end.

Exit codes:
    0 — all selected bugs processed without failure
    1 — a bug failed (the first failure with fail-fast, any failure otherwise)
    2 — invalid arguments or configuration
"""
import argparse
import logging
import sys
from typing import List, Optional

from bugmine.agents.orchestrator import Orchestrator
from bugmine.core.config import PipelineConfig
from bugmine.core.errors import BugMineError, ConfigError
from bugmine.models.version_id import BugSelection
from bugmine.projects.registry import get_project
from bugmine.services.fileset_report import REPORT_HEADER, build_fileset_report
from bugmine.utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def _bug_selection(raw: str) -> BugSelection:
    try:
        return BugSelection.parse(raw)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bugmine-init",
        description="Initialize all revisions: identify the directory layout "
                    "and perform a sanity check for each revision.",
    )
    parser.add_argument("-p", dest="project_id", required=True,
                        help="id of the project for which the metadata should be generated")
    parser.add_argument("-w", dest="work_dir", required=True,
                        help="working directory used for the bug-mining process")
    parser.add_argument("-b", dest="bug_id", type=_bug_selection, default=None,
                        help="only analyze this bug id or inclusive range, format (\\d+)(:(\\d+))?")
    parser.add_argument("--continue-on-error", action="store_true",
                        help="record a failing bug and continue with the next one")
    parser.add_argument("--keep-scratch", action="store_true",
                        help="keep per-bug scratch checkouts")
    parser.add_argument("--log-dir", default="logs",
                        help="directory for the log file (empty string disables it)")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(level=logging.DEBUG if args.verbose else logging.INFO, log_dir=args.log_dir)

    overrides = {"keep_scratch": True} if args.keep_scratch else {}
    if args.continue_on_error:
        overrides["fail_fast"] = False
    config = PipelineConfig.from_work_dir(args.work_dir, **overrides)

    try:
        project = get_project(args.project_id, config)
        summary = Orchestrator(config, project).run(args.bug_id)
    except ConfigError as e:
        logger.error("%s", e)
        return 2
    except BugMineError as e:
        logger.error("Aborting run [%s]: %s", e.reason, e)
        if e.command:
            logger.error("Failing command: %s", " ".join(e.command))
        return 1

    print("\n" + REPORT_HEADER)
    for line in build_fileset_report(config.analyzer_output_dir(project.pid)):
        print(line)

    for outcome in summary.failed:
        logger.error("Bug %d failed [%s]: %s", outcome.bug_id, outcome.failure_reason, outcome.error_message)
    return 0 if summary.succeeded else 1


if __name__ == "__main__":
    sys.exit(main())
