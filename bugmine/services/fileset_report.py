"""
Fileset Report
==============
Aggregates the analyzer's per-bug ``includes``/``excludes`` files into the
lines to add to the ``all.manual.tests`` fileset of the project build file.

Output (sorted, de-duplicated)::

    <include name='org/foo/BarTest.java' />
    ...
    <exclude name='org/foo/BazTest.java' />
"""
import glob
import os
import logging
from typing import List, Set

from bugmine.core.constants import EXCLUDES_FILE, FILESET_REPORT_FILE, INCLUDES_FILE

logger = logging.getLogger(__name__)

REPORT_HEADER = (
    "--- Add the following to the <fileset> tag identified by the id "
    "'all.manual.tests' in the <PROJECT_ID.build.xml> file ---"
)


def _collect(analyzer_output_dir: str, file_name: str) -> List[str]:
    entries: Set[str] = set()
    for path in glob.glob(os.path.join(analyzer_output_dir, "*", file_name)):
        with open(path, "r", encoding="utf-8") as f:
            entries.update(line.strip() for line in f if line.strip())
    return sorted(entries)


def build_fileset_report(analyzer_output_dir: str) -> List[str]:
    """Return include lines followed by exclude lines."""
    lines = [f"<include name='{name}' />" for name in _collect(analyzer_output_dir, INCLUDES_FILE)]
    lines += [f"<exclude name='{name}' />" for name in _collect(analyzer_output_dir, EXCLUDES_FILE)]
    return lines


def write_fileset_report(analyzer_output_dir: str, project_dir: str) -> str:
    """Write the report next to the project config and return its path."""
    lines = build_fileset_report(analyzer_output_dir)
    out_path = os.path.join(project_dir, FILESET_REPORT_FILE)
    with open(out_path, "w", encoding="utf-8") as f:
        f.write(REPORT_HEADER + "\n")
        for line in lines:
            f.write(line + "\n")
    logger.info("Wrote fileset report (%d entries) to %s", len(lines), out_path)
    return out_path
