"""
Sanity Result Model
===================
Outcome of building and test-running the fixed revision of one bug.

Fields:
    passed          — True iff the build and test run exited with status 0
    exit_code       — exit status; negative means killed by a signal
    signal_name     — e.g. "SIGKILL" when the process was signalled
    timed_out       — True if the command hit the configured timeout
    command         — the executed command line
    log_excerpt     — head + tail of the combined output
    execution_time_seconds — wall clock duration
"""
from typing import List, Optional

from pydantic import BaseModel


class SanityResult(BaseModel):
    bug_id: int
    rev_id: str
    passed: bool
    exit_code: int
    signal_name: Optional[str] = None
    timed_out: bool = False
    command: List[str] = []
    log_excerpt: str = ""
    execution_time_seconds: float = 0.0
