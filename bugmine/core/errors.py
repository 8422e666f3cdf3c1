"""
Errors
======
Failure taxonomy for the revision-initialization pipeline.

Every kind is fatal to the bug being processed. Whether it also aborts the
whole run is decided by the Orchestrator (``PipelineConfig.fail_fast``).
Nothing here is retried.

Each class carries a stable ``reason`` (see utils/failure_reasons.py) so run
summaries can report failures in a machine-readable way.
"""
from typing import Optional, Sequence

from bugmine.utils import failure_reasons


class BugMineError(Exception):
    """
    Base class for all pipeline failures.

    Attributes
    ----------
    message : str
        Human-readable description of the failing command or invariant.
    command : list[str] | None
        External command that failed, if any.
    exit_code : int | None
        Exit status of that command. Negative values mean a signal.
    log : str
        Captured output excerpt for postmortem inspection.
    """
    reason = failure_reasons.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        command: Optional[Sequence[str]] = None,
        exit_code: Optional[int] = None,
        log: str = "",
    ) -> None:
        super().__init__(message)
        self.message = message
        self.command = list(command) if command else None
        self.exit_code = exit_code
        self.log = log

    def __str__(self) -> str:
        if self.exit_code is None:
            return self.message
        return f"{self.message} (exit {self.exit_code})"


class ConfigError(BugMineError):
    reason = failure_reasons.CONFIG_ERROR


class CommitDbError(BugMineError):
    """Malformed commit database (duplicate ids, identical revisions)."""
    reason = failure_reasons.COMMIT_DB_ERROR


class UnknownRevision(BugMineError):
    reason = failure_reasons.UNKNOWN_REVISION


class CheckoutFailure(BugMineError):
    """VCS error or post-checkout hook failure."""
    reason = failure_reasons.CHECKOUT_FAILURE


class UnknownLayout(BugMineError):
    reason = failure_reasons.UNKNOWN_LAYOUT


class LayoutMismatch(BugMineError):
    """Buggy and fixed revisions of one bug disagree on src/test layout."""
    reason = failure_reasons.LAYOUT_MISMATCH


class UnsupportedBuildSystem(BugMineError):
    reason = failure_reasons.UNSUPPORTED_BUILD_SYSTEM


class BuildConversionFailure(BugMineError):
    reason = failure_reasons.BUILD_CONVERSION_FAILURE


class AnalyzerFailure(BugMineError):
    reason = failure_reasons.ANALYZER_FAILURE


class DependencyResolutionFailure(BugMineError):
    reason = failure_reasons.DEPENDENCY_RESOLUTION_FAILURE


class SanityCheckFailure(BugMineError):
    """Build or test execution failed on the fixed revision."""
    reason = failure_reasons.SANITY_CHECK_FAILURE

    def __init__(self, message: str, result=None, **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.result = result
