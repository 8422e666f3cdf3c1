"""
Failure Reasons
===============
Standardised constants naming why a bug could not be initialized.

Used by BugMineError.reason and BugOutcome.failure_reason so the run summary
and API consumers get clean, machine-readable failure kinds.
"""


# ---------------------------------------------------------------------------
# Failure Reason Constants
# ---------------------------------------------------------------------------
UNKNOWN_REVISION = "UNKNOWN_REVISION"
CHECKOUT_FAILURE = "CHECKOUT_FAILURE"
UNKNOWN_LAYOUT = "UNKNOWN_LAYOUT"
LAYOUT_MISMATCH = "LAYOUT_MISMATCH"
UNSUPPORTED_BUILD_SYSTEM = "UNSUPPORTED_BUILD_SYSTEM"
BUILD_CONVERSION_FAILURE = "BUILD_CONVERSION_FAILURE"
ANALYZER_FAILURE = "ANALYZER_FAILURE"
DEPENDENCY_RESOLUTION_FAILURE = "DEPENDENCY_RESOLUTION_FAILURE"
SANITY_CHECK_FAILURE = "SANITY_CHECK_FAILURE"
COMMIT_DB_ERROR = "COMMIT_DB_ERROR"
CONFIG_ERROR = "CONFIG_ERROR"
INTERNAL_ERROR = "INTERNAL_ERROR"

# All valid reasons (for validation)
ALL_FAILURE_REASONS = frozenset({
    UNKNOWN_REVISION,
    CHECKOUT_FAILURE,
    UNKNOWN_LAYOUT,
    LAYOUT_MISMATCH,
    UNSUPPORTED_BUILD_SYSTEM,
    BUILD_CONVERSION_FAILURE,
    ANALYZER_FAILURE,
    DEPENDENCY_RESOLUTION_FAILURE,
    SANITY_CHECK_FAILURE,
    COMMIT_DB_ERROR,
    CONFIG_ERROR,
    INTERNAL_ERROR,
})


# ---------------------------------------------------------------------------
# Pipeline stage per reason (for the run summary)
# ---------------------------------------------------------------------------
STAGE_HINTS = {
    UNKNOWN_REVISION: "resolve",
    COMMIT_DB_ERROR: "resolve",
    CHECKOUT_FAILURE: "checkout",
    UNSUPPORTED_BUILD_SYSTEM: "build_descriptor",
    BUILD_CONVERSION_FAILURE: "build_descriptor",
    ANALYZER_FAILURE: "build_descriptor",
    DEPENDENCY_RESOLUTION_FAILURE: "build_descriptor",
    UNKNOWN_LAYOUT: "layout",
    LAYOUT_MISMATCH: "layout",
    SANITY_CHECK_FAILURE: "sanity_check",
}


def get_stage_hint(reason: str) -> str:
    """
    Map a failure reason to the pipeline stage that produced it.

    Parameters
    ----------
    reason : str
        One of the failure reason constants.

    Returns
    -------
    str
        Stage name, or "unknown" for reasons without a stage.
    """
    return STAGE_HINTS.get(reason, "unknown")
