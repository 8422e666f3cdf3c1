"""
Command Runner
==============
Runs external tools (git, java, mvn, ant) as synchronous subprocesses, or
inside an ephemeral Docker container, and returns structured results.

BOUNDARY RULES:
    - Runner ONLY observes execution.
    - Runner NEVER raises for a failing command; callers decide which
      failure kind a non-zero exit maps to.
    - Runner NEVER retries.

EXIT STATUS:
    exit_code  >= 0 : normal process exit
    exit_code  <  0 : killed by signal -exit_code (signal_name is set)
    timed_out       : command exceeded its timeout and was killed

DOCKER STRATEGY (sanity checks only):
    - One container per command (ephemeral).
    - Workspace mounted as volume at the same absolute path.
    - Container destroyed after execution.
"""
import os
import signal
import subprocess
import time
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import docker
from docker.errors import (
    ContainerError,
    ImageNotFound,
    APIError,
)

from bugmine.core.config import DEFAULT_COMMAND_TIMEOUT

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Execution Result
# ---------------------------------------------------------------------------
@dataclass
class ExecutionResult:
    """
    Structured output from a single external command.

    Fields
    ------
    command : list[str]
        The executed command line.
    exit_code : int
        Process exit code (0 = success). Negative when killed by a signal,
        -1 when the command could not be started at all.
    full_log : str
        Combined stdout + stderr.
    log_excerpt : str
        Abbreviated log (first + last N lines).
    execution_time_seconds : float
        Wall clock duration.
    signal_name : str | None
        Name of the terminating signal, if any.
    timed_out : bool
        True if the timeout was hit.
    environment_metadata : dict
        Runtime info: cwd or container image, timeout applied.
    error : str | None
        Infrastructure error (command not found, Docker failure).
    """
    command: List[str] = field(default_factory=list)
    exit_code: int = -1
    full_log: str = ""
    log_excerpt: str = ""
    execution_time_seconds: float = 0.0
    signal_name: Optional[str] = None
    timed_out: bool = False
    environment_metadata: dict = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.exit_code == 0 and not self.timed_out and self.error is None

    def describe(self) -> str:
        """One-line status used in error messages."""
        if self.timed_out:
            return "timed out"
        if self.signal_name:
            return f"killed by {self.signal_name}"
        if self.error:
            return self.error
        return f"exit {self.exit_code}"


# ---------------------------------------------------------------------------
# Log Excerpt Helper
# ---------------------------------------------------------------------------
_EXCERPT_HEAD_LINES = 30
_EXCERPT_TAIL_LINES = 30


def create_log_excerpt(full_log: str,
                       head: int = _EXCERPT_HEAD_LINES,
                       tail: int = _EXCERPT_TAIL_LINES) -> str:
    """
    Create an abbreviated log showing the first and last N lines.

    If the log is short enough, returns it as-is.
    """
    lines = full_log.splitlines()
    total = len(lines)

    if total <= head + tail:
        return full_log

    head_lines = lines[:head]
    tail_lines = lines[-tail:]
    omitted = total - head - tail

    return "\n".join(
        head_lines
        + [f"\n... ({omitted} lines omitted) ...\n"]
        + tail_lines
    )


def _signal_name(signum: int) -> str:
    try:
        return signal.Signals(signum).name
    except ValueError:
        return f"SIG{signum}"


def _merge_env(env: Optional[Dict[str, str]]) -> Optional[Dict[str, str]]:
    if not env:
        return None
    merged = dict(os.environ)
    merged.update(env)
    return merged


# ---------------------------------------------------------------------------
# Local Execution
# ---------------------------------------------------------------------------
def run_command(
    command: Sequence[str],
    cwd: Optional[str] = None,
    description: str = "",
    env: Optional[Dict[str, str]] = None,
    timeout_seconds: int = DEFAULT_COMMAND_TIMEOUT,
    stdout_path: Optional[str] = None,
) -> ExecutionResult:
    """
    Run ``command`` to completion and capture its output.

    Parameters
    ----------
    command : Sequence[str]
        Executable and arguments (no shell).
    cwd : str | None
        Working directory.
    description : str
        Progress message logged before running.
    env : dict | None
        Extra environment variables, merged over the current environment.
    timeout_seconds : int
        Kill the process after this many seconds.
    stdout_path : str | None
        If given, stdout is written verbatim to this file (e.g. a diff) and
        only stderr is kept in ``full_log``.

    Returns
    -------
    ExecutionResult
        Always returned; never raises for command failures.
    """
    result = ExecutionResult(command=list(command))
    result.environment_metadata = {"cwd": cwd or os.getcwd(), "timeout_applied": timeout_seconds}
    start_time = time.monotonic()

    if description:
        logger.info("%s", description)
    logger.debug("Running: %s (cwd=%s)", " ".join(result.command), cwd)

    try:
        if stdout_path:
            with open(stdout_path, "wb") as out:
                proc = subprocess.run(
                    result.command,
                    cwd=cwd,
                    env=_merge_env(env),
                    stdout=out,
                    stderr=subprocess.PIPE,
                    timeout=timeout_seconds,
                )
            result.full_log = proc.stderr.decode("utf-8", errors="replace")
        else:
            proc = subprocess.run(
                result.command,
                cwd=cwd,
                env=_merge_env(env),
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                timeout=timeout_seconds,
            )
            result.full_log = proc.stdout.decode("utf-8", errors="replace")
        result.exit_code = proc.returncode
        if proc.returncode < 0:
            result.signal_name = _signal_name(-proc.returncode)

    except subprocess.TimeoutExpired as e:
        result.timed_out = True
        result.exit_code = -int(signal.SIGKILL)
        result.signal_name = "SIGKILL"
        output = e.stdout or b""
        result.full_log = output.decode("utf-8", errors="replace") if isinstance(output, bytes) else output
        logger.error("Command timed out after %ds: %s", timeout_seconds, " ".join(result.command))

    except OSError as e:
        result.error = f"Cannot execute {result.command[0]}: {e}"
        result.exit_code = -1
        logger.error(result.error)

    result.execution_time_seconds = round(time.monotonic() - start_time, 3)
    result.log_excerpt = create_log_excerpt(result.full_log)

    if not result.ok:
        logger.warning(
            "Command failed (%s) in %.2fs: %s",
            result.describe(), result.execution_time_seconds, " ".join(result.command),
        )
    return result


# ---------------------------------------------------------------------------
# Container Execution
# ---------------------------------------------------------------------------
_MEMORY_LIMIT = "4g"
_CPU_COUNT = 2


def run_in_container(
    command: Sequence[str],
    workspace_path: str,
    docker_image: str,
    description: str = "",
    env: Optional[Dict[str, str]] = None,
    timeout_seconds: int = DEFAULT_COMMAND_TIMEOUT,
    extra_volumes: Optional[Sequence[str]] = None,
) -> ExecutionResult:
    """
    Execute ``command`` inside an ephemeral Docker container.

    The workspace (and any ``extra_volumes``, e.g. the dependency cache) is
    mounted at its host path so absolute paths in generated build files keep
    working. Exit codes above 128 are reported as signals (128 + signum).

    Returns
    -------
    ExecutionResult
        Always returned. On infrastructure failure, exit_code is -1 and
        error is set.
    """
    result = ExecutionResult(command=list(command))
    start_time = time.monotonic()
    if description:
        logger.info("%s", description)

    volumes = {workspace_path: {"bind": workspace_path, "mode": "rw"}}
    for path in extra_volumes or ():
        volumes[path] = {"bind": path, "mode": "rw"}

    container = None
    try:
        client = docker.from_env()

        logger.info(
            "Starting container | image=%s | timeout=%ds | workdir=%s",
            docker_image, timeout_seconds, workspace_path,
        )

        container = client.containers.run(
            image=docker_image,
            command=result.command,
            volumes=volumes,
            environment=dict(env or {}),
            working_dir=workspace_path,
            mem_limit=_MEMORY_LIMIT,
            nano_cpus=_CPU_COUNT * 1_000_000_000,
            labels={"project": "bugmine", "role": "sanity-check"},
            detach=True,
            stdout=True,
            stderr=True,
        )

        wait_result = container.wait(timeout=timeout_seconds)
        result.exit_code = wait_result.get("StatusCode", -1)
        if result.exit_code > 128:
            result.signal_name = _signal_name(result.exit_code - 128)

        log_bytes = container.logs(stdout=True, stderr=True)
        result.full_log = log_bytes.decode("utf-8", errors="replace")

        result.environment_metadata = {
            "image": docker_image,
            "container_id": container.short_id,
            "timeout_applied": timeout_seconds,
            "memory_limit": _MEMORY_LIMIT,
            "cpu_count": _CPU_COUNT,
        }

    except ImageNotFound:
        result.error = f"Docker image '{docker_image}' not found"
        result.exit_code = -1
        logger.error(result.error)

    except ContainerError as e:
        result.error = f"Container execution error: {e}"
        result.exit_code = getattr(e, "exit_status", -1)
        result.full_log = str(e)
        logger.error(result.error)

    except APIError as e:
        result.error = f"Docker API error: {e}"
        result.exit_code = -1
        logger.error(result.error)

    except Exception as e:
        # Timeouts from container.wait surface as transport errors
        result.error = f"Unexpected container error: {type(e).__name__}: {e}"
        result.timed_out = "timed out" in str(e).lower()
        result.exit_code = -1
        logger.exception(result.error)

    finally:
        if container is not None:
            try:
                container.remove(force=True)
                logger.info("Container %s destroyed", container.short_id)
            except Exception:
                logger.warning("Failed to remove container", exc_info=True)

    result.execution_time_seconds = round(time.monotonic() - start_time, 3)
    result.log_excerpt = create_log_excerpt(result.full_log)

    logger.info(
        "Container execution complete | exit=%d | time=%.2fs",
        result.exit_code, result.execution_time_seconds,
    )
    return result
