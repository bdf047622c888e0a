"""Blocking execution of external processes.

Every tool the buildpack invokes (dep, glide, hook scripts, go install)
goes through run_step(). Each call has a hard wall-clock timeout and full
stdout/stderr capture; a timed-out process is reported, never retried.
"""

import logging
import shlex
import subprocess
import time
from pathlib import Path
from typing import Optional, Union

from gobuildpack.execution.limits import apply_resource_limits
from gobuildpack.execution.types import (
    SPAWN_FAILED_EXIT_CODE,
    TIMEOUT_EXIT_CODE,
    StepResult,
)

logger = logging.getLogger(__name__)

# Default timeout per external invocation (seconds)
DEFAULT_TIMEOUT = 900

Command = Union[str, list[str]]


def display_command(command: Command) -> str:
    """Render a command the way it is shown in build output."""
    if isinstance(command, str):
        return command
    return shlex.join(command)


def run_step(
    name: str,
    command: Command,
    cwd: Path,
    timeout: int = DEFAULT_TIMEOUT,
    env: Optional[dict] = None,
) -> StepResult:
    """Execute a single external process.

    A string command runs through the shell; an argv list runs directly.
    Captures stdout, stderr, exit code, and duration.
    Raises no exceptions — always returns a StepResult.
    """
    shown = display_command(command)
    logger.info("Running step '%s': %s (cwd=%s)", name, shown, cwd)
    start = time.monotonic()

    try:
        result = subprocess.run(
            command,
            shell=isinstance(command, str),
            cwd=str(cwd),
            capture_output=True,
            text=True,
            timeout=timeout,
            env=env,
            preexec_fn=apply_resource_limits,
        )
        step_result = StepResult(
            name=name,
            command=shown,
            exit_code=result.returncode,
            duration_seconds=time.monotonic() - start,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
        )

    except subprocess.TimeoutExpired:
        step_result = StepResult(
            name=name,
            command=shown,
            exit_code=TIMEOUT_EXIT_CODE,
            duration_seconds=time.monotonic() - start,
            stderr=f"Timed out after {timeout} seconds",
        )

    except OSError as exc:
        step_result = StepResult(
            name=name,
            command=shown,
            exit_code=SPAWN_FAILED_EXIT_CODE,
            duration_seconds=time.monotonic() - start,
            stderr=str(exc),
        )

    status = "OK" if step_result.is_success else "FAILED"
    logger.info(
        "Step '%s' %s (exit=%d, %.1fs)",
        name, status, step_result.exit_code, step_result.duration_seconds,
    )
    return step_result


def emit_output(log, step_result: StepResult) -> None:
    """Pass a process's output through to the staging log, line by line.

    Lines are not rewritten: "go: downloading ..." reaches the user as the
    go command printed it.
    """
    for line in step_result.output.splitlines():
        if line.strip():
            log.info(line)
