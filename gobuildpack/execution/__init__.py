"""External process execution with timeouts and resource limits."""

from gobuildpack.execution.executor import (
    DEFAULT_TIMEOUT,
    display_command,
    emit_output,
    run_step,
)
from gobuildpack.execution.types import StepResult

__all__ = ["DEFAULT_TIMEOUT", "display_command", "emit_output", "run_step", "StepResult"]
