"""Hook runner: user scripts around the compile step.

State machine:

    IDLE → BEFORE_HOOK_RUNNING → BUILD_RUNNING → AFTER_HOOK_RUNNING → DONE
                 │                     │                 │
                 └──────────────► FAILED ◄───────────────┘

FAILED is absorbing. A failing before-hook means the build never starts;
a failing build means after-hooks never run. Hooks within a phase run one
at a time, in the configured order.

Scripts are looked up relative to the app directory. With no configured
list, bin/before_compile and bin/after_compile are used when present
and executable. `results` collects every process run, build included, in
order.
"""

import logging
import os
from collections.abc import Callable, Mapping, Sequence
from enum import StrEnum
from pathlib import Path
from typing import Optional

from gobuildpack.core.logging import get_log
from gobuildpack.execution.executor import DEFAULT_TIMEOUT, emit_output, run_step
from gobuildpack.execution.types import StepResult
from gobuildpack.staging.errors import HookError, StagingError

logger = logging.getLogger(__name__)

DEFAULT_BEFORE_HOOK = "bin/before_compile"
DEFAULT_AFTER_HOOK = "bin/after_compile"


class HookState(StrEnum):
    IDLE = "idle"
    BEFORE_HOOK_RUNNING = "before_hook_running"
    BUILD_RUNNING = "build_running"
    AFTER_HOOK_RUNNING = "after_hook_running"
    DONE = "done"
    FAILED = "failed"


class HookPhase(StrEnum):
    BEFORE_COMPILE = "BeforeCompile"
    AFTER_COMPILE = "AfterCompile"


_TRANSITIONS: dict[HookState, frozenset[HookState]] = {
    HookState.IDLE: frozenset({HookState.BEFORE_HOOK_RUNNING}),
    HookState.BEFORE_HOOK_RUNNING: frozenset({HookState.BUILD_RUNNING, HookState.FAILED}),
    HookState.BUILD_RUNNING: frozenset({HookState.AFTER_HOOK_RUNNING, HookState.FAILED}),
    HookState.AFTER_HOOK_RUNNING: frozenset({HookState.DONE, HookState.FAILED}),
    HookState.DONE: frozenset(),
    HookState.FAILED: frozenset(),
}


class InvalidHookTransition(RuntimeError):
    """Raised when the runner is driven out of order (a programming error)."""


def discover_hooks(app_dir: Path, configured: Sequence[str], default: str) -> list[Path]:
    if configured:
        return [Path(app_dir) / script for script in configured]
    candidate = Path(app_dir) / default
    if candidate.is_file() and os.access(candidate, os.X_OK):
        return [candidate]
    return []


class HookRunner:
    def __init__(
        self,
        app_dir: Path,
        before_hooks: Sequence[Path] = (),
        after_hooks: Sequence[Path] = (),
        env: Optional[Mapping[str, str]] = None,
        timeout: int = DEFAULT_TIMEOUT,
        debug: bool = False,
        run: Callable[..., StepResult] = run_step,
        log=None,
    ):
        self.app_dir = Path(app_dir)
        self.hooks = {
            HookPhase.BEFORE_COMPILE: list(before_hooks),
            HookPhase.AFTER_COMPILE: list(after_hooks),
        }
        self.env = dict(env) if env is not None else None
        self.timeout = timeout
        self.debug = debug
        self.run_process = run
        self.log = log or get_log()
        self.state = HookState.IDLE
        self.results: list[StepResult] = []
        self._trace_count = 0

    def run(self, build: Callable[[], StepResult]) -> StepResult:
        """Drive before-hooks, the build, and after-hooks to completion.

        build() must raise a StagingError (BuildError) on failure.
        """
        try:
            self._transition(HookState.BEFORE_HOOK_RUNNING)
            self._run_phase(HookPhase.BEFORE_COMPILE)

            self._transition(HookState.BUILD_RUNNING)
            build_result = build()
            self.results.append(build_result)

            self._transition(HookState.AFTER_HOOK_RUNNING)
            self._run_phase(HookPhase.AFTER_COMPILE)

            self._transition(HookState.DONE)
            return build_result
        except StagingError:
            self._transition(HookState.FAILED)
            raise

    def _transition(self, target: HookState) -> None:
        if target not in _TRANSITIONS[self.state]:
            raise InvalidHookTransition(f"cannot move from {self.state} to {target}")
        logger.debug("Hook runner %s -> %s", self.state, target)
        self.state = target

    def _run_phase(self, phase: HookPhase) -> None:
        if self.debug:
            self._trace_count += 1
            self.log.info(f"HOOKS {self._trace_count}: {phase}")

        for script in self.hooks[phase]:
            self._run_hook(phase, script)

    def _run_hook(self, phase: HookPhase, script: Path) -> None:
        if not script.is_file():
            raise HookError(f"{phase} hook {script.name} not found at {script}")

        # Non-executable scripts are still run, through bash.
        if os.access(script, os.X_OK):
            command = [str(script)]
        else:
            command = ["bash", str(script)]

        self.log.info(f"Running {phase} hook {os.path.relpath(script, self.app_dir)}")
        result = self.run_process(
            f"hook:{phase}",
            command,
            self.app_dir,
            timeout=self.timeout,
            env=self.env,
        )
        self.results.append(result)
        emit_output(self.log, result)

        if result.timed_out:
            raise HookError(
                f"{phase} hook {script.name} timed out after {self.timeout} seconds", result
            )
        if not result.is_success:
            raise HookError(
                f"{phase} hook {script.name} failed with exit code {result.exit_code}", result
            )
