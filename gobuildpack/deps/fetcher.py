"""Dependency fetcher — runs the app's package manager when vendor/ needs it.

  dep      Gopkg.lock present → dep ensure -vendor-only (no upgrades)
           no Gopkg.lock      → dep ensure (resolve and lock)
  glide    glide install (honours glide.lock when present)

Every other strategy is a no-op here: vendored trees already carry their
dependencies, and go modules download during the build itself, with the
"go: downloading" lines passed through from the build output.
"""

import logging
import os
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Optional

from gobuildpack.core.logging import get_log
from gobuildpack.detector.types import DetectionResult, Strategy
from gobuildpack.execution.executor import (
    DEFAULT_TIMEOUT,
    display_command,
    emit_output,
    run_step,
)
from gobuildpack.execution.types import StepResult
from gobuildpack.staging.errors import DependencyFetchError

logger = logging.getLogger(__name__)

GLIDE_SKIP_NOTICE = "Note: skipping (glide install) due to non-empty vendor directory."
DEP_ENSURE_SKIP_NOTICE = 'Note: skipping (dep ensure) due to ensure = "false" in Gopkg.toml.'


def tool_command(detection: DetectionResult) -> Optional[list[str]]:
    """The package-manager invocation a strategy needs, or None."""
    if detection.strategy == Strategy.DEP and detection.dep_ensure:
        if detection.has_lockfile:
            return ["dep", "ensure", "-vendor-only"]
        return ["dep", "ensure"]
    if detection.strategy == Strategy.GLIDE:
        return ["glide", "install"]
    return None


class DependencyFetcher:
    """Populates vendor/ for strategies that are not already vendored.

    install_tool(name) installs a package manager from the buildpack
    manifest and returns the directory containing its executable; it is
    only called when a tool actually has to run.
    """

    def __init__(
        self,
        install_tool: Callable[[str], Path],
        run: Callable[..., StepResult] = run_step,
        timeout: int = DEFAULT_TIMEOUT,
        log=None,
    ):
        self.install_tool = install_tool
        self.run = run
        self.timeout = timeout
        self.log = log or get_log()

    def populate(
        self,
        detection: DetectionResult,
        cwd: Path,
        env: Mapping[str, str],
    ) -> Optional[StepResult]:
        strategy = detection.strategy

        if strategy == Strategy.GLIDE_VENDORED:
            self.log.info(GLIDE_SKIP_NOTICE)
            return None
        if strategy == Strategy.DEP and not detection.dep_ensure:
            self.log.info(DEP_ENSURE_SKIP_NOTICE)
            return None

        command = tool_command(detection)
        if command is None:
            logger.debug("No dependency fetch needed for strategy %s", strategy)
            return None

        tool = command[0]
        bin_dir = self.install_tool(tool)
        tool_env = dict(env)
        tool_env["PATH"] = f"{bin_dir}{os.pathsep}{tool_env.get('PATH', '')}"

        shown = display_command(command)
        self.log.info(f"Fetching any unsaved dependencies ({shown})")
        result = self.run(tool, command, Path(cwd), timeout=self.timeout, env=tool_env)
        emit_output(self.log, result)

        if result.timed_out:
            raise DependencyFetchError(
                f"{shown} timed out after {self.timeout} seconds", result
            )
        if not result.is_success:
            raise DependencyFetchError(
                f"{shown} failed with exit code {result.exit_code}", result
            )
        return result
