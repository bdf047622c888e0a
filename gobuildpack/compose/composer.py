"""Build command composer.

compose(plan) produces the exact go install invocation:

    go install [-tags T] [-buildmode M] [-ldflags L] <package>...

Install targets, in order of precedence:
  1. $GO_INSTALL_PACKAGE_SPEC, verbatim (./cmd/app stays relative)
  2. packages declared by the dependency tool's own metadata
  3. the module path (module builds) or the import path (GOPATH builds)

Flags that are not configured are left out entirely.
"""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from gobuildpack.detector.types import Strategy
from gobuildpack.execution.executor import display_command
from gobuildpack.staging.errors import BuildError
from gobuildpack.staging.plan import BuildPlan

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Command:
    argv: tuple[str, ...]
    cwd: Path
    env: dict

    @property
    def display(self) -> str:
        return display_command(list(self.argv))


def install_targets(plan: BuildPlan) -> list[str]:
    if plan.custom_packages:
        return list(plan.custom_packages)
    if plan.detection.packages:
        return list(plan.detection.packages)
    if plan.import_path:
        return [plan.import_path]
    raise BuildError("Unable to determine which package to install; set $GO_INSTALL_PACKAGE_SPEC")


def build_flags(plan: BuildPlan) -> list[str]:
    flags: list[str] = []
    if plan.build_tags:
        flags.extend(["-tags", plan.build_tags])
    if plan.buildmode:
        flags.extend(["-buildmode", plan.buildmode])
    if plan.ldflags:
        flags.extend(["-ldflags", plan.ldflags])
    return flags


def build_env(plan: BuildPlan, base_env: Optional[Mapping[str, str]] = None) -> dict:
    """Environment for go install (and for hooks, which see the same toolchain)."""
    env = dict(base_env or {})
    layout = plan.layout
    goroot = plan.goroot

    gopath = str(layout.gopath)
    if plan.strategy == Strategy.GODEP_WORKSPACE and plan.detection.godeps_workspace:
        gopath = f"{plan.src_dir / 'Godeps' / '_workspace'}{os.pathsep}{gopath}"

    env["GOROOT"] = str(goroot)
    env["GOPATH"] = gopath
    env["GOBIN"] = str(layout.bin_dir)
    env["PATH"] = os.pathsep.join(
        part for part in (str(goroot / "bin"), env.get("PATH", "")) if part
    )

    if plan.strategy.uses_modules:
        env["GO111MODULE"] = "on"
        if plan.strategy == Strategy.GO_MODULES_VENDORED:
            existing = env.get("GOFLAGS", "")
            if "-mod=" not in existing:
                env["GOFLAGS"] = f"{existing} -mod=vendor".strip()
    else:
        env["GO111MODULE"] = "off"
    return env


def compose(plan: BuildPlan, base_env: Optional[Mapping[str, str]] = None) -> Command:
    argv = ["go", "install", *build_flags(plan), *install_targets(plan)]
    command = Command(argv=tuple(argv), cwd=plan.src_dir, env=build_env(plan, base_env))
    logger.debug("Composed build command: %s (cwd=%s)", command.display, command.cwd)
    return command


def binary_name(target: str, import_path: Optional[str] = None) -> str:
    """Name go install gives the binary for a package argument."""
    target = target.rstrip("/")
    if target.endswith("/..."):
        target = target[: -len("/...")]
    if target in ("", ".", "..."):
        target = import_path or ""
    return target.rstrip("/").rsplit("/", 1)[-1]
