"""Tests for the before/after compile hook runner.

The process runner is a fake that records invocations in order.
"""

from pathlib import Path

import pytest
from structlog.testing import capture_logs

from gobuildpack.execution.types import StepResult
from gobuildpack.hooks.runner import (
    DEFAULT_AFTER_HOOK,
    DEFAULT_BEFORE_HOOK,
    HookRunner,
    HookState,
    InvalidHookTransition,
    discover_hooks,
)
from gobuildpack.staging.errors import BuildError, HookError


def _script(root: Path, relative: str, executable: bool = True) -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("#!/bin/sh\necho hook\n")
    path.chmod(0o755 if executable else 0o644)
    return path


class FakeRun:
    def __init__(self, failing: tuple[str, ...] = ()):
        self.failing = failing
        self.calls: list[list[str]] = []

    def __call__(self, name, command, cwd, timeout=None, env=None) -> StepResult:
        self.calls.append(command)
        exit_code = 1 if Path(command[-1]).name in self.failing else 0
        return StepResult(name, " ".join(command), exit_code, 0.01, stdout=f"ran {Path(command[-1]).name}")


def _build_ok(order: list[str]):
    def build() -> StepResult:
        order.append("build")
        return StepResult("build", "go install .", 0, 0.5)

    return build


class TestDiscoverHooks:
    def test_configured_hooks_in_order(self, tmp_path):
        hooks = discover_hooks(tmp_path, ["scripts/a.sh", "scripts/b.sh"], DEFAULT_BEFORE_HOOK)
        assert hooks == [tmp_path / "scripts/a.sh", tmp_path / "scripts/b.sh"]

    def test_default_hook_when_executable(self, tmp_path):
        _script(tmp_path, DEFAULT_BEFORE_HOOK)
        assert discover_hooks(tmp_path, [], DEFAULT_BEFORE_HOOK) == [tmp_path / DEFAULT_BEFORE_HOOK]

    def test_non_executable_default_is_ignored(self, tmp_path):
        _script(tmp_path, DEFAULT_AFTER_HOOK, executable=False)
        assert discover_hooks(tmp_path, [], DEFAULT_AFTER_HOOK) == []

    def test_no_hooks(self, tmp_path):
        assert discover_hooks(tmp_path, [], DEFAULT_BEFORE_HOOK) == []


class TestHookRunner:
    def test_runs_before_build_after_in_order(self, tmp_path):
        before = [_script(tmp_path, "hooks/b1"), _script(tmp_path, "hooks/b2")]
        after = [_script(tmp_path, "hooks/a1")]
        run = FakeRun()
        order: list[str] = []

        def recording_run(*args, **kwargs):
            order.append(Path(args[1][-1]).name)
            return run(*args, **kwargs)

        runner = HookRunner(tmp_path, before, after, run=recording_run)
        runner.run(_build_ok(order))

        assert order == ["b1", "b2", "build", "a1"]
        assert runner.state == HookState.DONE
        assert [r.name for r in runner.results] == [
            "hook:BeforeCompile", "hook:BeforeCompile", "build", "hook:AfterCompile",
        ]

    def test_failing_before_hook_skips_build(self, tmp_path):
        before = [_script(tmp_path, "hooks/fails"), _script(tmp_path, "hooks/never")]
        run = FakeRun(failing=("fails",))
        order: list[str] = []
        runner = HookRunner(tmp_path, before, [], run=run)

        with pytest.raises(HookError) as exc_info:
            runner.run(_build_ok(order))

        assert exc_info.value.message == "BeforeCompile hook fails failed with exit code 1"
        assert order == []
        assert len(run.calls) == 1
        assert runner.state == HookState.FAILED

    def test_build_failure_skips_after_hooks(self, tmp_path):
        after = [_script(tmp_path, "hooks/after")]
        run = FakeRun()
        runner = HookRunner(tmp_path, [], after, run=run)

        def failing_build():
            raise BuildError("go install failed with exit code 2")

        with pytest.raises(BuildError):
            runner.run(failing_build)

        assert run.calls == []
        assert runner.state == HookState.FAILED

    def test_failing_after_hook(self, tmp_path):
        after = [_script(tmp_path, "hooks/after")]
        runner = HookRunner(tmp_path, [], after, run=FakeRun(failing=("after",)))

        with pytest.raises(HookError, match="AfterCompile hook after failed"):
            runner.run(_build_ok([]))

        assert runner.state == HookState.FAILED

    def test_missing_configured_hook(self, tmp_path):
        runner = HookRunner(tmp_path, [tmp_path / "nope.sh"], [], run=FakeRun())

        with pytest.raises(HookError, match="not found"):
            runner.run(_build_ok([]))

    def test_non_executable_script_runs_through_bash(self, tmp_path):
        script = _script(tmp_path, "hooks/plain.sh", executable=False)
        run = FakeRun()

        HookRunner(tmp_path, [script], [], run=run).run(_build_ok([]))

        assert run.calls == [["bash", str(script)]]

    def test_debug_traces_phases(self, tmp_path):
        runner = HookRunner(tmp_path, [], [], debug=True, run=FakeRun())

        with capture_logs() as logs:
            runner.run(_build_ok([]))

        events = [entry["event"] for entry in logs]
        assert events == ["HOOKS 1: BeforeCompile", "HOOKS 2: AfterCompile"]

    def test_no_trace_without_debug(self, tmp_path):
        with capture_logs() as logs:
            HookRunner(tmp_path, [], [], run=FakeRun()).run(_build_ok([]))

        assert logs == []

    def test_hook_output_is_passed_through(self, tmp_path):
        script = _script(tmp_path, "hooks/loud")

        with capture_logs() as logs:
            HookRunner(tmp_path, [script], [], run=FakeRun()).run(_build_ok([]))

        assert [entry["event"] for entry in logs] == [
            "Running BeforeCompile hook hooks/loud",
            "ran loud",
        ]

    def test_runner_cannot_be_reused(self, tmp_path):
        runner = HookRunner(tmp_path, [], [], run=FakeRun())
        runner.run(_build_ok([]))

        with pytest.raises(InvalidHookTransition):
            runner.run(_build_ok([]))
