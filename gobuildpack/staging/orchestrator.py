"""Staging orchestrator.

Runs one staging pass, stage by stage:

  settings → layout → detection → Go version → toolchain install →
  GOPATH workspace → dependencies → before hooks → go install →
  after hooks → .profile.d script → start command

Detection runs before the version is resolved so that trees which can
never build (.godir, missing vendor/) fail before anything is fetched.

Every stage raises a StagingError subclass on failure. Stager.run() is
the only place those are caught: each is logged once through the log
sink and returned as a failed StagingResult. Nothing after the failing
stage runs.
"""

import logging
import os
import shutil
import tempfile
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError

from gobuildpack.compose.composer import binary_name, build_env, compose, install_targets
from gobuildpack.core.logging import get_log
from gobuildpack.deps.fetcher import DependencyFetcher
from gobuildpack.detector.gomod import strip_go_prefix
from gobuildpack.detector.orchestrator import detect
from gobuildpack.detector.types import AppTree, DetectionResult
from gobuildpack.environment.layout import TOOLS_IN_IMAGE_DIR, Layout, configure
from gobuildpack.environment.settings import StagingSettings, load_settings
from gobuildpack.execution.executor import emit_output, run_step
from gobuildpack.execution.types import StepResult
from gobuildpack.fetch.gateway import FetchGateway
from gobuildpack.fetch.installer import DependencyInstaller
from gobuildpack.fetch.transport import Transport
from gobuildpack.hooks.runner import (
    DEFAULT_AFTER_HOOK,
    DEFAULT_BEFORE_HOOK,
    HookRunner,
    discover_hooks,
)
from gobuildpack.manifest.loader import load_manifest
from gobuildpack.manifest.matcher import resolve
from gobuildpack.manifest.types import Manifest
from gobuildpack.staging.errors import BuildError, StagingError, VersionResolutionError
from gobuildpack.staging.plan import BuildPlan
from gobuildpack.staging.result import StagingResult

logger = logging.getLogger(__name__)

GOVERSION_OVERRIDE_NOTICE = "Using $GOVERSION override."
VERSION_CONTEXT = "Unable to determine Go version to install"

# A buildpack packaged with its dependencies ships them here and never
# touches the network.
BUNDLED_DEPENDENCIES_DIR = "dependencies"
PROFILE_DIR = ".profile.d"
PROFILE_SCRIPT = "go.sh"
PROCFILE = "Procfile"


class Stager:
    """One staging run over one application directory.

    build_dir     the pushed application (modified in place)
    cache_dir     persists between stagings of the same app
    deps_dir      staging-only scratch space (toolchain, tools, GOPATH)
    buildpack_dir holds manifest.yml and, for cached buildpacks, dependencies/
    """

    def __init__(
        self,
        build_dir: Path,
        cache_dir: Path,
        deps_dir: Path,
        buildpack_dir: Path,
        environ: Optional[Mapping[str, str]] = None,
        transport: Optional[Transport] = None,
        stack: Optional[str] = None,
        log=None,
        run: Callable[..., StepResult] = run_step,
    ):
        self.build_dir = Path(build_dir)
        self.cache_dir = Path(cache_dir)
        self.deps_dir = Path(deps_dir)
        self.buildpack_dir = Path(buildpack_dir)
        self.environ = dict(os.environ if environ is None else environ)
        self.transport = transport
        self.stack = stack
        self.log = log or get_log()
        self.run_process = run

    def run(self) -> StagingResult:
        result = StagingResult()
        try:
            self._stage(result)
        except StagingError as exc:
            for line in exc.lines():
                self.log.error(line)
            step_result = getattr(exc, "step_result", None)
            if step_result is not None and step_result not in result.steps:
                result.steps.append(step_result)
            result.is_success = False
            result.error = exc
            logger.info("Staging failed: %s", exc.message)
        return result

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def _stage(self, result: StagingResult) -> None:
        settings = self._load_settings()
        layout = configure(settings, self.build_dir, self.deps_dir)

        tree = _app_tree(self.build_dir, settings)
        detection = detect(tree)

        manifest = load_manifest(self.buildpack_dir)
        go_version = self._resolve_go_version(settings, detection, manifest)

        installer = self._installer(manifest)
        installer.install("go", go_version, layout.toolchain_dir(go_version))

        src_dir = self._prepare_workspace(layout, detection)
        plan = BuildPlan(
            go_version=go_version,
            detection=detection,
            layout=layout,
            src_dir=src_dir,
            import_path=detection.import_path,
            custom_packages=tuple(settings.install_packages),
            build_tags=settings.go_build_tags or None,
            buildmode=settings.go_buildmode or None,
            ldflags=settings.ldflags,
        )
        result.plan = plan
        layout.bin_dir.mkdir(parents=True, exist_ok=True)
        env = build_env(plan, self.environ)
        timeout = settings.go_command_timeout

        fetcher = DependencyFetcher(
            install_tool=lambda name: installer.install_tool(name, layout.tools_dir()),
            run=self.run_process,
            timeout=timeout,
            log=self.log,
        )
        fetch_result = fetcher.populate(detection, src_dir, env)
        if fetch_result is not None:
            result.steps.append(fetch_result)

        hooks = HookRunner(
            src_dir,
            before_hooks=discover_hooks(src_dir, settings.before_compile_hooks, DEFAULT_BEFORE_HOOK),
            after_hooks=discover_hooks(src_dir, settings.after_compile_hooks, DEFAULT_AFTER_HOOK),
            env=env,
            timeout=timeout,
            debug=settings.bp_debug,
            run=self.run_process,
            log=self.log,
        )
        try:
            hooks.run(lambda: self._build(plan, timeout))
        finally:
            result.steps.extend(hooks.results)

        self._write_profile(layout, go_version)

        result.binary_dir = layout.bin_dir
        result.start_command = self._start_command(plan)
        result.is_success = True
        logger.info(
            "Staged %s with go %s (%s)", self.build_dir, go_version, detection.strategy
        )

    def _load_settings(self) -> StagingSettings:
        try:
            return load_settings(self.environ)
        except ValidationError as exc:
            problems = [
                f"{'.'.join(str(part) for part in err['loc']).upper()}: {err['msg']}"
                for err in exc.errors()
            ]
            raise StagingError("Invalid staging configuration", details=problems) from exc

    def _resolve_go_version(
        self,
        settings: StagingSettings,
        detection: DetectionResult,
        manifest: Manifest,
    ) -> str:
        """Pick the constraint, then resolve it against the manifest.

        GOVERSION beats the version the dependency tool declares, which
        beats the manifest's default_versions entry. With none of these
        the newest manifest version is used.
        """
        if settings.goversion.strip():
            self.log.warning(GOVERSION_OVERRIDE_NOTICE)
            constraint = strip_go_prefix(settings.goversion.strip())
        elif detection.go_version:
            constraint = detection.go_version
        else:
            constraint = manifest.default_version("go") or ""

        try:
            return resolve(constraint, manifest.versions("go", self.stack))
        except VersionResolutionError as exc:
            raise VersionResolutionError(exc.constraint, context=VERSION_CONTEXT) from exc

    def _installer(self, manifest: Manifest) -> DependencyInstaller:
        bundled = self.buildpack_dir / BUNDLED_DEPENDENCIES_DIR
        offline = bundled.is_dir()
        cache_dir = bundled if offline else self.cache_dir / BUNDLED_DEPENDENCIES_DIR
        logger.debug("Dependency cache %s (offline=%s)", cache_dir, offline)
        gateway = FetchGateway(cache_dir, transport=self.transport, offline=offline, log=self.log)
        return DependencyInstaller(manifest, gateway, stack=self.stack, log=self.log)

    def _prepare_workspace(self, layout: Layout, detection: DetectionResult) -> Path:
        """Place the app where the build expects it and return that directory.

        Module builds run in place. GOPATH builds need the source at
        $GOPATH/src/<import path>: copied there from the app dir, or moved
        there when the app dir is itself the GOPATH.
        """
        if detection.strategy.uses_modules:
            return self.build_dir

        dest = layout.gopath / "src" / detection.import_path
        try:
            if layout.gopath_in_image:
                _move_into(self.build_dir, dest, keep=(TOOLS_IN_IMAGE_DIR,))
            else:
                dest.parent.mkdir(parents=True, exist_ok=True)
                shutil.copytree(
                    self.build_dir,
                    dest,
                    symlinks=True,
                    dirs_exist_ok=True,
                    ignore=shutil.ignore_patterns(TOOLS_IN_IMAGE_DIR),
                )
        except OSError as exc:
            raise StagingError(f"Unable to prepare GOPATH workspace at {dest}: {exc}") from exc
        logger.debug("GOPATH workspace prepared at %s", dest)
        return dest

    def _build(self, plan: BuildPlan, timeout: int) -> StepResult:
        command = compose(plan, self.environ)
        self.log.info(f"Running: {command.display}")
        result = self.run_process(
            "build",
            list(command.argv),
            command.cwd,
            timeout=timeout,
            env=command.env,
        )
        emit_output(self.log, result)

        if result.timed_out:
            raise BuildError(f"go install timed out after {timeout} seconds", result)
        if not result.is_success:
            raise BuildError(f"go install failed with exit code {result.exit_code}", result)
        return result

    def _write_profile(self, layout: Layout, go_version: str) -> None:
        content = layout.profile_script(go_version)
        if content is None:
            return
        profile_dir = self.build_dir / PROFILE_DIR
        try:
            profile_dir.mkdir(parents=True, exist_ok=True)
            (profile_dir / PROFILE_SCRIPT).write_text(content)
        except OSError as exc:
            raise StagingError(f"Unable to write {PROFILE_DIR}/{PROFILE_SCRIPT}: {exc}") from exc

    def _start_command(self, plan: BuildPlan) -> str:
        web = _procfile_web(plan.src_dir / PROCFILE)
        if web:
            return web
        target = install_targets(plan)[0]
        return f"./bin/{binary_name(target, plan.import_path)}"


# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------

def _app_tree(build_dir: Path, settings: StagingSettings) -> AppTree:
    return AppTree(
        root=build_dir,
        package_name=settings.gopackagename.strip() or None,
        install_packages=tuple(settings.install_packages),
        build_tags=settings.go_build_tags or None,
        buildmode=settings.go_buildmode or None,
        ldflags=settings.ldflags,
        before_hooks=tuple(settings.before_compile_hooks),
        after_hooks=tuple(settings.after_compile_hooks),
    )


def _move_into(root: Path, dest: Path, keep: tuple[str, ...] = ()) -> None:
    """Move root's entries (except `keep`) into dest, a directory under root."""
    # Staged through a scratch dir so an app with its own src/ survives.
    scratch = Path(tempfile.mkdtemp(prefix=".gopath-", dir=root))
    for entry in list(root.iterdir()):
        if entry == scratch or entry.name in keep:
            continue
        shutil.move(str(entry), str(scratch / entry.name))
    dest.mkdir(parents=True, exist_ok=True)
    for entry in list(scratch.iterdir()):
        shutil.move(str(entry), str(dest / entry.name))
    scratch.rmdir()


def _procfile_web(path: Path) -> Optional[str]:
    if not path.is_file():
        return None
    try:
        data = yaml.safe_load(path.read_text())
    except (OSError, yaml.YAMLError) as exc:
        logger.warning("Ignoring unreadable Procfile %s: %s", path, exc)
        return None
    if isinstance(data, dict) and data.get("web"):
        return str(data["web"])
    return None
