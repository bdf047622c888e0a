"""Dependency strategy detection — probes marker files in priority order.

Rules are evaluated once, top to bottom, and the first whose predicate
holds produces the result (first match wins):

  .godir                      → legacy-deprecated (always fatal)
  go.mod                      → go-modules / go-modules-vendored
  Gopkg.toml / Gopkg.lock     → dep / dep-vendored
  glide.yaml                  → glide / glide-vendored
  Godeps/Godeps.json          → godep-workspace
  vendor.json                 → govendor-json
  vendor/ (multi-file app)    → plain-vendor
  exactly one top-level .go   → single-file-no-vendor / single-file-vendored

A tree matching none of these is a DetectionError; there is no default.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from gobuildpack.detector.gomod import go_version_constraint, parse_gomod
from gobuildpack.detector.tools import (
    GLIDE_YAML,
    GODEPS_JSON,
    GOPKG_TOML,
    find_vendor_json,
    read_glide,
    read_godeps,
    read_gopkg,
    read_vendor_json,
)
from gobuildpack.detector.types import VENDOR_DIR, AppTree, DetectionResult, Strategy
from gobuildpack.staging.errors import DetectionError

logger = logging.getLogger(__name__)

GODIR_DEPRECATED = (
    "Deprecated, .godir file found! Please update to supported Godep or Glide "
    "dependency managers."
)
GODIR_LINKS = (
    "See https://github.com/tools/godep or https://github.com/Masterminds/glide "
    "for usage information."
)
VENDOR_MISSING = "vendor/ directory does not exist."
GOPACKAGENAME_REQUIRED = "To use go native vendoring set the $GOPACKAGENAME"
GOPACKAGENAME_HINT = "environment variable to your app's package name"
NO_STRATEGY = (
    "Unable to determine how to build this app: no go.mod, Gopkg.toml, "
    "glide.yaml, Godeps/Godeps.json, vendor.json, vendor/ directory or single "
    ".go file found."
)


@dataclass(frozen=True)
class DetectionRule:
    name: str
    matches: Callable[[AppTree], bool]
    extract: Callable[[AppTree], DetectionResult]


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def detect(tree: AppTree) -> DetectionResult:
    """Map an application tree to exactly one strategy.

    Raises DetectionError for deprecated layouts, incomplete layouts and
    trees no rule recognises.
    """
    for rule in RULES:
        if rule.matches(tree):
            logger.debug("Detection rule '%s' matched %s", rule.name, tree.root)
            result = rule.extract(tree)
            _log_result(result)
            return result
    raise DetectionError(NO_STRATEGY)


# ---------------------------------------------------------------------------
# Rule extractors
# ---------------------------------------------------------------------------

def _deprecated_godir(tree: AppTree) -> DetectionResult:
    raise DetectionError(GODIR_DEPRECATED, details=[GODIR_LINKS])


def _go_modules(tree: AppTree) -> DetectionResult:
    parsed = parse_gomod(tree.root)
    if not parsed.get("module") and not tree.install_packages:
        raise DetectionError("go.mod does not declare a module path")

    vendored = tree.vendor_populated
    evidence = [f"go.mod module {parsed['module'] or '(none)'}"]
    if vendored:
        evidence.append("vendor/ populated")
    return DetectionResult(
        strategy=Strategy.GO_MODULES_VENDORED if vendored else Strategy.GO_MODULES,
        source="go.mod",
        has_lockfile=tree.has("go.sum"),
        vendor_populated=vendored,
        custom_install_package=bool(tree.install_packages),
        import_path=parsed["module"] or None,
        packages=tuple(parsed["heroku_install"]),
        go_version=go_version_constraint(parsed) or None,
        evidence=tuple(evidence),
    )


def _dep(tree: AppTree) -> DetectionResult:
    meta = read_gopkg(tree.root)
    import_path = meta["import_path"] or tree.package_name
    if not import_path:
        raise DetectionError(
            "To use dep set [metadata.heroku] root-package in Gopkg.toml",
            details=["or set the $GOPACKAGENAME environment variable"],
        )

    vendored = tree.vendor_populated
    return DetectionResult(
        strategy=Strategy.DEP_VENDORED if vendored else Strategy.DEP,
        source=GOPKG_TOML if tree.has(GOPKG_TOML) else "Gopkg.lock",
        has_lockfile=tree.has("Gopkg.lock"),
        vendor_populated=vendored,
        custom_install_package=bool(tree.install_packages),
        import_path=import_path,
        packages=tuple(meta["packages"]),
        go_version=meta["go_version"] or None,
        dep_ensure=meta["ensure"],
        evidence=(f"Gopkg root-package {import_path}",),
    )


def _glide(tree: AppTree) -> DetectionResult:
    meta = read_glide(tree.root)
    import_path = meta["import_path"] or tree.package_name
    if not import_path:
        raise DetectionError(
            "To use glide set package in glide.yaml",
            details=["or set the $GOPACKAGENAME environment variable"],
        )

    vendored = tree.vendor_populated
    return DetectionResult(
        strategy=Strategy.GLIDE_VENDORED if vendored else Strategy.GLIDE,
        source=GLIDE_YAML,
        has_lockfile=tree.has("glide.lock"),
        vendor_populated=vendored,
        custom_install_package=bool(tree.install_packages),
        import_path=import_path,
        evidence=(f"glide package {import_path}",),
    )


def _godep(tree: AppTree) -> DetectionResult:
    meta = read_godeps(tree.root)
    workspace = tree.has_dir("Godeps/_workspace")
    vendor = tree.has_dir(VENDOR_DIR)
    if not workspace and not vendor:
        raise DetectionError(VENDOR_MISSING)

    import_path = meta["import_path"] or tree.package_name
    if not import_path:
        raise DetectionError("Godeps/Godeps.json does not declare an ImportPath")

    return DetectionResult(
        strategy=Strategy.GODEP_WORKSPACE,
        source=GODEPS_JSON,
        has_lockfile=True,
        vendor_populated=vendor and tree.vendor_populated,
        custom_install_package=bool(tree.install_packages),
        import_path=import_path,
        packages=tuple(meta["packages"]),
        go_version=meta["go_version"] or None,
        godeps_workspace=workspace,
        evidence=(
            f"Godeps ImportPath {import_path}",
            "layout Godeps/_workspace" if workspace else "layout vendor/",
        ),
    )


def _govendor(tree: AppTree) -> DetectionResult:
    path = find_vendor_json(tree.root)
    meta = read_vendor_json(path)
    import_path = meta["import_path"] or tree.package_name
    if not import_path:
        raise DetectionError(
            "To use govendor set rootPath in vendor.json",
            details=["or set the $GOPACKAGENAME environment variable"],
        )

    return DetectionResult(
        strategy=Strategy.GOVENDOR_JSON,
        source=str(path.relative_to(tree.root)),
        has_lockfile=True,
        vendor_populated=tree.vendor_populated,
        custom_install_package=bool(tree.install_packages),
        import_path=import_path,
        packages=tuple(meta["packages"]),
        go_version=meta["go_version"] or None,
        evidence=(f"vendor.json rootPath {import_path}",),
    )


def _require_package_name(tree: AppTree) -> str:
    if not tree.package_name:
        raise DetectionError(GOPACKAGENAME_REQUIRED, details=[GOPACKAGENAME_HINT])
    return tree.package_name


def _plain_vendor(tree: AppTree) -> DetectionResult:
    import_path = _require_package_name(tree)
    return DetectionResult(
        strategy=Strategy.PLAIN_VENDOR,
        source=VENDOR_DIR,
        vendor_populated=True,
        custom_install_package=bool(tree.install_packages),
        import_path=import_path,
        evidence=("vendor/ populated, no dependency manager files",),
    )


def _single_file(tree: AppTree) -> DetectionResult:
    (filename,) = tree.top_level_go_files()
    if tree.has_dir(VENDOR_DIR):
        return DetectionResult(
            strategy=Strategy.SINGLE_FILE_VENDORED,
            source=filename,
            vendor_populated=tree.vendor_populated,
            custom_install_package=bool(tree.install_packages),
            import_path=_require_package_name(tree),
            evidence=(f"single file {filename}", "vendor/ present"),
        )

    evidence = [f"single file {filename}"]
    import_path = tree.package_name
    if not import_path:
        import_path = tree.root.resolve().name
        evidence.append(f"package name defaulted to {import_path}")
    return DetectionResult(
        strategy=Strategy.SINGLE_FILE_NO_VENDOR,
        source=filename,
        custom_install_package=bool(tree.install_packages),
        import_path=import_path,
        evidence=tuple(evidence),
    )


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------

def _is_single_file(tree: AppTree) -> bool:
    return len(tree.top_level_go_files()) == 1


RULES: tuple[DetectionRule, ...] = (
    DetectionRule("godir", lambda t: t.has(".godir"), _deprecated_godir),
    DetectionRule("go-modules", lambda t: t.has("go.mod"), _go_modules),
    DetectionRule(
        "dep",
        lambda t: t.has(GOPKG_TOML) or t.has("Gopkg.lock"),
        _dep,
    ),
    DetectionRule("glide", lambda t: t.has(GLIDE_YAML), _glide),
    DetectionRule("godep", lambda t: t.has(GODEPS_JSON), _godep),
    DetectionRule(
        "govendor",
        lambda t: find_vendor_json(t.root) is not None,
        _govendor,
    ),
    DetectionRule(
        "plain-vendor",
        lambda t: t.vendor_populated and not _is_single_file(t),
        _plain_vendor,
    ),
    DetectionRule("single-file", _is_single_file, _single_file),
)


def _log_result(result: DetectionResult) -> None:
    logger.info(
        "Detection complete: strategy=%s source=%s lockfile=%s vendored=%s",
        result.strategy,
        result.source,
        result.has_lockfile,
        result.vendor_populated,
    )


def detect_path(root: Path, **overrides) -> DetectionResult:
    """Convenience wrapper: detect() on a directory with optional overrides."""
    return detect(AppTree(root=Path(root), **overrides))
