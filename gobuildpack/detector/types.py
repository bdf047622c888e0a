"""Shared types for the dependency strategy detector.

detect() maps an AppTree to exactly one Strategy. The DetectionResult it
returns is immutable and is the only place later stages learn the
strategy from; nothing downstream re-inspects marker files.
"""

from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Optional

VENDOR_DIR = "vendor"


class Strategy(StrEnum):
    """Closed set of dependency-management strategies."""

    GO_MODULES = "go-modules"
    GO_MODULES_VENDORED = "go-modules-vendored"
    DEP = "dep"
    DEP_VENDORED = "dep-vendored"
    GLIDE = "glide"
    GLIDE_VENDORED = "glide-vendored"
    GODEP_WORKSPACE = "godep-workspace"
    GOVENDOR_JSON = "govendor-json"
    PLAIN_VENDOR = "plain-vendor"
    SINGLE_FILE_NO_VENDOR = "single-file-no-vendor"
    SINGLE_FILE_VENDORED = "single-file-vendored"
    LEGACY_DEPRECATED = "legacy-deprecated"

    @property
    def uses_modules(self) -> bool:
        return self in (Strategy.GO_MODULES, Strategy.GO_MODULES_VENDORED)

    @property
    def needs_dependency_tool(self) -> bool:
        """True when a package manager must populate vendor/ before the build."""
        return self in (Strategy.DEP, Strategy.GLIDE)


@dataclass(frozen=True)
class AppTree:
    """Read-only view of the pushed application plus its build overrides.

    Overrides come from the staging settings: package_name is
    $GOPACKAGENAME, install_packages is $GO_INSTALL_PACKAGE_SPEC.
    """

    root: Path
    package_name: Optional[str] = None
    install_packages: tuple[str, ...] = ()
    build_tags: Optional[str] = None
    buildmode: Optional[str] = None
    ldflags: Optional[str] = None
    before_hooks: tuple[str, ...] = ()
    after_hooks: tuple[str, ...] = ()

    def path(self, relative: str) -> Path:
        return self.root / relative

    def has(self, relative: str) -> bool:
        return self.path(relative).exists()

    def has_dir(self, relative: str) -> bool:
        return self.path(relative).is_dir()

    @property
    def vendor_populated(self) -> bool:
        vendor = self.path(VENDOR_DIR)
        return vendor.is_dir() and any(vendor.iterdir())

    def top_level_go_files(self) -> list[str]:
        return sorted(
            entry.name
            for entry in self.root.iterdir()
            if entry.is_file() and entry.suffix == ".go"
        )


@dataclass(frozen=True)
class DetectionResult:
    """Strategy tag plus the metadata later stages need.

    import_path, packages and go_version are what the dependency tool's
    own files declare; user overrides are applied by the orchestrator.
    """

    strategy: Strategy
    source: str
    has_lockfile: bool = False
    vendor_populated: bool = False
    custom_install_package: bool = False
    import_path: Optional[str] = None
    packages: tuple[str, ...] = ()
    go_version: Optional[str] = None
    godeps_workspace: bool = False
    dep_ensure: bool = True
    evidence: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "strategy": self.strategy.value,
            "source": self.source,
            "has_lockfile": self.has_lockfile,
            "vendor_populated": self.vendor_populated,
            "custom_install_package": self.custom_install_package,
            "import_path": self.import_path,
            "packages": list(self.packages),
            "go_version": self.go_version,
            "godeps_workspace": self.godeps_workspace,
            "dep_ensure": self.dep_ensure,
            "evidence": list(self.evidence),
        }
