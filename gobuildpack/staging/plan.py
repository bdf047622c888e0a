"""The build plan: every decision the build step needs, made once."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from gobuildpack.detector.types import DetectionResult, Strategy
from gobuildpack.environment.layout import Layout


@dataclass(frozen=True)
class BuildPlan:
    """Immutable for the rest of the staging run.

    src_dir is where go install runs: the app directory for module builds,
    $GOPATH/src/<import path> for GOPATH builds.
    """

    go_version: str
    detection: DetectionResult
    layout: Layout
    src_dir: Path
    import_path: Optional[str] = None
    custom_packages: tuple[str, ...] = ()
    build_tags: Optional[str] = None
    buildmode: Optional[str] = None
    ldflags: Optional[str] = None

    @property
    def goroot(self) -> Path:
        return self.layout.goroot(self.go_version)

    @property
    def strategy(self) -> Strategy:
        return self.detection.strategy
