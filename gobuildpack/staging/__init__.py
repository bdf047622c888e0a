"""Staging orchestration, results and the error taxonomy.

Every other package imports gobuildpack.staging.errors, so this package
avoids eager imports of the orchestrator to prevent circular imports.
"""

from gobuildpack.staging.errors import (
    BuildError,
    DependencyFetchError,
    DetectionError,
    FetchError,
    HookError,
    ManifestError,
    StagingError,
    VersionResolutionError,
)


def stage(*args, **kwargs):
    from gobuildpack.staging.orchestrator import Stager

    return Stager(*args, **kwargs).run()


def __getattr__(name):
    if name == "Stager":
        from gobuildpack.staging.orchestrator import Stager

        return Stager
    if name == "StagingResult":
        from gobuildpack.staging.result import StagingResult

        return StagingResult
    if name == "BuildPlan":
        from gobuildpack.staging.plan import BuildPlan

        return BuildPlan
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "stage",
    "Stager",
    "StagingResult",
    "BuildPlan",
    "BuildError",
    "DependencyFetchError",
    "DetectionError",
    "FetchError",
    "HookError",
    "ManifestError",
    "StagingError",
    "VersionResolutionError",
]
