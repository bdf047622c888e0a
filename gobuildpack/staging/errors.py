"""Error taxonomy for a staging run.

Every failure that ends a staging run is a StagingError subclass. The
message is the canonical, greppable line shown to the user; `details`
holds companion lines printed right after it (reference links, hints).
Errors carrying a process result keep it on `step_result` for reporting.
"""

from typing import Optional

from gobuildpack.execution.types import StepResult


class StagingError(Exception):
    """Base class for all fatal staging failures."""

    def __init__(self, message: str, details: Optional[list[str]] = None):
        self.message = message
        self.details = list(details or [])
        super().__init__(message)

    def lines(self) -> list[str]:
        return [self.message, *self.details]


class ManifestError(StagingError):
    """The buildpack's own manifest.yml is missing or invalid."""


class VersionResolutionError(StagingError):
    """The requested Go version cannot be satisfied by the manifest.

    Unsatisfiable and malformed constraints are indistinguishable. `context`
    is prefixed to the message by callers that know what was being resolved.
    """

    def __init__(self, constraint: str, context: str = ""):
        self.constraint = constraint
        self.context = context
        message = f"no match found for {constraint}"
        super().__init__(f"{context}: {message}" if context else message)


class DetectionError(StagingError):
    """The application tree does not map to a supported strategy."""


class FetchError(StagingError):
    """A toolchain or tool artifact could not be retrieved."""

    def __init__(self, message: str, url: str = ""):
        self.url = url
        super().__init__(message)


class _ProcessError(StagingError):
    # Process output is streamed to the log as it is produced, so it is kept
    # on step_result rather than repeated in details.
    def __init__(self, message: str, step_result: Optional[StepResult] = None):
        self.step_result = step_result
        super().__init__(message)


class DependencyFetchError(_ProcessError):
    """A dependency manager (dep, glide) failed."""


class HookError(_ProcessError):
    """A user hook script exited non-zero or timed out."""


class BuildError(_ProcessError):
    """The go install invocation failed."""
