"""Terminal outcome of one staging run."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from gobuildpack.execution.types import StepResult
from gobuildpack.staging.errors import StagingError
from gobuildpack.staging.plan import BuildPlan


@dataclass
class StagingResult:
    """Success (binary dir, start command, plan) or the error that ended the run.

    A failed result is never retried; the platform reports it and stops.
    """

    is_success: bool = False
    binary_dir: Optional[Path] = None
    start_command: Optional[str] = None
    plan: Optional[BuildPlan] = None
    error: Optional[StagingError] = None
    steps: list[StepResult] = field(default_factory=list)

    @property
    def go_version(self) -> Optional[str]:
        return self.plan.go_version if self.plan else None

    @property
    def strategy(self) -> Optional[str]:
        return self.plan.strategy.value if self.plan else None

    def to_dict(self) -> dict:
        return {
            "is_success": self.is_success,
            "binary_dir": str(self.binary_dir) if self.binary_dir else None,
            "start_command": self.start_command,
            "go_version": self.go_version,
            "strategy": self.strategy,
            "error": self.error.message if self.error else None,
            "error_type": type(self.error).__name__ if self.error else None,
            "steps": [s.to_dict() for s in self.steps],
            "total_duration_seconds": round(
                sum(s.duration_seconds for s in self.steps), 3
            ),
        }
