"""Types for external process execution."""

from dataclasses import dataclass

# Exit codes used when the process never produced one of its own.
TIMEOUT_EXIT_CODE = -1
SPAWN_FAILED_EXIT_CODE = -2


@dataclass
class StepResult:
    """Result of a single external invocation (tool, hook, build).

    Captures exit code, timing, and output for evidence.
    A step is successful if exit_code == 0.
    """

    name: str
    command: str
    exit_code: int
    duration_seconds: float
    stdout: str = ""
    stderr: str = ""

    @property
    def is_success(self) -> bool:
        return self.exit_code == 0

    @property
    def timed_out(self) -> bool:
        return self.exit_code == TIMEOUT_EXIT_CODE

    @property
    def output(self) -> str:
        """stdout followed by stderr, the order the user reads them in."""
        parts = [text.rstrip("\n") for text in (self.stdout, self.stderr) if text]
        return "\n".join(parts)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "command": self.command,
            "exit_code": self.exit_code,
            "duration_seconds": round(self.duration_seconds, 3),
            "stdout_lines": self.stdout.count("\n") + 1 if self.stdout else 0,
            "stderr_lines": self.stderr.count("\n") + 1 if self.stderr else 0,
            "is_success": self.is_success,
        }
