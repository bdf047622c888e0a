"""Subprocess resource limits for staging-time tools.

Provides a `preexec_fn`-compatible function that sets resource limits on
child processes (go, dep, glide, hook scripts) before exec. The wall-clock
timeout passed to subprocess.run() is the primary guard; rlimits cap CPU
time and address space for processes that slip past it.

Memory policy:
  - 8 GB virtual-address-space cap (`RLIMIT_AS`) by default. The Go
    linker maps large regions while linking PIE binaries.

Environment overrides:
  - GOBUILDPACK_RLIMIT_AS_BYTES: integer bytes, 0 or negative disables the cap
  - GOBUILDPACK_RLIMIT_CPU_SECONDS: integer seconds for CPU limit
"""

import logging
import os
import sys
from typing import Optional

logger = logging.getLogger(__name__)

_DEFAULT_MEM_LIMIT_BYTES = 8 * 1024 * 1024 * 1024  # 8 GB
_DEFAULT_CPU_LIMIT_SECONDS = 1800

_MEM_LIMIT_ENV = "GOBUILDPACK_RLIMIT_AS_BYTES"
_CPU_LIMIT_ENV = "GOBUILDPACK_RLIMIT_CPU_SECONDS"


def _parse_optional_positive_int(raw: Optional[str]) -> Optional[int]:
    if raw is None:
        return None
    value = int(raw.strip())
    if value <= 0:
        return 0
    return value


def _resolve_memory_limit_bytes() -> int:
    override = _parse_optional_positive_int(os.environ.get(_MEM_LIMIT_ENV))
    if override is not None:
        return override
    return _DEFAULT_MEM_LIMIT_BYTES


def _resolve_cpu_limit_seconds() -> int:
    raw = os.environ.get(_CPU_LIMIT_ENV)
    if not raw:
        return _DEFAULT_CPU_LIMIT_SECONDS
    parsed = int(raw.strip())
    if parsed <= 0:
        return _DEFAULT_CPU_LIMIT_SECONDS
    return parsed


def apply_resource_limits() -> None:
    """Set per-process resource limits before exec. No-op on Windows.

    Usage:
        subprocess.run(cmd, preexec_fn=apply_resource_limits, ...)
    """
    if sys.platform == "win32":
        return

    try:
        import resource

        mem_limit = _resolve_memory_limit_bytes()
        if mem_limit > 0:
            resource.setrlimit(resource.RLIMIT_AS, (mem_limit, resource.RLIM_INFINITY))

        cpu_limit = _resolve_cpu_limit_seconds()
        resource.setrlimit(resource.RLIMIT_CPU, (cpu_limit, resource.RLIM_INFINITY))

        logger.debug(
            "Resource limits applied: mem=%s cpu=%ds",
            f"{mem_limit / (1024**3):.1f}GB" if mem_limit else "unlimited",
            cpu_limit,
        )

    except (ImportError, ValueError, OSError) as exc:
        logger.warning("Failed to apply resource limits: %s", exc)
