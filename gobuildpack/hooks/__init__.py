"""Before/after compile hooks."""

from gobuildpack.hooks.runner import (
    DEFAULT_AFTER_HOOK,
    DEFAULT_BEFORE_HOOK,
    HookPhase,
    HookRunner,
    HookState,
    InvalidHookTransition,
    discover_hooks,
)

__all__ = [
    "DEFAULT_AFTER_HOOK",
    "DEFAULT_BEFORE_HOOK",
    "HookPhase",
    "HookRunner",
    "HookState",
    "InvalidHookTransition",
    "discover_hooks",
]
