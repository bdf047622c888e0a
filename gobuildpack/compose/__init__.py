"""Build command composer.

Public API:
    compose(plan, base_env) -> Command
"""

from gobuildpack.compose.composer import (
    Command,
    binary_name,
    build_env,
    build_flags,
    compose,
    install_targets,
)

__all__ = [
    "Command",
    "binary_name",
    "build_env",
    "build_flags",
    "compose",
    "install_targets",
]
