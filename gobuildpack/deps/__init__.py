"""Dependency fetcher for non-vendored dep and glide apps."""

from gobuildpack.deps.fetcher import GLIDE_SKIP_NOTICE, DependencyFetcher, tool_command

__all__ = ["GLIDE_SKIP_NOTICE", "DependencyFetcher", "tool_command"]
