"""Cross-cutting configuration shared by every stage."""

from gobuildpack.core.logging import configure_structlog, get_log

__all__ = ["configure_structlog", "get_log"]
