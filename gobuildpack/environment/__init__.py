"""Environment configurator: staging settings and path layout.

Public API:
    load_settings(environ) -> StagingSettings
    configure(settings, build_dir, deps_dir) -> Layout
"""

from gobuildpack.environment.layout import Layout, configure
from gobuildpack.environment.settings import StagingSettings, load_settings

__all__ = ["Layout", "StagingSettings", "configure", "load_settings"]
