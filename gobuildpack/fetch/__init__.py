"""Fetch/cache gateway for toolchain and tool artifacts.

Public API:
    FetchGateway(cache_dir, transport, offline).fetch(ref, cache_key) -> Path
    DependencyInstaller(manifest, gateway).install(name, version, dest) -> Path
"""

from gobuildpack.fetch.gateway import ArtifactRef, FetchGateway, default_cache_key
from gobuildpack.fetch.installer import DependencyInstaller
from gobuildpack.fetch.transport import HttpxTransport, Transport, redact_url

__all__ = [
    "ArtifactRef",
    "DependencyInstaller",
    "FetchGateway",
    "HttpxTransport",
    "Transport",
    "default_cache_key",
    "redact_url",
]
