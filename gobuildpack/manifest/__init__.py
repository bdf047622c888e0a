"""Version manifest: manifest.yml loading and constraint matching.

Public API:
    resolve(constraint, versions) -> str
    load_manifest(path) -> Manifest
"""

from gobuildpack.manifest.loader import load_manifest, parse_manifest
from gobuildpack.manifest.matcher import parse_version, resolve
from gobuildpack.manifest.types import Manifest, ManifestEntry

__all__ = [
    "Manifest",
    "ManifestEntry",
    "load_manifest",
    "parse_manifest",
    "parse_version",
    "resolve",
]
