"""Types for the buildpack dependency manifest."""

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class ManifestEntry:
    """A concrete, downloadable dependency version.

    uri may be https:// (uncached buildpack) or file:// (local mirror).
    """

    name: str
    version: str
    uri: str
    sha256: Optional[str] = None
    cf_stacks: tuple[str, ...] = ()


@dataclass
class Manifest:
    """Ordered list of installable dependencies plus default constraints."""

    language: str = "go"
    entries: list[ManifestEntry] = field(default_factory=list)
    default_versions: dict[str, str] = field(default_factory=dict)

    def versions(self, name: str, stack: Optional[str] = None) -> list[str]:
        """Versions of one dependency, in manifest order."""
        return [entry.version for entry in self._named(name, stack)]

    def entry(self, name: str, version: str, stack: Optional[str] = None) -> Optional[ManifestEntry]:
        for candidate in self._named(name, stack):
            if candidate.version == version:
                return candidate
        return None

    def default_version(self, name: str) -> Optional[str]:
        return self.default_versions.get(name)

    def _named(self, name: str, stack: Optional[str]) -> list[ManifestEntry]:
        return [
            entry
            for entry in self.entries
            if entry.name == name
            and (not stack or not entry.cf_stacks or stack in entry.cf_stacks)
        ]
