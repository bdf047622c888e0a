"""manifest.yml loader.

Expected shape:

    language: go
    default_versions:
      - name: go
        version: 1.12.x
    dependencies:
      - name: go
        version: 1.12.3
        uri: https://buildpacks.example.com/go/go1.12.3.linux-amd64.tar.gz
        sha256: 5b3c...
        cf_stacks: [cflinuxfs3]
"""

import logging
from pathlib import Path

import yaml

from gobuildpack.manifest.types import Manifest, ManifestEntry
from gobuildpack.staging.errors import ManifestError

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "manifest.yml"


def load_manifest(path: Path) -> Manifest:
    """Parse a buildpack manifest, raising ManifestError if it is unusable."""
    path = Path(path)
    if path.is_dir():
        path = path / MANIFEST_FILENAME

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ManifestError(f"Unable to read buildpack manifest {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ManifestError(f"Invalid buildpack manifest {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ManifestError(f"Invalid buildpack manifest {path}: expected a mapping")

    return parse_manifest(data)


def parse_manifest(data: dict) -> Manifest:
    manifest = Manifest(language=str(data.get("language", "go")))

    for raw in data.get("dependencies") or []:
        if not isinstance(raw, dict):
            continue
        name, version, uri = raw.get("name"), raw.get("version"), raw.get("uri")
        if not (name and version and uri):
            logger.warning("Skipping incomplete manifest entry: %s", raw)
            continue
        manifest.entries.append(
            ManifestEntry(
                name=str(name),
                # Unquoted 1.10 arrives as the float 1.1; manifests quote versions.
                version=str(version),
                uri=str(uri),
                sha256=raw.get("sha256") or None,
                cf_stacks=tuple(str(s) for s in raw.get("cf_stacks") or ()),
            )
        )

    for raw in data.get("default_versions") or []:
        if isinstance(raw, dict) and raw.get("name") and raw.get("version"):
            manifest.default_versions[str(raw["name"])] = str(raw["version"])

    logger.debug(
        "Loaded manifest: %d dependencies, defaults=%s",
        len(manifest.entries),
        manifest.default_versions,
    )
    return manifest
