"""Installs manifest dependencies (the go toolchain, dep, glide).

Looks the exact version up in the manifest, fetches it through the
gateway and unpacks it. Archives (.tar.gz, .tgz, .zip) are extracted into
the destination; anything else is treated as a bare executable and placed
at <dest>/bin/<name>.
"""

import logging
import shutil
import tarfile
import zipfile
from pathlib import Path
from typing import Optional

from gobuildpack.core.logging import get_log
from gobuildpack.fetch.gateway import ArtifactRef, FetchGateway
from gobuildpack.manifest.matcher import resolve
from gobuildpack.manifest.types import Manifest
from gobuildpack.staging.errors import FetchError, VersionResolutionError

logger = logging.getLogger(__name__)

_TAR_SUFFIXES = (".tar.gz", ".tgz", ".tar.xz", ".tar")


class DependencyInstaller:
    def __init__(
        self,
        manifest: Manifest,
        gateway: FetchGateway,
        stack: Optional[str] = None,
        log=None,
    ):
        self.manifest = manifest
        self.gateway = gateway
        self.stack = stack
        self.log = log or get_log()

    def install(self, name: str, version: str, dest: Path) -> Path:
        """Install one dependency into dest and return dest."""
        entry = self.manifest.entry(name, version, self.stack)
        if entry is None:
            raise FetchError(f"{name} {version} is not listed in the buildpack manifest")

        self.log.info(f"Installing {name} {version}")
        artifact = self.gateway.fetch(ArtifactRef(entry.uri, entry.sha256))

        dest = Path(dest)
        dest.mkdir(parents=True, exist_ok=True)
        try:
            _unpack(artifact, dest, name)
        except (OSError, tarfile.TarError, zipfile.BadZipFile) as exc:
            raise FetchError(f"Failed to extract {name} {version}: {exc}", url=entry.uri) from exc

        logger.info("Installed %s %s into %s", name, version, dest)
        return dest

    def install_latest(self, name: str, dest_root: Path) -> Path:
        """Install the manifest's default (or newest) version of a tool."""
        try:
            version = resolve(
                self.manifest.default_version(name),
                self.manifest.versions(name, self.stack),
            )
        except VersionResolutionError as exc:
            raise FetchError(f"{name} is not available in the buildpack manifest") from exc
        return self.install(name, version, Path(dest_root) / f"{name}{version}")

    def install_tool(self, name: str, dest_root: Path) -> Path:
        """Install a dependency manager and return the directory holding it."""
        dest = self.install_latest(name, dest_root)
        for candidate in sorted(dest.rglob(name)):
            if candidate.is_file():
                return candidate.parent
        raise FetchError(f"{name} executable not found after installation")


def _unpack(artifact: Path, dest: Path, name: str) -> None:
    filename = artifact.name.lower()
    if filename.endswith(_TAR_SUFFIXES):
        with tarfile.open(artifact, "r:*") as archive:
            archive.extractall(dest, filter="data")
    elif filename.endswith(".zip"):
        with zipfile.ZipFile(artifact) as archive:
            archive.extractall(dest)
    else:
        bin_dir = dest / "bin"
        bin_dir.mkdir(parents=True, exist_ok=True)
        executable = bin_dir / name
        shutil.copyfile(artifact, executable)
        executable.chmod(0o755)
