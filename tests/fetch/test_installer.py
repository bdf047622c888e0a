"""Tests for installing manifest dependencies through the gateway."""

import io
import tarfile
from pathlib import Path

import pytest
from structlog.testing import capture_logs

from gobuildpack.fetch.gateway import FetchGateway
from gobuildpack.fetch.installer import DependencyInstaller
from gobuildpack.manifest.types import Manifest, ManifestEntry
from gobuildpack.staging.errors import FetchError


def _tarball(members: dict[str, bytes]) -> bytes:
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as archive:
        for name, data in members.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = 0o755
            archive.addfile(info, io.BytesIO(data))
    return buffer.getvalue()


class PayloadTransport:
    def __init__(self, payloads: dict[str, bytes]):
        self.payloads = payloads
        self.calls: list[str] = []

    def download(self, url: str, dest: Path) -> None:
        self.calls.append(url)
        Path(dest).write_bytes(self.payloads[url])


GO_URL = "https://buildpacks.example.com/go/go1.12.3.linux-amd64.tar.gz"
DEP_URL = "https://buildpacks.example.com/dep/dep-v0.5.0-linux-x64.tgz"
GLIDE_URL = "https://buildpacks.example.com/glide/glide-linux-amd64"


def _installer(tmp_path: Path, payloads: dict[str, bytes], **manifest_kwargs) -> DependencyInstaller:
    manifest = Manifest(
        entries=[
            ManifestEntry("go", "1.12.3", GO_URL),
            ManifestEntry("dep", "0.4.1", DEP_URL.replace("0.5.0", "0.4.1")),
            ManifestEntry("dep", "0.5.0", DEP_URL),
            ManifestEntry("glide", "0.13.1", GLIDE_URL),
        ],
        **manifest_kwargs,
    )
    gateway = FetchGateway(tmp_path / "cache", transport=PayloadTransport(payloads))
    return DependencyInstaller(manifest, gateway)


class TestInstall:
    def test_extracts_tarball_and_logs(self, tmp_path):
        payload = _tarball({"go/bin/go": b"#!/bin/sh\n"})
        installer = _installer(tmp_path, {GO_URL: payload})
        dest = tmp_path / "deps" / "go1.12.3"

        with capture_logs() as logs:
            installer.install("go", "1.12.3", dest)

        assert (dest / "go" / "bin" / "go").is_file()
        assert logs[0]["event"] == "Installing go 1.12.3"
        assert logs[1]["event"] == f"Download [{GO_URL}]"

    def test_unlisted_version(self, tmp_path):
        installer = _installer(tmp_path, {})

        with pytest.raises(FetchError, match="go 1.99.0 is not listed"):
            installer.install("go", "1.99.0", tmp_path / "deps")

    def test_bare_binary_is_placed_in_bin(self, tmp_path):
        installer = _installer(tmp_path, {GLIDE_URL: b"\x7fELF"})
        dest = tmp_path / "tools" / "glide"

        installer.install("glide", "0.13.1", dest)

        assert (dest / "bin" / "glide").read_bytes() == b"\x7fELF"

    def test_corrupt_archive(self, tmp_path):
        installer = _installer(tmp_path, {GO_URL: b"not a tarball"})

        with pytest.raises(FetchError, match="Failed to extract go 1.12.3"):
            installer.install("go", "1.12.3", tmp_path / "deps")


class TestInstallTool:
    def test_installs_newest_and_returns_bin_dir(self, tmp_path):
        payload = _tarball({"dep/bin/dep": b"#!/bin/sh\n"})
        installer = _installer(tmp_path, {DEP_URL: payload})

        bin_dir = installer.install_tool("dep", tmp_path / "tools")

        assert bin_dir == tmp_path / "tools" / "dep0.5.0" / "dep" / "bin"

    def test_default_versions_constraint_is_honoured(self, tmp_path):
        older = DEP_URL.replace("0.5.0", "0.4.1")
        payload = _tarball({"dep": b"#!/bin/sh\n"})
        installer = _installer(tmp_path, {older: payload}, default_versions={"dep": "0.4.x"})

        bin_dir = installer.install_tool("dep", tmp_path / "tools")

        assert bin_dir == tmp_path / "tools" / "dep0.4.1"

    def test_tool_missing_from_manifest(self, tmp_path):
        installer = _installer(tmp_path, {})

        with pytest.raises(FetchError, match="godep is not available"):
            installer.install_tool("godep", tmp_path / "tools")

    def test_archive_without_executable(self, tmp_path):
        payload = _tarball({"README": b"docs only"})
        installer = _installer(tmp_path, {DEP_URL: payload})

        with pytest.raises(FetchError, match="dep executable not found"):
            installer.install_tool("dep", tmp_path / "tools")
