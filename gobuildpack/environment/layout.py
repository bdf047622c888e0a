"""GOPATH and toolchain placement decisions.

The two image toggles are independent:

  GO_SETUP_GOPATH_IN_IMAGE   GOPATH is the app directory itself, so the
                             workspace ships in the final image and is
                             reachable at runtime as $HOME.
  GO_INSTALL_TOOLS_IN_IMAGE  The toolchain is unpacked under the app
                             directory instead of the staging-only deps
                             directory, so `go` is usable in the running
                             container and in tasks.

Nothing here touches the filesystem; the orchestrator acts on the Layout.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from gobuildpack.environment.settings import StagingSettings

# Where the application directory is mounted at runtime.
RUNTIME_APP_DIR = "$HOME"

TOOLS_IN_IMAGE_DIR = ".cloudfoundry"


@dataclass(frozen=True)
class Layout:
    build_dir: Path
    deps_dir: Path
    gopath: Path
    bin_dir: Path
    gopath_in_image: bool
    tools_in_image: bool

    def toolchain_dir(self, version: str) -> Path:
        """Directory the go tarball is extracted into."""
        if self.tools_in_image:
            return self.build_dir / TOOLS_IN_IMAGE_DIR / f"go{version}"
        return self.deps_dir / f"go{version}"

    def goroot(self, version: str) -> Path:
        # Release tarballs unpack into a top-level go/ directory.
        return self.toolchain_dir(version) / "go"

    def tools_dir(self) -> Path:
        """Where dependency managers (dep, glide) are installed."""
        return self.deps_dir / "tools"

    def profile_script(self, version: str) -> Optional[str]:
        """Contents of .profile.d/go.sh, or None when nothing ships."""
        lines = []
        if self.tools_in_image:
            goroot = f"{RUNTIME_APP_DIR}/{TOOLS_IN_IMAGE_DIR}/go{version}/go"
            lines.append(f"export GOROOT={goroot}")
            lines.append("export PATH=$GOROOT/bin:$PATH")
        if self.gopath_in_image:
            lines.append(f"export GOPATH={RUNTIME_APP_DIR}")
        if not lines:
            return None
        return "\n".join(lines) + "\n"


def configure(settings: StagingSettings, build_dir: Path, deps_dir: Path) -> Layout:
    """Resolve the image toggles into concrete paths."""
    build_dir = Path(build_dir)
    deps_dir = Path(deps_dir)
    gopath = build_dir if settings.go_setup_gopath_in_image else deps_dir / "gopath"
    return Layout(
        build_dir=build_dir,
        deps_dir=deps_dir,
        gopath=gopath,
        bin_dir=build_dir / "bin",
        gopath_in_image=settings.go_setup_gopath_in_image,
        tools_in_image=settings.go_install_tools_in_image,
    )
