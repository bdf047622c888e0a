"""go.mod parser.

Parses go.mod with a simple line-by-line parser — no external library needed.
Besides the module path and the go directive it reads the heroku build
directives that older Go buildpacks honour:

    // +heroku goVersion go1.12
    // +heroku install ./cmd/...
"""

import logging
from pathlib import Path

from gobuildpack.staging.errors import DetectionError

logger = logging.getLogger(__name__)

HEROKU_DIRECTIVE = "// +heroku"


def parse_gomod(repo_dir: Path) -> dict:
    """Parse go.mod and return module, go_version and heroku directives."""
    path = repo_dir / "go.mod"
    if not path.exists():
        return {}

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise DetectionError(f"Bad go.mod file: {exc}") from exc

    module = ""
    go_version = ""
    heroku_go_version = ""
    heroku_install: list[str] = []

    for line in text.splitlines():
        stripped = line.strip()

        if stripped.startswith(HEROKU_DIRECTIVE):
            parts = stripped[len(HEROKU_DIRECTIVE):].split()
            if len(parts) >= 2 and parts[0] == "goVersion":
                heroku_go_version = parts[1]
            elif parts and parts[0] == "install":
                heroku_install.extend(parts[1:])
        elif stripped.startswith("module "):
            module = _strip_comment(stripped[7:]).strip('"')
        elif stripped.startswith("go "):
            go_version = _strip_comment(stripped[3:])

    logger.debug("Parsed go.mod: module=%s go=%s", module, go_version)
    return {
        "module": module,
        "go_version": go_version,
        "heroku_go_version": heroku_go_version,
        "heroku_install": heroku_install,
    }


def _strip_comment(value: str) -> str:
    """Drop a trailing // comment; module paths never contain //."""
    return value.split("//", 1)[0].strip()


def go_version_constraint(parsed: dict) -> str:
    """Toolchain constraint declared by go.mod, or "" when none.

    The heroku directive names a toolchain; the go directive only names a
    language level, so it selects the newest patch release of that family.
    """
    if parsed.get("heroku_go_version"):
        return strip_go_prefix(parsed["heroku_go_version"])
    directive = parsed.get("go_version", "")
    if not directive:
        return ""
    major_minor = ".".join(directive.split(".")[:2])
    return f"{major_minor}.x"


def strip_go_prefix(version: str) -> str:
    """Godep and heroku metadata write versions as go1.8."""
    version = version.strip()
    if version.startswith("go"):
        return version[2:]
    return version
