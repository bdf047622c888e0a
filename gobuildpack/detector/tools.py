"""Readers for the metadata files of the GOPATH-era dependency managers.

Each reader returns a plain dict of the fields the buildpack cares about
and raises DetectionError when a present file cannot be parsed.

  Godeps/Godeps.json  godep     ImportPath, GoVersion, Packages
  Gopkg.toml          dep       [metadata.heroku] root-package, go-version,
                                install, ensure
  glide.yaml          glide     package
  vendor.json         govendor  rootPath, heroku.goVersion, heroku.install
"""

import json
import logging
import tomllib
from pathlib import Path

import yaml

from gobuildpack.detector.gomod import strip_go_prefix
from gobuildpack.staging.errors import DetectionError

logger = logging.getLogger(__name__)

GODEPS_JSON = "Godeps/Godeps.json"
GOPKG_TOML = "Gopkg.toml"
GLIDE_YAML = "glide.yaml"
VENDOR_JSON_LOCATIONS = ("vendor.json", "vendor/vendor.json")


def _load_json(path: Path) -> dict:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise DetectionError(f"Bad {path.name} file: {exc}") from exc
    if not isinstance(data, dict):
        raise DetectionError(f"Bad {path.name} file: expected a JSON object")
    return data


def _string_list(value) -> list[str]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, list):
        return [str(item) for item in value if item]
    return []


def read_godeps(repo_dir: Path) -> dict:
    data = _load_json(repo_dir / GODEPS_JSON)
    return {
        "import_path": str(data.get("ImportPath") or ""),
        "go_version": strip_go_prefix(str(data.get("GoVersion") or "")),
        "packages": _string_list(data.get("Packages")),
    }


def read_gopkg(repo_dir: Path) -> dict:
    """Read Gopkg.toml; a missing file (lock-only app) yields defaults."""
    path = repo_dir / GOPKG_TOML
    if not path.exists():
        return {"import_path": "", "go_version": "", "packages": [], "ensure": True}

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as exc:
        raise DetectionError(f"Bad {GOPKG_TOML} file: {exc}") from exc

    metadata = data.get("metadata", {})
    if not isinstance(metadata, dict):
        raise DetectionError(f"Bad {GOPKG_TOML} file: expected a table at metadata")
    heroku = metadata.get("heroku", {})
    if not isinstance(heroku, dict):
        raise DetectionError(f"Bad {GOPKG_TOML} file: expected a table at metadata.heroku")
    ensure = str(heroku.get("ensure", "true")).strip().lower() != "false"
    return {
        "import_path": str(heroku.get("root-package") or ""),
        "go_version": strip_go_prefix(str(heroku.get("go-version") or "")),
        "packages": _string_list(heroku.get("install")),
        "ensure": ensure,
    }


def read_glide(repo_dir: Path) -> dict:
    path = repo_dir / GLIDE_YAML
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as exc:
        raise DetectionError(f"Bad {GLIDE_YAML} file: {exc}") from exc
    if not isinstance(data, dict):
        raise DetectionError(f"Bad {GLIDE_YAML} file: expected a mapping")
    return {"import_path": str(data.get("package") or "")}


def find_vendor_json(repo_dir: Path) -> Path | None:
    for relative in VENDOR_JSON_LOCATIONS:
        candidate = repo_dir / relative
        if candidate.is_file():
            return candidate
    return None


def read_vendor_json(path: Path) -> dict:
    data = _load_json(path)
    heroku = data.get("heroku") or {}
    if not isinstance(heroku, dict):
        heroku = {}
    return {
        "import_path": str(data.get("rootPath") or ""),
        "go_version": strip_go_prefix(str(heroku.get("goVersion") or "")),
        "packages": _string_list(heroku.get("install")),
    }
