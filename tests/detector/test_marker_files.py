"""Tests for the go.mod parser and dependency-manager metadata readers."""

import json
from pathlib import Path

import pytest

from gobuildpack.detector.gomod import go_version_constraint, parse_gomod, strip_go_prefix
from gobuildpack.detector.tools import find_vendor_json, read_glide, read_godeps, read_gopkg
from gobuildpack.staging.errors import DetectionError

MULTILINE_REQUIRE = """\
module github.com/example/myapp

go 1.13

require (
    github.com/gin-gonic/gin v1.9.1
    github.com/joho/godotenv v1.5.1 // indirect
)

require github.com/labstack/echo/v4 v4.12.0
"""


class TestParseGomod:
    def test_missing_file(self, tmp_path):
        assert parse_gomod(tmp_path) == {}

    def test_module_and_go_directive(self, tmp_path):
        (tmp_path / "go.mod").write_text(MULTILINE_REQUIRE)

        parsed = parse_gomod(tmp_path)

        assert parsed["module"] == "github.com/example/myapp"
        assert parsed["go_version"] == "1.13"

    def test_trailing_comments_are_dropped(self, tmp_path):
        (tmp_path / "go.mod").write_text(
            "module github.com/x/app // main module\n\ngo 1.21 // language level\n"
        )

        parsed = parse_gomod(tmp_path)

        assert parsed["module"] == "github.com/x/app"
        assert parsed["go_version"] == "1.21"

    def test_quoted_module_path(self, tmp_path):
        (tmp_path / "go.mod").write_text('module "github.com/x/app" // quoted\n')

        assert parse_gomod(tmp_path)["module"] == "github.com/x/app"

    def test_undecodable_file(self, tmp_path):
        (tmp_path / "go.mod").write_bytes(b"\xff\xfe\x00bad")

        with pytest.raises(DetectionError, match="Bad go.mod file"):
            parse_gomod(tmp_path)


class TestGoVersionConstraint:
    def test_go_directive_selects_family(self):
        assert go_version_constraint({"go_version": "1.13"}) == "1.13.x"

    def test_three_part_directive(self):
        assert go_version_constraint({"go_version": "1.21.4"}) == "1.21.x"

    def test_heroku_directive_wins(self):
        parsed = {"go_version": "1.13", "heroku_go_version": "go1.12.17"}
        assert go_version_constraint(parsed) == "1.12.17"

    def test_nothing_declared(self):
        assert go_version_constraint({}) == ""

    @pytest.mark.parametrize("raw, expected", [("go1.8", "1.8"), ("1.8", "1.8"), (" go1.x ", "1.x")])
    def test_strip_go_prefix(self, raw, expected):
        assert strip_go_prefix(raw) == expected


class TestReaders:
    def test_godeps_packages_as_string(self, tmp_path):
        (tmp_path / "Godeps").mkdir()
        (tmp_path / "Godeps" / "Godeps.json").write_text(
            json.dumps({"ImportPath": "github.com/x/y", "Packages": "./cmd/y"})
        )

        assert read_godeps(tmp_path)["packages"] == ["./cmd/y"]

    def test_godeps_must_be_an_object(self, tmp_path):
        (tmp_path / "Godeps").mkdir()
        (tmp_path / "Godeps" / "Godeps.json").write_text("[]")

        with pytest.raises(DetectionError, match="expected a JSON object"):
            read_godeps(tmp_path)

    def test_gopkg_without_heroku_metadata(self, tmp_path):
        (tmp_path / "Gopkg.toml").write_text('[[constraint]]\n  name = "github.com/pkg/errors"\n')

        meta = read_gopkg(tmp_path)

        assert meta == {"import_path": "", "go_version": "", "packages": [], "ensure": True}

    def test_bad_glide_yaml(self, tmp_path):
        (tmp_path / "glide.yaml").write_text("package: [unclosed\n")

        with pytest.raises(DetectionError, match="Bad glide.yaml file"):
            read_glide(tmp_path)

    def test_root_vendor_json_preferred(self, tmp_path: Path):
        (tmp_path / "vendor").mkdir()
        (tmp_path / "vendor.json").write_text("{}")
        (tmp_path / "vendor" / "vendor.json").write_text("{}")

        assert find_vendor_json(tmp_path) == tmp_path / "vendor.json"
