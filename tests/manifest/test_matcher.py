"""Tests for Go version constraint matching."""

import pytest
from packaging.version import Version

from gobuildpack.manifest.matcher import parse_version, resolve
from gobuildpack.staging.errors import VersionResolutionError

MANIFEST_VERSIONS = ["1.11.13", "1.12.0", "1.12.3", "1.13.0", "1.9"]


class TestParseVersion:
    def test_full_version(self):
        assert parse_version("1.12.3") == Version("1.12.3")

    def test_missing_patch_orders_as_zero(self):
        assert parse_version("1.9") == Version("1.9.0")

    @pytest.mark.parametrize("raw", ["go1.12", "1.12rc1", "1.13beta1", "v1.12", "1.2.3.4", "", "latest"])
    def test_non_release_returns_none(self, raw):
        assert parse_version(raw) is None

    def test_orders_numerically(self):
        assert parse_version("1.10.0") > parse_version("1.9.9")


class TestResolve:
    def test_minor_wildcard_picks_greatest_patch(self):
        assert resolve("1.12.x", ["1.12.0", "1.12.3", "1.13.0"]) == "1.12.3"

    def test_family_without_wildcard(self):
        assert resolve("1.12", MANIFEST_VERSIONS) == "1.12.3"

    @pytest.mark.parametrize("constraint", ["1.x", "1"])
    def test_major_wildcard(self, constraint):
        assert resolve(constraint, MANIFEST_VERSIONS) == "1.13.0"

    def test_exact_present(self):
        assert resolve("1.11.13", MANIFEST_VERSIONS) == "1.11.13"

    def test_exact_absent_is_an_error(self):
        with pytest.raises(VersionResolutionError) as exc_info:
            resolve("99.99.99", MANIFEST_VERSIONS)
        assert exc_info.value.message == "no match found for 99.99.99"
        assert exc_info.value.constraint == "99.99.99"

    def test_exact_does_not_fall_back_to_family(self):
        with pytest.raises(VersionResolutionError):
            resolve("1.12.2", MANIFEST_VERSIONS)

    @pytest.mark.parametrize("constraint", [None, "", "   "])
    def test_absent_constraint_is_latest(self, constraint):
        assert resolve(constraint, MANIFEST_VERSIONS) == "1.13.0"

    def test_latest_of_empty_manifest(self):
        with pytest.raises(VersionResolutionError, match="no match found for latest"):
            resolve(None, [])

    def test_unsatisfiable_family(self):
        with pytest.raises(VersionResolutionError, match="no match found for 2.x"):
            resolve("2.x", MANIFEST_VERSIONS)

    @pytest.mark.parametrize("constraint", ["1.x.3", ">=1.11", "go1.12", "banana", "1.12.3.4"])
    def test_malformed_constraint_reports_like_unsatisfiable(self, constraint):
        with pytest.raises(VersionResolutionError) as exc_info:
            resolve(constraint, MANIFEST_VERSIONS)
        assert exc_info.value.message == f"no match found for {constraint}"

    def test_patchless_manifest_entry_matches_family(self):
        assert resolve("1.9.x", MANIFEST_VERSIONS) == "1.9"

    def test_unparseable_manifest_versions_are_ignored(self):
        assert resolve(None, ["1.12.3", "tip", "1.13beta1"]) == "1.12.3"

    def test_order_of_manifest_does_not_matter(self):
        shuffled = list(reversed(MANIFEST_VERSIONS))
        assert resolve("1.12.x", shuffled) == resolve("1.12.x", MANIFEST_VERSIONS)

    def test_resolution_is_deterministic(self):
        results = {resolve("1.x", MANIFEST_VERSIONS) for _ in range(5)}
        assert results == {"1.13.0"}

    def test_family_ordering_is_numeric_not_lexical(self):
        assert resolve("1.x", ["1.9.7", "1.10.0", "1.2.30"]) == "1.10.0"

    def test_prerelease_in_family_is_skipped(self):
        assert resolve("1.13.x", ["1.13.0", "1.13.1rc1"]) == "1.13.0"
