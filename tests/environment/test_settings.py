"""Tests for staging settings loaded from the platform's environment map."""

import pytest
from pydantic import ValidationError

from gobuildpack.environment.settings import StagingSettings, load_settings


class TestDefaults:
    def test_defaults(self):
        settings = load_settings({})

        assert settings.go_setup_gopath_in_image is False
        assert settings.go_install_tools_in_image is False
        assert settings.bp_debug is False
        assert settings.go_build_tags == "cloudfoundry"
        assert settings.go_buildmode == "pie"
        assert settings.go_command_timeout == 900
        assert settings.ldflags is None
        assert settings.install_packages == []


class TestLoadSettings:
    def test_reads_upper_case_names(self):
        settings = load_settings(
            {
                "GO_SETUP_GOPATH_IN_IMAGE": "true",
                "GOVERSION": "go1.11",
                "GOPACKAGENAME": "github.com/example/app",
                "UNRELATED": "ignored",
            }
        )

        assert settings.go_setup_gopath_in_image is True
        assert settings.goversion == "go1.11"
        assert settings.gopackagename == "github.com/example/app"

    @pytest.mark.parametrize("raw, expected", [("", False), ("  ", False), ("1", True), ("false", False)])
    def test_toggle_values(self, raw, expected):
        assert load_settings({"BP_DEBUG": raw}).bp_debug is expected

    def test_invalid_toggle(self):
        with pytest.raises(ValidationError):
            load_settings({"GO_INSTALL_TOOLS_IN_IMAGE": "maybe"})

    @pytest.mark.parametrize("raw", ["0", "-5", "soon"])
    def test_invalid_timeout(self, raw):
        with pytest.raises(ValidationError):
            load_settings({"GO_COMMAND_TIMEOUT": raw})

    def test_reads_process_environment_without_a_map(self, monkeypatch):
        monkeypatch.setenv("GO_BUILD_TAGS", "netgo")
        assert load_settings().go_build_tags == "netgo"

    def test_settings_are_immutable(self):
        settings = load_settings({})
        with pytest.raises(ValidationError):
            settings.goversion = "1.12"


class TestDerivedValues:
    def test_install_packages_split_on_spaces(self):
        settings = load_settings({"GO_INSTALL_PACKAGE_SPEC": "./cmd/a  ./cmd/b"})
        assert settings.install_packages == ["./cmd/a", "./cmd/b"]

    def test_hook_lists_accept_commas(self):
        settings = load_settings({"GO_BEFORE_COMPILE_HOOKS": "bin/one,bin/two"})
        assert settings.before_compile_hooks == ["bin/one", "bin/two"]
        assert settings.after_compile_hooks == []

    def test_ldflags_with_linker_symbol(self):
        settings = load_settings(
            {
                "GO_LDFLAGS": "-s -w",
                "GO_LINKER_SYMBOL": "main.version",
                "GO_LINKER_VALUE": "1.2.3",
            }
        )
        assert settings.ldflags == "-s -w -X main.version=1.2.3"

    def test_linker_symbol_needs_a_value(self):
        settings = load_settings({"GO_LINKER_SYMBOL": "main.version"})
        assert settings.ldflags is None

    def test_empty_flag_disables_default(self):
        settings = load_settings({"GO_BUILDMODE": ""})
        assert settings.go_buildmode == ""


def test_model_is_the_settings_class():
    assert isinstance(load_settings({}), StagingSettings)
