from collections.abc import Mapping
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _split_list(value: str) -> list[str]:
    return [item for item in value.replace(",", " ").split() if item]


class StagingSettings(BaseSettings):
    """Application configuration for one staging run.

    Read once, from the environment-variable map the platform hands the
    build phase, and never re-read afterwards. Every stage receives this
    object instead of consulting os.environ itself.

    Boolean toggles accept the usual truthy spellings ("true", "1", "yes");
    an empty value means off.
    """

    model_config = SettingsConfigDict(
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Layout toggles
    go_setup_gopath_in_image: bool = False
    go_install_tools_in_image: bool = False

    # Enables hook tracing and verbose output
    bp_debug: bool = False

    # Version and package overrides
    goversion: str = ""
    gopackagename: str = ""
    go_install_package_spec: str = ""

    # go install flags. Set to an empty value to omit the flag entirely.
    go_build_tags: str = "cloudfoundry"
    go_buildmode: str = "pie"
    go_ldflags: str = ""
    go_linker_symbol: str = ""
    go_linker_value: str = ""

    # Hook scripts, relative to the app root, space or comma separated.
    go_before_compile_hooks: str = ""
    go_after_compile_hooks: str = ""

    # Wall-clock limit for each external invocation, in seconds.
    go_command_timeout: int = 900

    @field_validator(
        "go_setup_gopath_in_image",
        "go_install_tools_in_image",
        "bp_debug",
        mode="before",
    )
    @classmethod
    def empty_toggle_is_off(cls, v):
        if isinstance(v, str) and not v.strip():
            return False
        return v

    @field_validator("go_command_timeout")
    @classmethod
    def timeout_must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("GO_COMMAND_TIMEOUT must be a positive number of seconds")
        return v

    @property
    def install_packages(self) -> list[str]:
        return _split_list(self.go_install_package_spec)

    @property
    def before_compile_hooks(self) -> list[str]:
        return _split_list(self.go_before_compile_hooks)

    @property
    def after_compile_hooks(self) -> list[str]:
        return _split_list(self.go_after_compile_hooks)

    @property
    def ldflags(self) -> Optional[str]:
        """Combined linker flags, or None when nothing is configured."""
        flags = []
        if self.go_ldflags.strip():
            flags.append(self.go_ldflags.strip())
        if self.go_linker_symbol and self.go_linker_value:
            flags.append(f"-X {self.go_linker_symbol}={self.go_linker_value}")
        return " ".join(flags) or None


def load_settings(environ: Optional[Mapping[str, str]] = None) -> StagingSettings:
    """Build settings from an explicit environment map.

    With no map, the process environment is read by pydantic-settings.
    """
    if environ is None:
        return StagingSettings()
    fields = StagingSettings.model_fields
    values = {
        key.lower(): value
        for key, value in environ.items()
        if key.lower() in fields
    }
    return StagingSettings.model_validate(values)
