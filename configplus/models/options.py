"""
Configuration Options Model

Behaviour toggles for a single bind+validate call.

Options are frozen: helpers such as with_environment() return a modified
copy, so a caller's options (or the manager's defaults) are never changed
by a call that overrides one field.

use_cache, cache_duration_seconds and enable_hot_reload are declared for
compatibility with host configuration files but have no behaviour.
throw_on_error is set by get_validated() and likewise does not change what
get() returns.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from configplus.core.config import Settings

DEFAULT_CACHE_DURATION_SECONDS = 300

# Fields with no behaviour, and the value that means "not requested"
INERT_OPTION_DEFAULTS: dict[str, object] = {
    "use_cache": True,
    "cache_duration_seconds": DEFAULT_CACHE_DURATION_SECONDS,
    "enable_hot_reload": False,
}


class ConfigurationOptions(BaseModel):
    """Options for one binding operation.

    Attributes:
        environment: Overlay suffix; "Database" + "Production" looks up
            "Database_Production" first (default: None).
        validate_data_annotations: Run declared field constraints after
            binding (default: True).
        throw_on_error: Marker set by get_validated() (default: False).
        use_cache: Declared, no behaviour (default: True).
        cache_duration_seconds: Declared, no behaviour (default: 300).
        enable_hot_reload: Declared, no behaviour (default: False).
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    environment: str | None = Field(
        default=None,
        description="Environment overlay suffix",
    )
    validate_data_annotations: bool = Field(
        default=True,
        description="Validate declared field constraints after binding",
    )
    throw_on_error: bool = Field(default=False)
    use_cache: bool = Field(default=True)
    cache_duration_seconds: int = Field(
        default=DEFAULT_CACHE_DURATION_SECONDS,
        ge=0,
    )
    enable_hot_reload: bool = Field(default=False)

    @classmethod
    def from_settings(cls, settings: Settings) -> ConfigurationOptions:
        """Build default options from library settings."""
        return cls(
            environment=settings.environment or None,
            validate_data_annotations=settings.validate_data_annotations,
        )

    def with_environment(self, environment: str | None) -> ConfigurationOptions:
        """Return a copy with the environment overlay replaced."""
        return self.model_copy(update={"environment": environment})

    def with_throw_on_error(self) -> ConfigurationOptions:
        """Return a copy with throw_on_error set."""
        return self.model_copy(update={"throw_on_error": True})

    def inert_overrides(self) -> dict[str, object]:
        """Return the declared-but-inert options set to non-default values."""
        return {
            name: getattr(self, name)
            for name, default in INERT_OPTION_DEFAULTS.items()
            if getattr(self, name) != default
        }
