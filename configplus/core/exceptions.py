"""
configplus - Custom Exceptions

Anti-Patterns Avoided:
- Exception shadowing: custom namespaced exceptions instead of builtins
  (ConfigurationError, not ValueError; ConfigurationValidationError, not
  a bare aggregate of builtin errors)
"""

from __future__ import annotations


class ConfigPlusError(Exception):
    """Base exception for configplus.

    All custom exceptions inherit from this base class.
    """
    pass


class NotInitializedError(ConfigPlusError):
    """Raised when a ConfigManager is used before a source was supplied."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            message
            or "ConfigManager is not initialized. Call initialize() first."
        )


class ConfigurationSourceError(ConfigPlusError):
    """Raised when a configuration source cannot be loaded.

    Used for missing files, unsupported formats and non-mapping roots.
    """
    pass


class ConfigurationBindingError(ConfigPlusError):
    """Raised when a raw configuration value cannot be converted.

    Attributes:
        key_path: Full path of the offending key (e.g. "Database:TimeoutSeconds")
        target_type: Name of the type the value was converted to
    """

    def __init__(self, key_path: str, target_type: str, detail: str) -> None:
        self.key_path = key_path
        self.target_type = target_type
        super().__init__(
            f"Failed to convert configuration value at '{key_path}' "
            f"to type '{target_type}': {detail}"
        )


class ConfigurationError(ConfigPlusError):
    """Raised when a configuration section is invalid or missing.

    Surfaces as a hard failure only at the host-facing boundary (dependency
    resolution, batch validation). The primary get() API reports the same
    conditions through ConfigurationResult instead.

    Attributes:
        section_path: Section the error refers to
        environment: Environment overlay in effect, if any
        message: Human-readable error description
    """

    def __init__(
        self,
        section_path: str,
        message: str,
        *,
        environment: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.section_path = section_path
        self.environment = environment
        self.message = message
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        """Return string representation of the error."""
        return self.message


class ConfigurationValidationError(ConfigPlusError):
    """Aggregate raised when a batch validation finds invalid sections.

    Attributes:
        errors: Every per-section ConfigurationError, in input order
    """

    def __init__(self, errors: list[ConfigurationError]) -> None:
        self.errors = list(errors)
        lines = "\n".join(
            f"Section '{error.section_path}': {error.message}" for error in self.errors
        )
        super().__init__(f"Configuration validation failed:\n{lines}")
