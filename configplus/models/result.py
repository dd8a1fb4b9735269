"""
Configuration Result Models

ConfigurationResult is the outcome of one bind+validate attempt. Success and
failure are mutually exclusive: a result carries either a bound value or a
non-empty tuple of validation failures, never both.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class ValidationFailure:
    """A single rule violation.

    Attributes:
        message: Human-readable description
        member_names: Fields involved, dotted for nested models (may be empty)
    """

    message: str
    member_names: tuple[str, ...] = ()

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True, slots=True)
class ConfigurationResult(Generic[T]):
    """Outcome of binding one configuration section.

    Build instances through success() or failure() only.

    Attributes:
        value: Bound instance, None on failure
        validation_errors: Violations in the order they were reported
        section_path: Section requested by the caller (never the suffixed path)
        environment: Environment overlay actually used, None on fallback
    """

    value: T | None = None
    validation_errors: tuple[ValidationFailure, ...] = field(default_factory=tuple)
    section_path: str = ""
    environment: str | None = None

    @property
    def is_valid(self) -> bool:
        """True when no validation errors were reported."""
        return len(self.validation_errors) == 0

    @property
    def error_messages(self) -> list[str]:
        """Messages of all validation errors, in order."""
        return [failure.message for failure in self.validation_errors]

    @classmethod
    def success(
        cls,
        value: T,
        section_path: str,
        environment: str | None = None,
    ) -> ConfigurationResult[T]:
        if value is None:
            raise ValueError("A successful result requires a value")
        return cls(
            value=value,
            validation_errors=(),
            section_path=section_path,
            environment=environment,
        )

    @classmethod
    def failure(
        cls,
        validation_errors: Iterable[ValidationFailure | str],
        section_path: str,
        environment: str | None = None,
    ) -> ConfigurationResult[T]:
        errors = tuple(
            error if isinstance(error, ValidationFailure) else ValidationFailure(error)
            for error in validation_errors
        )
        if not errors:
            raise ValueError("A failed result requires at least one validation error")
        return cls(
            value=None,
            validation_errors=errors,
            section_path=section_path,
            environment=environment,
        )
