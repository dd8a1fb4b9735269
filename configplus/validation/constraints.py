"""
Declarative Field Constraints

Reusable Annotated types for configuration models. They plug into pydantic's
validation and raise typed errors the aggregator turns into readable
messages.

Usage:
    class EmailSettings(BaseModel):
        smtp_host: Required = ""
        smtp_port: Annotated[int, Range(1, 65535)] = 587
        from_address: RequiredEmailAddress = ""
"""

from __future__ import annotations

import re
from typing import Annotated, Any, Final

from pydantic import AfterValidator, Field, ValidationInfo
from pydantic_core import PydanticCustomError

from configplus.binding.binder import SKIP_CONSTRAINTS

# Error types understood by the aggregator
ERROR_REQUIRED: Final[str] = "required"
ERROR_EMAIL_ADDRESS: Final[str] = "email_address"

# One "@", something on both sides, no whitespace
_EMAIL_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[^@\s]+@[^@\s]+$")


def require_value(value: Any) -> Any:
    """Reject None, empty and whitespace-only strings."""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise PydanticCustomError(ERROR_REQUIRED, "Value is required")
    return value


def check_email_address(value: str | None) -> str | None:
    """Reject strings that do not look like an e-mail address.

    None passes; combine with require_value to make the field mandatory.
    """
    if value is not None and not _EMAIL_PATTERN.match(value):
        raise PydanticCustomError(ERROR_EMAIL_ADDRESS, "Value is not a valid e-mail address")
    return value


def Range(minimum: float, maximum: float) -> Any:  # noqa: N802 - reads as a constraint
    """Inclusive numeric range, for use inside Annotated[...]."""
    if minimum > maximum:
        raise ValueError(f"Range minimum {minimum} exceeds maximum {maximum}")
    return Field(ge=minimum, le=maximum)


def _checking(info: ValidationInfo) -> bool:
    return not (info.context or {}).get(SKIP_CONSTRAINTS, False)


def _required(value: Any, info: ValidationInfo) -> Any:
    return require_value(value) if _checking(info) else value


def _email_address(value: str | None, info: ValidationInfo) -> str | None:
    return check_email_address(value) if _checking(info) else value


Required = Annotated[str, AfterValidator(_required)]
EmailAddress = Annotated[str, AfterValidator(_email_address)]
RequiredEmailAddress = Annotated[
    str,
    AfterValidator(_required),
    AfterValidator(_email_address),
]
