"""Declarative constraints and the validation aggregator."""

from configplus.validation.aggregator import validate_payload
from configplus.validation.constraints import (
    EmailAddress,
    Range,
    Required,
    RequiredEmailAddress,
    check_email_address,
    require_value,
)

__all__ = [
    "EmailAddress",
    "Range",
    "Required",
    "RequiredEmailAddress",
    "check_email_address",
    "require_value",
    "validate_payload",
]
