"""
Validation Aggregator

Validates a section payload against its model through pydantic and collects
every violation. pydantic evaluates all fields without stopping at the first
failure, so one call surfaces every problem at once.

Declared defaults of absent keys are checked like configured values, so a
Required field nobody set is reported. Nested models are the exception: a
nested field with no section of its own keeps its default unchecked.

Messages:
    - missing / required / min_length=1  -> "The <field> field is required."
    - numeric bounds, both declared      -> "The field <field> must be between <min> and <max>."
    - numeric bounds, one declared       -> "The field <field> must be greater than or equal to <n>."
    - email_address                      -> "The <field> field is not a valid e-mail address."
    - anything else                      -> "<field>: <pydantic message>"
"""

from __future__ import annotations

from typing import Any, Final, get_args, get_origin

from pydantic import BaseModel, ValidationError
from pydantic.fields import FieldInfo
from pydantic_core import ErrorDetails

from configplus.binding.binder import (
    SectionPayload,
    field_key,
    find_field,
    is_model_type,
    unwrap_optional,
)
from configplus.core.logging import get_logger
from configplus.models.result import ValidationFailure
from configplus.validation.constraints import ERROR_EMAIL_ADDRESS, ERROR_REQUIRED

logger = get_logger(__name__)

_REQUIRED_TYPES: Final[frozenset[str]] = frozenset({"missing", ERROR_REQUIRED})
_BOUND_TYPES: Final[frozenset[str]] = frozenset(
    {"greater_than_equal", "less_than_equal", "greater_than", "less_than"}
)
_BOUND_PHRASES: Final[dict[str, str]] = {
    "ge": "greater than or equal to",
    "le": "less than or equal to",
    "gt": "greater than",
    "lt": "less than",
}


def _bounds(info: FieldInfo | None) -> dict[str, Any]:
    found: dict[str, Any] = {}
    if info is None:
        return found
    for constraint in info.metadata:
        for key in _BOUND_PHRASES:
            bound = getattr(constraint, key, None)
            if bound is not None:
                found[key] = bound
    return found


def _with_defaults(model_type: type[BaseModel], values: dict[str, Any]) -> dict[str, Any]:
    """Add declared defaults so absent keys are checked too.

    Nested model defaults are left out; a nested section is only checked
    when the configuration supplies it.
    """
    filled = dict(values)
    for name, info in model_type.model_fields.items():
        key = field_key(name, info)
        if key in values:
            filled[key] = _nested_with_defaults(info.annotation, values[key])
        elif not info.is_required():
            default = info.get_default(call_default_factory=True)
            if default is not None and not isinstance(default, BaseModel):
                filled[key] = default
    return filled


def _nested_with_defaults(annotation: Any, raw: Any) -> Any:
    target = unwrap_optional(annotation)
    if is_model_type(target) and isinstance(raw, dict):
        return _with_defaults(target, raw)
    origin, args = get_origin(target), get_args(target)
    if origin is list and args and is_model_type(args[0]) and isinstance(raw, list):
        return [_nested_with_defaults(args[0], item) for item in raw]
    if origin is dict and len(args) == 2 and is_model_type(args[1]) and isinstance(raw, dict):
        return {key: _nested_with_defaults(args[1], item) for key, item in raw.items()}
    return raw


def _format(model_type: type[BaseModel], error: ErrorDetails) -> ValidationFailure:
    loc = tuple(error["loc"])
    field = ".".join(str(part) for part in loc) or model_type.__name__
    error_type = error["type"]
    ctx = error.get("ctx") or {}

    if error_type in _REQUIRED_TYPES or (
        error_type == "string_too_short" and ctx.get("min_length") == 1
    ):
        message = f"The {field} field is required."
    elif error_type in _BOUND_TYPES:
        bounds = _bounds(find_field(model_type, loc))
        low = bounds.get("ge", bounds.get("gt"))
        high = bounds.get("le", bounds.get("lt"))
        if low is not None and high is not None:
            message = f"The field {field} must be between {low} and {high}."
        else:
            key, bound = next(iter(ctx.items()), ("", ""))
            message = f"The field {field} must be {_BOUND_PHRASES.get(key, key)} {bound}."
    elif error_type == ERROR_EMAIL_ADDRESS:
        message = f"The {field} field is not a valid e-mail address."
    else:
        message = f"{field}: {error['msg']}"

    return ValidationFailure(message=message, member_names=(field,))


def validate_payload(payload: SectionPayload) -> tuple[BaseModel | None, list[ValidationFailure]]:
    """Validate a bound section against every declared constraint.

    Args:
        payload: Section values produced by build_payload()

    Returns:
        Tuple of (validated instance, []) when valid, else
        (None, violations in pydantic's field order)

    Raises:
        ConfigurationBindingError: A value cannot be converted to its type
    """
    model_type = payload.model_type
    try:
        return model_type.model_validate(_with_defaults(model_type, payload.values)), []
    except ValidationError as e:
        payload.raise_for_conversion_errors(e)
        failures = [_format(model_type, error) for error in e.errors()]

    logger.debug(
        "validation_failed",
        target_type=model_type.__name__,
        error_count=len(failures),
    )
    return None, failures
