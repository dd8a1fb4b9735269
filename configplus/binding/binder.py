"""
Config Binder

Binds the key/value data of a configuration section onto a pydantic model.

Binding rules:
    - Keys match fields by name or alias, ignoring case, "_" and "-", so
      "ConnectionString" binds onto connection_string
    - Nested sections bind onto nested BaseModel fields recursively
    - list[...] fields bind from children keyed "0", "1", ...
    - Keys without a matching field are ignored
    - Fields without a matching key keep their declared default

build_payload() only reshapes the section: raw strings keyed the way the
model validates them, plus the source key path of every value. The model
itself converts the payload, so its own validators (field validators,
Annotated validators) shape the bound value.

bind() converts types only. Validation context UNCHECKED_CONTEXT tells the
constraint validators to stand down, and values that still violate a native
bound (ge/le, min_length, ...) are kept as converted. Errors in which a value
cannot be converted to its type raise ConfigurationBindingError.
"""

from __future__ import annotations

import types
from dataclasses import dataclass, field
from typing import Annotated, Any, Final, TypeVar, Union, get_args, get_origin

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    PlainValidator,
    TypeAdapter,
    ValidationError,
    WrapValidator,
)
from pydantic.fields import FieldInfo
from pydantic_core import ErrorDetails

from configplus.core.exceptions import ConfigurationBindingError
from configplus.core.logging import get_logger
from configplus.sources.section import KEY_DELIMITER, ConfigurationSection

logger = get_logger(__name__)

M = TypeVar("M", bound=BaseModel)

_UNION_TYPES: tuple[Any, ...] = (Union, types.UnionType)
_VALIDATOR_TYPES: tuple[type, ...] = (
    AfterValidator,
    BeforeValidator,
    PlainValidator,
    WrapValidator,
)

# Validation context key honoured by configplus constraint validators
SKIP_CONSTRAINTS: Final[str] = "configplus_skip_constraints"
UNCHECKED_CONTEXT: Final[dict[str, bool]] = {SKIP_CONSTRAINTS: True}

# pydantic error types meaning "value is not of the declared type"
_CONVERSION_ERROR_TYPES: Final[frozenset[str]] = frozenset(
    {"enum", "literal_error", "json_invalid", "int_from_float", "union_tag_invalid"}
)
_CONVERSION_ERROR_SUFFIXES: Final[tuple[str, ...]] = ("_parsing", "_type")


def normalize_key(key: str) -> str:
    """Fold a key or field name for matching."""
    return key.replace("_", "").replace("-", "").lower()


def is_model_type(candidate: Any) -> bool:
    """True for BaseModel subclasses (not instances)."""
    return isinstance(candidate, type) and issubclass(candidate, BaseModel)


def unwrap_optional(annotation: Any) -> Any:
    if get_origin(annotation) in _UNION_TYPES:
        args = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def field_key(name: str, info: FieldInfo) -> str:
    """Key the model validates a field under."""
    return info.alias or name


def find_field(model_type: type[BaseModel], loc: tuple[Any, ...]) -> FieldInfo | None:
    """Follow a pydantic error location to the FieldInfo it points at."""
    current: type[BaseModel] | None = model_type
    info: FieldInfo | None = None
    mapping_key = False
    for part in loc:
        if isinstance(part, int):
            continue
        if mapping_key:
            mapping_key = False
            continue
        if current is None:
            return None
        info = next(
            (
                field_info
                for name, field_info in current.model_fields.items()
                if field_key(name, field_info) == part
            ),
            None,
        )
        if info is None:
            return None
        current = _item_model(info.annotation)
        mapping_key = get_origin(unwrap_optional(info.annotation)) is dict
    return info


def is_conversion_error(error: ErrorDetails) -> bool:
    """True when the error says a value could not be read as its type."""
    error_type = error["type"]
    return error_type in _CONVERSION_ERROR_TYPES or error_type.endswith(
        _CONVERSION_ERROR_SUFFIXES
    )


def _type_name(annotation: Any) -> str:
    return getattr(annotation, "__name__", None) or repr(annotation)


def _item_model(annotation: Any) -> type[BaseModel] | None:
    target = unwrap_optional(annotation)
    if is_model_type(target):
        return target
    args = getattr(target, "__args__", ())
    if args and is_model_type(args[-1]):
        return args[-1]
    return None


def _field_lookup(model_type: type[BaseModel]) -> dict[str, str]:
    lookup: dict[str, str] = {}
    for name, info in model_type.model_fields.items():
        lookup.setdefault(normalize_key(name), name)
        if info.alias:
            lookup[normalize_key(info.alias)] = name
    return lookup


def _ordered_children(section: ConfigurationSection) -> list[ConfigurationSection]:
    children = section.get_children()
    if children and all(child.key.isdigit() for child in children):
        return sorted(children, key=lambda child: int(child.key))
    return children


def _normalize_raw(raw: Any) -> Any:
    """Turn index-keyed dicts into lists, recursively."""
    if not isinstance(raw, dict):
        return raw
    if raw and all(key.isdigit() for key in raw):
        return [_normalize_raw(raw[key]) for key in sorted(raw, key=int)]
    return {key: _normalize_raw(value) for key, value in raw.items()}


# =============================================================================
# Payload
# =============================================================================


@dataclass(frozen=True, slots=True)
class SectionPayload:
    """Raw values of one section, keyed for pydantic.

    Attributes:
        model_type: Model the payload is validated against
        section_path: Path of the bound section
        values: Nested raw values keyed by field name or alias
        key_paths: Error location -> source key path ("Database:TimeoutSeconds")
    """

    model_type: type[BaseModel]
    section_path: str
    values: dict[str, Any] = field(default_factory=dict)
    key_paths: dict[tuple[Any, ...], str] = field(default_factory=dict)

    def key_path(self, loc: tuple[Any, ...]) -> str:
        """Source key path for a pydantic error location."""
        for end in range(len(loc), 0, -1):
            path = self.key_paths.get(tuple(loc[:end]))
            if path is not None:
                return path
        return KEY_DELIMITER.join([self.section_path, *(str(part) for part in loc)])

    def binding_error(
        self, error: ErrorDetails, prefix: tuple[Any, ...] = ()
    ) -> ConfigurationBindingError:
        loc = (*prefix, *error["loc"])
        info = find_field(self.model_type, loc)
        target = unwrap_optional(info.annotation) if info is not None else self.model_type
        return ConfigurationBindingError(self.key_path(loc), _type_name(target), error["msg"])

    def raise_for_conversion_errors(
        self, error: ValidationError, prefix: tuple[Any, ...] = ()
    ) -> None:
        """Raise ConfigurationBindingError for the first conversion error, if any.

        prefix locates the validated value inside the payload.
        """
        for details in error.errors():
            if is_conversion_error(details):
                raise self.binding_error(details, prefix) from error


def _collect_model(
    section: ConfigurationSection,
    model_type: type[BaseModel],
    loc: tuple[Any, ...],
    key_paths: dict[tuple[Any, ...], str],
) -> dict[str, Any]:
    lookup = _field_lookup(model_type)
    values: dict[str, Any] = {}

    for child in section.get_children():
        if not child.exists():
            continue
        name = lookup.get(normalize_key(child.key))
        if name is None:
            logger.debug("key_ignored", key=child.path, target_type=model_type.__name__)
            continue
        info = model_type.model_fields[name]
        key = field_key(name, info)
        key_paths[(*loc, key)] = child.path
        values[key] = _collect_value(child, info.annotation, (*loc, key), key_paths)

    return values


def _collect_value(
    section: ConfigurationSection,
    annotation: Any,
    loc: tuple[Any, ...],
    key_paths: dict[tuple[Any, ...], str],
) -> Any:
    target = unwrap_optional(annotation)
    if section.get_children():
        if is_model_type(target):
            return _collect_model(section, target, loc, key_paths)

        origin, args = get_origin(target), get_args(target)
        if origin is list and len(args) == 1 and is_model_type(args[0]):
            items = []
            for index, child in enumerate(_ordered_children(section)):
                key_paths[(*loc, index)] = child.path
                items.append(_collect_value(child, args[0], (*loc, index), key_paths))
            return items
        if origin is dict and len(args) == 2 and is_model_type(args[1]):
            entries = {}
            for child in section.get_children():
                key_paths[(*loc, child.key)] = child.path
                entries[child.key] = _collect_value(child, args[1], (*loc, child.key), key_paths)
            return entries

    return _normalize_raw(section.to_raw())


def build_payload(section: ConfigurationSection, model_type: type[BaseModel]) -> SectionPayload:
    """Reshape a section into the raw input model_type validates."""
    key_paths: dict[tuple[Any, ...], str] = {}
    values = _collect_model(section, model_type, (), key_paths)
    return SectionPayload(model_type, section.path, values, key_paths)


# =============================================================================
# Unchecked conversion
# =============================================================================


def _unchecked_annotation(info: FieldInfo) -> Any:
    """The field's type with its validators but without native bounds."""
    validators = [item for item in info.metadata if isinstance(item, _VALIDATOR_TYPES)]
    if not validators:
        return info.annotation
    return Annotated[(info.annotation, *validators)]


def _convert_field(
    payload: SectionPayload,
    info: FieldInfo,
    raw: Any,
    loc: tuple[Any, ...],
) -> Any:
    target = unwrap_optional(info.annotation)
    origin, args = get_origin(target), get_args(target)
    if is_model_type(target) and isinstance(raw, dict):
        return _construct(payload, target, raw, loc)
    if origin is list and args and is_model_type(args[0]) and isinstance(raw, list):
        return [
            _construct(payload, args[0], item, (*loc, index)) if isinstance(item, dict) else item
            for index, item in enumerate(raw)
        ]
    if origin is dict and len(args) == 2 and is_model_type(args[1]) and isinstance(raw, dict):
        return {
            key: _construct(payload, args[1], item, (*loc, key)) if isinstance(item, dict) else item
            for key, item in raw.items()
        }
    try:
        return TypeAdapter(_unchecked_annotation(info)).validate_python(
            raw, context=UNCHECKED_CONTEXT
        )
    except ValidationError as e:
        payload.raise_for_conversion_errors(e, loc)
        return raw


def _construct(
    payload: SectionPayload,
    model_type: type[BaseModel],
    values: dict[str, Any],
    loc: tuple[Any, ...],
) -> BaseModel:
    try:
        return model_type.model_validate(values, context=UNCHECKED_CONTEXT)
    except ValidationError as e:
        payload.raise_for_conversion_errors(e, loc)
        failed = {error["loc"][0] for error in e.errors() if error["loc"]}

    keep: dict[str, Any] = {}
    try:
        checked = model_type.model_validate(
            {key: value for key, value in values.items() if key not in failed},
            context=UNCHECKED_CONTEXT,
        )
    except ValidationError:
        # No partial instance to build on; convert every field on its own
        failed = set(values)
    else:
        for name in checked.model_fields_set:
            keep[field_key(name, model_type.model_fields[name])] = getattr(checked, name)

    for name, info in model_type.model_fields.items():
        key = field_key(name, info)
        if key in failed and key in values:
            keep[key] = _convert_field(payload, info, values[key], (*loc, key))
    return model_type.model_construct(**keep)


def construct_unchecked(payload: SectionPayload) -> BaseModel:
    """Convert a payload to its model without enforcing constraints.

    The model's validators still shape every value. A field whose value
    breaks a native bound is converted on its own and kept as is.

    Raises:
        ConfigurationBindingError: A value cannot be converted to its type
    """
    return _construct(payload, payload.model_type, payload.values, ())


def bind(
    section: ConfigurationSection | None,
    model_type: type[M],
) -> tuple[M | None, bool]:
    """Bind a section onto a new instance of model_type, converting types only.

    Args:
        section: Section to bind from (None or non-existent means not found)
        model_type: pydantic model class to instantiate

    Returns:
        Tuple of (instance, found). The instance is None when not found.

    Raises:
        TypeError: model_type is not a BaseModel subclass
        ConfigurationBindingError: A value cannot be converted to its field type
    """
    if not is_model_type(model_type):
        raise TypeError(
            f"Bind target must be a pydantic BaseModel subclass, got {model_type!r}"
        )
    if section is None or not section.exists():
        return None, False
    return construct_unchecked(build_payload(section, model_type)), True
