"""Section resolution and binding onto pydantic models."""

from configplus.binding.binder import (
    SectionPayload,
    bind,
    build_payload,
    construct_unchecked,
)
from configplus.binding.resolver import (
    ResolvedSection,
    build_effective_path,
    resolve_section,
)

__all__ = [
    "ResolvedSection",
    "SectionPayload",
    "bind",
    "build_effective_path",
    "build_payload",
    "construct_unchecked",
    "resolve_section",
]
