"""
Section Resolver

Applies the environment overlay convention: with environment "Production",
section "Database" is looked up as "Database_Production" first.

Resolution policy:
    1. Look up the suffixed path. If it exists, use it and report the
       requested environment.
    2. Otherwise look up the base path. If it exists, use it and report NO
       environment: the values did not come from an environment section.
    3. Otherwise the section is not found; no environment is reported.

Falling back is silent. It is not an error.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from configplus.core.logging import get_logger
from configplus.sources.section import ConfigurationSection, ConfigurationSource

logger = get_logger(__name__)

ENVIRONMENT_SEPARATOR: Final[str] = "_"


@dataclass(frozen=True, slots=True)
class ResolvedSection:
    """Outcome of resolving a section path.

    Attributes:
        section_path: Path the caller asked for
        effective_path: Path that was actually found, None when not found
        environment: Environment overlay used, None on fallback or not found
        section: Section to bind from, None when not found
    """

    section_path: str
    effective_path: str | None
    environment: str | None
    section: ConfigurationSection | None

    @property
    def found(self) -> bool:
        return self.section is not None


def build_effective_path(section_path: str, environment: str | None) -> str:
    """Return the lookup path for a section and optional environment."""
    if not environment:
        return section_path
    return f"{section_path}{ENVIRONMENT_SEPARATOR}{environment}"


def resolve_section(
    source: ConfigurationSource,
    section_path: str,
    environment: str | None = None,
) -> ResolvedSection:
    """Resolve the section to bind, applying the environment fallback.

    Args:
        source: Configuration source to search
        section_path: Base section path
        environment: Optional environment overlay suffix

    Returns:
        ResolvedSection describing what was found
    """
    if environment:
        overlay_path = build_effective_path(section_path, environment)
        overlay = source.get_section(overlay_path)
        if overlay.exists():
            logger.debug(
                "section_resolved",
                section_path=section_path,
                effective_path=overlay_path,
                environment=environment,
            )
            return ResolvedSection(section_path, overlay_path, environment, overlay)
        logger.debug(
            "environment_section_missing",
            section_path=section_path,
            effective_path=overlay_path,
        )

    base = source.get_section(section_path)
    if base.exists():
        logger.debug(
            "section_resolved",
            section_path=section_path,
            effective_path=section_path,
            environment=None,
        )
        return ResolvedSection(section_path, section_path, None, base)

    logger.debug("section_not_found", section_path=section_path, environment=environment)
    return ResolvedSection(section_path, None, None, None)
