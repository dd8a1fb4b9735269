"""
Configuration Source Loaders

Builds ConfigurationSource objects from files and the process environment
and layers them.

Supported file formats:
    - YAML (.yaml, .yml)
    - JSON (.json)

Layering policy:
    - Sources are merged key by key in the order given
    - A later source always overrides an earlier one
    - Inputs are never mutated

Empty files load as empty sources. A file whose root is not a mapping, an
unsupported suffix or a missing file raises ConfigurationSourceError.
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Final

import yaml

from configplus.core.exceptions import ConfigurationSourceError
from configplus.core.logging import get_logger
from configplus.sources.section import KEY_DELIMITER, ConfigurationSource

logger = get_logger(__name__)

YAML_SUFFIXES: Final[frozenset[str]] = frozenset({".yaml", ".yml"})
JSON_SUFFIXES: Final[frozenset[str]] = frozenset({".json"})

DEFAULT_ENV_PREFIX: Final[str] = "CONFIGPLUS_"
ENV_HIERARCHY_SEPARATOR: Final[str] = "__"


def _read_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise ConfigurationSourceError(f"Configuration file not found: {path}")

    suffix = path.suffix.lower()
    try:
        with path.open("r", encoding="utf-8") as f:
            if suffix in YAML_SUFFIXES:
                data = yaml.safe_load(f)
            elif suffix in JSON_SUFFIXES:
                text = f.read()
                data = json.loads(text) if text.strip() else None
            else:
                raise ConfigurationSourceError(
                    f"Unsupported configuration format: {path.suffix or '<none>'}"
                )
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigurationSourceError(f"Cannot parse {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationSourceError(
            f"Configuration root must be a mapping, got {type(data).__name__}: {path}"
        )
    return data


def load_file(path: str | Path) -> ConfigurationSource:
    """Load a JSON or YAML file into a source.

    Args:
        path: File to load

    Returns:
        ConfigurationSource holding the file's tree

    Raises:
        ConfigurationSourceError: Missing file, unsupported format, parse
            error or non-mapping root
    """
    file_path = Path(path)
    source = ConfigurationSource.from_nested(_read_file(file_path))
    logger.debug("configuration_loaded", path=str(file_path))
    return source


def from_environment(
    prefix: str = DEFAULT_ENV_PREFIX,
    environ: Mapping[str, str] | None = None,
) -> ConfigurationSource:
    """Build a source from prefixed environment variables.

    "__" separates hierarchy levels, so CONFIGPLUS_Database__TimeoutSeconds
    becomes "Database:TimeoutSeconds". The prefix match is case-insensitive.

    Args:
        prefix: Only variables starting with this prefix are read
        environ: Variables to read (default: os.environ)
    """
    variables = os.environ if environ is None else environ
    folded_prefix = prefix.lower()
    source = ConfigurationSource()
    for name, value in variables.items():
        if not name.lower().startswith(folded_prefix):
            continue
        key = name[len(prefix):].replace(ENV_HIERARCHY_SEPARATOR, KEY_DELIMITER)
        if key.strip(KEY_DELIMITER):
            source.set(key, value)
    return source


def merge_sources(*sources: ConfigurationSource) -> ConfigurationSource:
    """Merge sources; later sources override earlier ones key by key."""
    merged = ConfigurationSource()
    for source in sources:
        for key, value in source.to_flat().items():
            merged.set(key, value)
    return merged


def load_sources(
    paths: list[str | Path],
    env_prefix: str | None = None,
) -> ConfigurationSource:
    """Load files in order and optionally layer environment variables on top."""
    layers = [load_file(path) for path in paths]
    if env_prefix is not None:
        layers.append(from_environment(env_prefix))
    return merge_sources(*layers)
