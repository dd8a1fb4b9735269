"""Configuration sources: the key/value tree bound onto target types."""

from configplus.sources.loader import (
    from_environment,
    load_file,
    load_sources,
    merge_sources,
)
from configplus.sources.section import (
    KEY_DELIMITER,
    ConfigurationSection,
    ConfigurationSource,
)

__all__ = [
    "KEY_DELIMITER",
    "ConfigurationSection",
    "ConfigurationSource",
    "from_environment",
    "load_file",
    "load_sources",
    "merge_sources",
]
