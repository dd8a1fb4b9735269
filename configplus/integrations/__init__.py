"""Host integrations for bound configuration."""

from configplus.integrations.fastapi import ConfigRegistry, get_registry

__all__ = ["ConfigRegistry", "get_registry"]
