"""
Shared pytest fixtures.

Patterns Applied:
- reset_default()/reset_logging() style for test isolation
- In-memory configuration source, no files unless a test needs them
"""

from collections.abc import Iterator

import pytest

from configplus.manager import ConfigManager
from configplus.models.options import ConfigurationOptions
from configplus.sources.section import ConfigurationSource

SAMPLE_CONFIGURATION: dict[str, str] = {
    "Database:ConnectionString": "Server=localhost;Database=TestDb",
    "Database:TimeoutSeconds": "60",
    "Database:EnableRetry": "true",
    "Database_Production:ConnectionString": "Server=prod-server;Database=ProdDb",
    "Database_Production:TimeoutSeconds": "120",
    "Database_Production:EnableRetry": "false",
    "Email:SmtpHost": "smtp.gmail.com",
    "Email:Port": "587",
    "Email:FromAddress": "test@example.com",
    "InvalidSection:RequiredField": "",
    "InvalidSection:RangeField": "50",
}


@pytest.fixture
def source() -> ConfigurationSource:
    """Source holding SAMPLE_CONFIGURATION."""
    return ConfigurationSource.from_mapping(SAMPLE_CONFIGURATION)


@pytest.fixture
def manager(source: ConfigurationSource) -> ConfigManager:
    """Manager initialized with library-default options."""
    return ConfigManager(source, ConfigurationOptions())


@pytest.fixture(autouse=True)
def reset_default_manager() -> Iterator[None]:
    """Every test starts without a process-wide manager."""
    ConfigManager.reset_default()
    yield
    ConfigManager.reset_default()


@pytest.fixture(autouse=True)
def clean_configplus_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Library settings must not leak in from the developer's shell."""
    monkeypatch.delenv("CONFIGPLUS_ENVIRONMENT", raising=False)
    monkeypatch.delenv("CONFIGPLUS_VALIDATE_DATA_ANNOTATIONS", raising=False)
