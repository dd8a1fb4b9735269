"""
configplus - Library Settings

Defaults for binding behaviour and ambient concerns, read from the process
environment. Hosts that never touch these get the documented defaults.

Patterns Applied:
- Pydantic Settings with SettingsConfigDict
- Environment variable prefix CONFIGPLUS_
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Library settings loaded from environment variables.

    All settings can be overridden via environment variables with the
    CONFIGPLUS_ prefix. Example: CONFIGPLUS_ENVIRONMENT=Production
    """

    # Binding defaults
    environment: str | None = None
    validate_data_annotations: bool = True

    # Logging configuration
    log_level: str = "INFO"
    log_json: bool = True

    # Tracing configuration
    tracing_enabled: bool = False
    tracing_console_export: bool = False

    model_config = SettingsConfigDict(
        env_prefix="CONFIGPLUS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Host configuration keys share the prefix
    )


def get_settings() -> Settings:
    """Get library settings instance.

    Returns:
        Settings instance with values from environment
    """
    return Settings()
