"""Core module for settings, exceptions, logging and tracing.

Patterns applied:
- Pydantic Settings with SettingsConfigDict
- Custom namespaced exceptions
"""
