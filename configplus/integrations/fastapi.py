"""
configplus - FastAPI Registration Glue

Wires bound configuration models into a FastAPI application.

ConfigRegistry is a small type-keyed container. configure() registers a lazy
singleton: nothing is bound until the type is first resolved, and an invalid
section raises ConfigurationError at that moment. dependency() turns a
registration into a provider for Depends().

Usage:
    registry = (
        ConfigRegistry()
        .add_config_plus(source)
        .configure(DatabaseSettings, "Database")
        .configure_for_environment(EmailSettings, "Email", "Production")
        .validate_configurations({"Database": DatabaseSettings})
    )
    registry.install(app)

    @app.get("/db")
    async def db_info(
        settings: Annotated[DatabaseSettings, Depends(registry.dependency(DatabaseSettings))],
    ) -> dict[str, int]:
        return {"timeout": settings.timeout_seconds}

Patterns Applied:
- Dependency injection via Depends() with provider callables
- Lazy singleton factories
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

from fastapi import FastAPI, Request
from pydantic import BaseModel

from configplus.core.exceptions import ConfigurationError, ConfigurationValidationError
from configplus.core.logging import get_logger
from configplus.manager import MESSAGE_SEPARATOR, ConfigManager, SectionTypes
from configplus.models.options import ConfigurationOptions
from configplus.sources.section import ConfigurationSource

logger = get_logger(__name__)

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

APP_STATE_ATTRIBUTE = "config_registry"
ERROR_REGISTRATION_FAILED = "Configuration validation failed: {messages}"


class ConfigRegistry:
    """Type-keyed registry of configuration singletons.

    Registration methods return the registry so calls can be chained.
    """

    def __init__(self, manager: ConfigManager | None = None) -> None:
        """Initialize the registry.

        Args:
            manager: Manager used for binding. Defaults to a private manager,
                     initialized by add_config_plus().
        """
        self._manager = manager or ConfigManager()
        self._factories: dict[type, Callable[[], Any]] = {}
        self._instances: dict[type, Any] = {}

    @property
    def manager(self) -> ConfigManager:
        return self._manager

    # === REGISTRATION ===

    def add_config_plus(
        self,
        source: ConfigurationSource,
        options: ConfigurationOptions | None = None,
    ) -> ConfigRegistry:
        """Initialize the manager and register the source and options.

        Args:
            source: Configuration source
            options: Default options; None keeps the library defaults
        """
        self._manager.initialize(source, options)
        self.add_singleton(ConfigurationSource, source)
        self.add_singleton(ConfigurationOptions, self._manager.options)
        return self

    def add_singleton(self, service_type: type[T], instance: T) -> ConfigRegistry:
        """Register a ready-made instance."""
        self._factories.pop(service_type, None)
        self._instances[service_type] = instance
        return self

    def configure(
        self,
        model_type: type[M],
        section_path: str,
        options: ConfigurationOptions | None = None,
    ) -> ConfigRegistry:
        """Register model_type, bound from section_path on first resolve.

        Raises (on resolve):
            ConfigurationError: The section is missing or invalid
        """
        return self._register(model_type, section_path, lambda: options)

    def configure_for_environment(
        self,
        model_type: type[M],
        section_path: str,
        environment: str,
        options: ConfigurationOptions | None = None,
    ) -> ConfigRegistry:
        """configure() with the environment overlay forced to environment.

        Without options, the manager defaults in effect at resolve time are
        used as the base.
        """
        return self._register(
            model_type,
            section_path,
            lambda: (options or self._manager.options).with_environment(environment),
        )

    def _register(
        self,
        model_type: type[M],
        section_path: str,
        resolve_options: Callable[[], ConfigurationOptions | None],
    ) -> ConfigRegistry:
        def factory() -> M:
            options = resolve_options()
            result = self._manager.get_validated(model_type, section_path, options)
            if not result.is_valid:
                messages = MESSAGE_SEPARATOR.join(result.error_messages)
                raise ConfigurationError(
                    section_path,
                    ERROR_REGISTRATION_FAILED.format(messages=messages),
                    environment=(options or self._manager.options).environment,
                )
            return result.value

        self._instances.pop(model_type, None)
        self._factories[model_type] = factory
        logger.debug(
            "configuration_registered",
            target_type=model_type.__name__,
            section_path=section_path,
        )
        return self

    def validate_configurations(
        self,
        sections: SectionTypes,
        options: ConfigurationOptions | None = None,
    ) -> ConfigRegistry:
        """Validate sections now; raise one aggregate error if any fail.

        Raises:
            ConfigurationValidationError: Wraps every per-section error
        """
        errors = self._manager.validate_all(sections, options)
        if errors:
            logger.error(
                "configuration_validation_failed",
                sections=[error.section_path for error in errors],
            )
            raise ConfigurationValidationError(errors)
        return self

    # === RESOLUTION ===

    def is_registered(self, service_type: type) -> bool:
        return service_type in self._instances or service_type in self._factories

    def resolve(self, service_type: type[T]) -> T:
        """Return the singleton for service_type, building it on first use.

        Raises:
            LookupError: service_type was never registered
            ConfigurationError: The bound section is missing or invalid
        """
        if service_type in self._instances:
            return self._instances[service_type]
        factory = self._factories.get(service_type)
        if factory is None:
            raise LookupError(f"No registration for {service_type.__name__}")
        instance = factory()
        self._instances[service_type] = instance
        return instance

    def try_resolve(self, service_type: type[T]) -> T | None:
        """resolve(), but None for unregistered types."""
        if not self.is_registered(service_type):
            return None
        return self.resolve(service_type)

    def dependency(self, service_type: type[T]) -> Callable[[], T]:
        """Return a provider for Depends(), resolving service_type per request."""

        def provide() -> T:
            return self.resolve(service_type)

        provide.__name__ = f"provide_{service_type.__name__}"
        return provide

    # === APPLICATION WIRING ===

    def install(self, app: FastAPI) -> ConfigRegistry:
        """Store the registry on app.state for get_registry()."""
        setattr(app.state, APP_STATE_ATTRIBUTE, self)
        return self


def get_registry(request: Request) -> ConfigRegistry:
    """Dependency provider returning the registry installed on the app.

    Raises:
        LookupError: install() was never called for this application
    """
    registry = getattr(request.app.state, APP_STATE_ATTRIBUTE, None)
    if registry is None:
        raise LookupError("No ConfigRegistry installed on this application")
    return registry
