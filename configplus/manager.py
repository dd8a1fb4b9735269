"""
configplus - Configuration Manager

The bind-then-validate pipeline:

    section path (+ environment)
        -> resolve_section()   effective path with soft fallback
        -> build_payload()     section values keyed for the model
        -> validate_payload()  validated model, or every violation
           (construct_unchecked() converts types only when validation is off)
        -> ConfigurationResult success / failure

ConfigManager is an explicit context object: build one per source and pass
it around. A process-wide default manager backs the module-level functions
for hosts that prefer "initialize once at startup, call anywhere". The
default manager is not guarded by a lock; initialize it before serving
concurrent work.

Patterns Applied:
- Singleton with get_default()/reset_default() for test isolation
- Result objects instead of exceptions for expected failures
- Fail-accumulate batch validation
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import ClassVar, TypeVar

from pydantic import BaseModel

from configplus.binding.binder import build_payload, construct_unchecked, is_model_type
from configplus.binding.resolver import resolve_section
from configplus.core.config import get_settings
from configplus.core.exceptions import ConfigurationError, NotInitializedError
from configplus.core.logging import get_logger, section_log_context
from configplus.core.tracing import ATTR_IS_VALID, get_tracer, section_span
from configplus.models.options import ConfigurationOptions
from configplus.models.result import ConfigurationResult, ValidationFailure
from configplus.sources.section import ConfigurationSource
from configplus.validation.aggregator import validate_payload

logger = get_logger(__name__)
tracer = get_tracer(__name__)

M = TypeVar("M", bound=BaseModel)

SectionTypes = Mapping[str, type[BaseModel]] | Iterable[tuple[str, type[BaseModel]]]

ERROR_SECTION_NOT_FOUND = "Configuration section '{section_path}' not found"
ERROR_BINDING = "Configuration binding error: {detail}"
ERROR_VALIDATION_FAILED = "Validation failed: {messages}"
ERROR_PIPELINE = "Configuration error: {detail}"
MESSAGE_SEPARATOR = ", "


def _section_items(sections: SectionTypes) -> list[tuple[str, type[BaseModel]]]:
    if isinstance(sections, Mapping):
        return list(sections.items())
    return list(sections)


class ConfigManager:
    """Binds configuration sections onto pydantic models and validates them.

    Usage:
        manager = ConfigManager(source)
        result = manager.get(DatabaseSettings, "Database")
        if result.is_valid:
            connect(result.value.connection_string)
    """

    _default: ClassVar[ConfigManager | None] = None

    def __init__(
        self,
        source: ConfigurationSource | None = None,
        options: ConfigurationOptions | None = None,
    ) -> None:
        """Create a manager, optionally initialized.

        Args:
            source: Configuration source; may be supplied later via initialize()
            options: Default options for calls that omit them
        """
        self._source: ConfigurationSource | None = None
        self._options = options or ConfigurationOptions()
        if source is not None:
            self.initialize(source, options)

    # === SINGLETON ACCESS ===

    @classmethod
    def get_default(cls) -> ConfigManager:
        """Get the process-wide default manager, creating it on first use."""
        if cls._default is None:
            cls._default = ConfigManager()
        return cls._default

    @classmethod
    def reset_default(cls) -> None:
        """Drop the default manager. Called in test fixtures."""
        cls._default = None

    # === INITIALIZATION ===

    def initialize(
        self,
        source: ConfigurationSource,
        options: ConfigurationOptions | None = None,
    ) -> None:
        """Store the source and default options, replacing previous ones.

        When options is None the defaults are read from library settings
        (CONFIGPLUS_ENVIRONMENT, CONFIGPLUS_VALIDATE_DATA_ANNOTATIONS).

        Raises:
            ValueError: source is None
        """
        if source is None:
            raise ValueError("source must not be None")
        self._source = source
        self._options = options or ConfigurationOptions.from_settings(get_settings())
        logger.info(
            "config_manager_initialized",
            sections=len(source.get_children()),
            environment=self._options.environment,
        )

    @property
    def is_initialized(self) -> bool:
        return self._source is not None

    @property
    def source(self) -> ConfigurationSource:
        if self._source is None:
            raise NotInitializedError()
        return self._source

    @property
    def options(self) -> ConfigurationOptions:
        """Default options for calls that omit them."""
        return self._options

    # === PRIMARY API ===

    def get(
        self,
        model_type: type[M],
        section_path: str,
        options: ConfigurationOptions | None = None,
    ) -> ConfigurationResult[M]:
        """Bind and validate one section.

        Expected failures (section not found, conversion errors, constraint
        violations) come back as a failed result; they are never raised.

        Args:
            model_type: pydantic model to bind onto
            section_path: Base section path, e.g. "Database"
            options: Per-call options (default: the manager's options)

        Returns:
            ConfigurationResult with either the bound value or the errors

        Raises:
            NotInitializedError: No source was supplied
            ValueError: section_path is empty
            TypeError: model_type is not a BaseModel subclass
        """
        source = self.source
        if not section_path:
            raise ValueError("section_path must not be empty")
        if not is_model_type(model_type):
            raise TypeError(
                f"Configuration type must be a pydantic BaseModel subclass, got {model_type!r}"
            )

        effective = options or self._options
        inert = effective.inert_overrides()
        if inert:
            logger.debug("inert_options_ignored", section_path=section_path, options=inert)

        target_type = model_type.__name__
        with section_log_context(section_path, target_type), section_span(
            tracer, section_path, target_type, effective.environment
        ) as span:
            result = self._bind_and_validate(source, model_type, section_path, effective)

            span.set_attribute(ATTR_IS_VALID, result.is_valid)
        return result

    def _bind_and_validate(
        self,
        source: ConfigurationSource,
        model_type: type[M],
        section_path: str,
        options: ConfigurationOptions,
    ) -> ConfigurationResult[M]:
        resolved = resolve_section(source, section_path, options.environment)
        if not resolved.found:
            logger.info("section_not_found", section_path=section_path)
            return ConfigurationResult.failure(
                [ValidationFailure(ERROR_SECTION_NOT_FOUND.format(section_path=section_path))],
                section_path,
                None,
            )

        try:
            payload = build_payload(resolved.section, model_type)
            if options.validate_data_annotations:
                instance, violations = validate_payload(payload)
            else:
                instance, violations = construct_unchecked(payload), []
        except Exception as e:  # noqa: BLE001 - binding faults become failed results
            logger.warning(
                "binding_failed",
                section_path=section_path,
                effective_path=resolved.effective_path,
                error=str(e),
            )
            return ConfigurationResult.failure(
                [ValidationFailure(ERROR_BINDING.format(detail=e))],
                section_path,
                None,
            )

        if violations:
            logger.info(
                "validation_failed",
                section_path=section_path,
                environment=resolved.environment,
                error_count=len(violations),
            )
            return ConfigurationResult.failure(violations, section_path, resolved.environment)

        logger.debug(
            "configuration_bound",
            section_path=section_path,
            effective_path=resolved.effective_path,
            target_type=model_type.__name__,
        )
        return ConfigurationResult.success(instance, section_path, resolved.environment)

    def get_for_environment(
        self,
        model_type: type[M],
        section_path: str,
        environment: str,
        options: ConfigurationOptions | None = None,
    ) -> ConfigurationResult[M]:
        """get() with the environment overlay forced to environment."""
        base = options or self._options
        return self.get(model_type, section_path, base.with_environment(environment))

    def get_validated(
        self,
        model_type: type[M],
        section_path: str,
        options: ConfigurationOptions | None = None,
    ) -> ConfigurationResult[M]:
        """get() with throw_on_error set.

        The result is still returned, not raised; inspect is_valid or use
        validate_all() / the registration helpers for hard failures.
        """
        base = options or self._options
        return self.get(model_type, section_path, base.with_throw_on_error())

    # === BATCH VALIDATION ===

    def validate_all(
        self,
        sections: SectionTypes,
        options: ConfigurationOptions | None = None,
    ) -> list[ConfigurationError]:
        """Validate many sections, collecting every failure.

        One bad section never stops the others from being checked.

        Args:
            sections: section path -> model type (mapping or pairs)
            options: Options applied to every section

        Returns:
            One ConfigurationError per invalid section, in input order;
            empty when every section is valid
        """
        items = _section_items(sections)
        errors: list[ConfigurationError] = []

        for section_path, model_type in items:
            try:
                result = self.get_validated(model_type, section_path, options)
                if not result.is_valid:
                    messages = MESSAGE_SEPARATOR.join(result.error_messages)
                    errors.append(
                        ConfigurationError(
                            section_path,
                            ERROR_VALIDATION_FAILED.format(messages=messages),
                            environment=result.environment,
                        )
                    )
            except Exception as e:  # noqa: BLE001 - fail-accumulate
                errors.append(
                    ConfigurationError(
                        section_path,
                        ERROR_PIPELINE.format(detail=e),
                        cause=e,
                    )
                )

        logger.info(
            "sections_validated",
            section_count=len(items),
            error_count=len(errors),
        )
        return errors


# =============================================================================
# Module-level API backed by the default manager
# =============================================================================


def initialize(
    source: ConfigurationSource,
    options: ConfigurationOptions | None = None,
) -> ConfigManager:
    """Initialize the default manager and return it."""
    manager = ConfigManager.get_default()
    manager.initialize(source, options)
    return manager


def get(
    model_type: type[M],
    section_path: str,
    options: ConfigurationOptions | None = None,
) -> ConfigurationResult[M]:
    return ConfigManager.get_default().get(model_type, section_path, options)


def get_for_environment(
    model_type: type[M],
    section_path: str,
    environment: str,
    options: ConfigurationOptions | None = None,
) -> ConfigurationResult[M]:
    return ConfigManager.get_default().get_for_environment(
        model_type, section_path, environment, options
    )


def get_validated(
    model_type: type[M],
    section_path: str,
    options: ConfigurationOptions | None = None,
) -> ConfigurationResult[M]:
    return ConfigManager.get_default().get_validated(model_type, section_path, options)


def validate_all(
    sections: SectionTypes,
    options: ConfigurationOptions | None = None,
) -> list[ConfigurationError]:
    return ConfigManager.get_default().validate_all(sections, options)


def reset_default_manager() -> None:
    """Reset the default manager for testing."""
    ConfigManager.reset_default()
