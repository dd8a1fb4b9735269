"""
ConfigManager Tests

get / get_for_environment / get_validated / validate_all and the
module-level API backed by the default manager.
"""

import pytest
import structlog
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

import configplus
from configplus import manager as manager_module
from configplus.core.exceptions import ConfigurationError, NotInitializedError
from configplus.core.tracing import ATTR_ENVIRONMENT, ATTR_IS_VALID, ATTR_SECTION_PATH
from configplus.manager import ConfigManager
from configplus.models.options import ConfigurationOptions
from configplus.sources.section import ConfigurationSource
from tests.fixtures.models import (
    CacheConfig,
    DatabaseConfig,
    EmailConfig,
    InvalidConfig,
    ServiceConfig,
)

# =============================================================================
# Constants
# =============================================================================

ENV_PRODUCTION = "Production"
ENV_STAGING = "Staging"


class TestGet:
    """Single-section bind + validate."""

    def test_valid_section_binds_every_field(self, manager: ConfigManager) -> None:
        result = manager.get(DatabaseConfig, "Database")

        assert result.is_valid
        assert result.validation_errors == ()
        assert result.section_path == "Database"
        assert result.environment is None
        assert result.value == DatabaseConfig(
            connection_string="Server=localhost;Database=TestDb",
            timeout_seconds=60,
            enable_retry=True,
        )

    def test_all_constraint_violations_are_reported(self, manager: ConfigManager) -> None:
        result = manager.get(InvalidConfig, "InvalidSection")

        assert not result.is_valid
        assert result.value is None
        assert len(result.validation_errors) == 2
        assert "required" in result.error_messages[0]
        assert "between 1 and 10" in result.error_messages[1]

    def test_missing_section_is_not_found(self, manager: ConfigManager) -> None:
        result = manager.get(EmailConfig, "NonExistent")

        assert not result.is_valid
        assert result.value is None
        assert result.section_path == "NonExistent"
        assert result.environment is None
        assert result.error_messages == ["Configuration section 'NonExistent' not found"]

    def test_lookup_ignores_case(self, manager: ConfigManager) -> None:
        result = manager.get(DatabaseConfig, "database")

        assert result.is_valid
        assert result.section_path == "database"

    def test_validation_can_be_disabled(self, manager: ConfigManager) -> None:
        options = ConfigurationOptions(validate_data_annotations=False)

        result = manager.get(InvalidConfig, "InvalidSection", options)

        assert result.is_valid
        assert result.value.range_field == 50

    def test_conversion_failure_becomes_a_failed_result(self) -> None:
        manager = ConfigManager(
            ConfigurationSource.from_mapping({"Database:TimeoutSeconds": "soon"}),
            ConfigurationOptions(),
        )

        result = manager.get(DatabaseConfig, "Database")

        assert not result.is_valid
        assert result.environment is None
        assert len(result.error_messages) == 1
        assert result.error_messages[0].startswith(
            "Configuration binding error: Failed to convert configuration value "
            "at 'Database:TimeoutSeconds'"
        )

    def test_repeated_calls_are_structurally_equal(self, manager: ConfigManager) -> None:
        first = manager.get(InvalidConfig, "InvalidSection")
        second = manager.get(InvalidConfig, "InvalidSection")

        assert first == second

    def test_each_call_binds_a_new_instance(self, manager: ConfigManager) -> None:
        first = manager.get(DatabaseConfig, "Database")
        second = manager.get(DatabaseConfig, "Database")

        assert first.value == second.value
        assert first.value is not second.value

    def test_manager_default_environment_applies(self, source: ConfigurationSource) -> None:
        manager = ConfigManager(source, ConfigurationOptions(environment=ENV_PRODUCTION))

        result = manager.get(DatabaseConfig, "Database")

        assert result.environment == ENV_PRODUCTION
        assert result.value.timeout_seconds == 120


class TestBoundValues:
    """The returned model is the one the model's own validators produced."""

    CACHE = {"Cache:Name": "  orders  ", "Cache:Hosts": "a, b", "Cache:Size": "2048"}

    def test_validators_shape_the_returned_value(self) -> None:
        manager = ConfigManager(
            ConfigurationSource.from_mapping({**self.CACHE, "Cache:Size": "128"}),
            ConfigurationOptions(),
        )

        result = manager.get(CacheConfig, "Cache")

        assert result.is_valid
        assert result.value == CacheConfig(name="orders", hosts=["a", "b"], size=128)

    def test_validators_run_with_validation_disabled(self) -> None:
        manager = ConfigManager(
            ConfigurationSource.from_mapping(self.CACHE),
            ConfigurationOptions(validate_data_annotations=False),
        )

        result = manager.get(CacheConfig, "Cache")

        assert result.is_valid
        assert result.value.name == "orders"
        assert result.value.hosts == ["a", "b"]
        assert result.value.size == 2048

    def test_constraint_violation_is_still_reported(self) -> None:
        manager = ConfigManager(
            ConfigurationSource.from_mapping(self.CACHE), ConfigurationOptions()
        )

        result = manager.get(CacheConfig, "Cache")

        assert result.error_messages == ["The field size must be between 1 and 1024."]

    def test_absent_nested_section_keeps_its_default(self) -> None:
        manager = ConfigManager(
            ConfigurationSource.from_mapping({"Service:Name": "orders"}),
            ConfigurationOptions(),
        )

        result = manager.get(ServiceConfig, "Service")

        assert result.is_valid
        assert result.value.database == DatabaseConfig()

    def test_present_nested_section_is_validated(self) -> None:
        manager = ConfigManager(
            ConfigurationSource.from_mapping(
                {"Service:Name": "orders", "Service:Database:TimeoutSeconds": "0"}
            ),
            ConfigurationOptions(),
        )

        result = manager.get(ServiceConfig, "Service")

        assert result.error_messages == [
            "The database.connection_string field is required.",
            "The field database.timeout_seconds must be between 1 and 3600.",
        ]


class TestGetPreconditions:
    def test_uninitialized_manager_raises(self) -> None:
        with pytest.raises(NotInitializedError):
            ConfigManager().get(DatabaseConfig, "Database")

    def test_empty_section_path_raises(self, manager: ConfigManager) -> None:
        with pytest.raises(ValueError):
            manager.get(DatabaseConfig, "")

    def test_non_model_type_raises(self, manager: ConfigManager) -> None:
        with pytest.raises(TypeError):
            manager.get(dict, "Database")  # type: ignore[type-var]

    def test_initialize_rejects_none(self) -> None:
        with pytest.raises(ValueError):
            ConfigManager().initialize(None)  # type: ignore[arg-type]

    def test_reinitialize_replaces_source(self, manager: ConfigManager) -> None:
        manager.initialize(ConfigurationSource.from_mapping({"Other:Key": "v"}))

        assert not manager.get(DatabaseConfig, "Database").is_valid

    def test_initialize_without_options_reads_settings(
        self,
        source: ConfigurationSource,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setenv("CONFIGPLUS_ENVIRONMENT", ENV_PRODUCTION)

        manager = ConfigManager(source)

        assert manager.options.environment == ENV_PRODUCTION
        assert manager.get(DatabaseConfig, "Database").value.timeout_seconds == 120


class TestGetForEnvironment:
    """Environment overlay with soft fallback."""

    def test_overlay_overrides_base(self, manager: ConfigManager) -> None:
        result = manager.get_for_environment(DatabaseConfig, "Database", ENV_PRODUCTION)

        assert result.is_valid
        assert result.section_path == "Database"
        assert result.environment == ENV_PRODUCTION
        assert result.value == DatabaseConfig(
            connection_string="Server=prod-server;Database=ProdDb",
            timeout_seconds=120,
            enable_retry=False,
        )

    def test_missing_overlay_falls_back_to_base(self, manager: ConfigManager) -> None:
        result = manager.get_for_environment(DatabaseConfig, "Database", ENV_STAGING)

        assert result.is_valid
        assert result.environment is None
        assert result.value.timeout_seconds == 60

    def test_missing_base_and_overlay_is_not_found(self, manager: ConfigManager) -> None:
        result = manager.get_for_environment(EmailConfig, "NonExistent", ENV_PRODUCTION)

        assert result.error_messages == ["Configuration section 'NonExistent' not found"]
        assert result.environment is None

    def test_invalid_overlay_reports_environment(self) -> None:
        manager = ConfigManager(
            ConfigurationSource.from_mapping(
                {
                    "Database:ConnectionString": "Server=x",
                    "Database_Production:ConnectionString": "Server=y",
                    "Database_Production:TimeoutSeconds": "0",
                }
            ),
            ConfigurationOptions(),
        )

        result = manager.get_for_environment(DatabaseConfig, "Database", ENV_PRODUCTION)

        assert not result.is_valid
        assert result.environment == ENV_PRODUCTION

    def test_caller_options_are_not_modified(self, manager: ConfigManager) -> None:
        options = ConfigurationOptions()

        manager.get_for_environment(DatabaseConfig, "Database", ENV_PRODUCTION, options)

        assert options.environment is None
        assert manager.options.environment is None


class TestGetValidated:
    def test_invalid_result_is_returned_not_raised(self, manager: ConfigManager) -> None:
        result = manager.get_validated(InvalidConfig, "InvalidSection")

        assert not result.is_valid
        assert len(result.validation_errors) == 2

    def test_valid_result(self, manager: ConfigManager) -> None:
        assert manager.get_validated(EmailConfig, "Email").is_valid


class TestValidateAll:
    """Fail-accumulate batch validation."""

    def test_one_error_per_invalid_section(self, manager: ConfigManager) -> None:
        errors = manager.validate_all(
            {
                "Database": DatabaseConfig,
                "InvalidSection": InvalidConfig,
                "NonExistent": EmailConfig,
            }
        )

        assert len(errors) == 2
        assert [error.section_path for error in errors] == ["InvalidSection", "NonExistent"]
        assert errors[0].message == (
            "Validation failed: The required_field field is required., "
            "The field range_field must be between 1 and 10."
        )
        assert errors[1].message == (
            "Validation failed: Configuration section 'NonExistent' not found"
        )

    def test_all_valid_returns_empty_list(self, manager: ConfigManager) -> None:
        assert manager.validate_all({"Database": DatabaseConfig, "Email": EmailConfig}) == []

    def test_empty_input_returns_empty_list(self, manager: ConfigManager) -> None:
        assert manager.validate_all({}) == []

    def test_accepts_pairs(self, manager: ConfigManager) -> None:
        errors = manager.validate_all(
            iter([("Database", DatabaseConfig), ("InvalidSection", InvalidConfig)])
        )

        assert [error.section_path for error in errors] == ["InvalidSection"]

    def test_same_path_with_two_types(self, manager: ConfigManager) -> None:
        errors = manager.validate_all([("Database", DatabaseConfig), ("Database", EmailConfig)])

        assert [error.section_path for error in errors] == ["Database"]

    def test_pipeline_exception_is_collected(self, manager: ConfigManager) -> None:
        errors = manager.validate_all([("Database", dict), ("InvalidSection", InvalidConfig)])

        assert len(errors) == 2
        assert errors[0].message.startswith("Configuration error: ")
        assert isinstance(errors[0].__cause__, TypeError)

    def test_options_apply_to_every_section(self, manager: ConfigManager) -> None:
        options = ConfigurationOptions(environment=ENV_PRODUCTION)

        assert manager.validate_all({"Database": DatabaseConfig}, options) == []

    def test_errors_are_configuration_errors(self, manager: ConfigManager) -> None:
        errors = manager.validate_all({"NonExistent": EmailConfig})

        assert isinstance(errors[0], ConfigurationError)
        assert errors[0].environment is None


class TestModuleLevelApi:
    """Functions delegating to the process-wide default manager."""

    def test_get_before_initialize_raises(self) -> None:
        with pytest.raises(NotInitializedError):
            configplus.get(DatabaseConfig, "Database")

    def test_initialize_then_get(self, source: ConfigurationSource) -> None:
        manager = configplus.initialize(source, ConfigurationOptions())

        assert manager is ConfigManager.get_default()
        assert configplus.get(DatabaseConfig, "Database").is_valid
        assert configplus.get_validated(EmailConfig, "Email").is_valid

    def test_get_for_environment(self, source: ConfigurationSource) -> None:
        configplus.initialize(source, ConfigurationOptions())

        result = configplus.get_for_environment(DatabaseConfig, "Database", ENV_PRODUCTION)

        assert result.environment == ENV_PRODUCTION

    def test_validate_all(self, source: ConfigurationSource) -> None:
        configplus.initialize(source, ConfigurationOptions())

        errors = configplus.validate_all({"InvalidSection": InvalidConfig})

        assert len(errors) == 1

    def test_reset_default_manager(self, source: ConfigurationSource) -> None:
        configplus.initialize(source, ConfigurationOptions())

        configplus.reset_default_manager()

        assert not ConfigManager.get_default().is_initialized


class TestObservability:
    def test_not_found_is_logged(self, manager: ConfigManager) -> None:
        with structlog.testing.capture_logs() as logs:
            manager.get(EmailConfig, "NonExistent")

        assert any(
            entry["event"] == "section_not_found" and entry["section_path"] == "NonExistent"
            for entry in logs
        )

    def test_inert_options_are_logged(self, manager: ConfigManager) -> None:
        options = ConfigurationOptions(use_cache=False, cache_duration_seconds=10)

        with structlog.testing.capture_logs() as logs:
            result = manager.get(DatabaseConfig, "Database", options)

        assert result.is_valid
        inert = [entry for entry in logs if entry["event"] == "inert_options_ignored"]
        assert inert[0]["options"] == {"use_cache": False, "cache_duration_seconds": 10}

    def test_get_opens_a_span(
        self,
        manager: ConfigManager,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        exporter = InMemorySpanExporter()
        provider = TracerProvider()
        provider.add_span_processor(SimpleSpanProcessor(exporter))
        monkeypatch.setattr(manager_module, "tracer", provider.get_tracer("test"))

        manager.get_for_environment(DatabaseConfig, "Database", ENV_PRODUCTION)

        spans = exporter.get_finished_spans()
        assert [span.name for span in spans] == ["configplus.get"]
        assert spans[0].attributes[ATTR_SECTION_PATH] == "Database"
        assert spans[0].attributes[ATTR_ENVIRONMENT] == ENV_PRODUCTION
        assert spans[0].attributes[ATTR_IS_VALID] is True
