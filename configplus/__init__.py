"""configplus - bind configuration sections onto pydantic models and validate them.

Architecture:
    - core         -> settings, exceptions, structured logging, tracing
    - sources      -> hierarchical key/value source, file/env loaders
    - binding      -> environment overlay resolution and section binding
    - validation   -> declarative constraints and violation aggregation
    - manager      -> get / get_for_environment / get_validated / validate_all
    - integrations -> FastAPI registration glue
"""

__version__ = "0.1.0"

from configplus.core.exceptions import (  # noqa: E402
    ConfigPlusError,
    ConfigurationBindingError,
    ConfigurationError,
    ConfigurationSourceError,
    ConfigurationValidationError,
    NotInitializedError,
)
from configplus.manager import (  # noqa: E402
    ConfigManager,
    get,
    get_for_environment,
    get_validated,
    initialize,
    reset_default_manager,
    validate_all,
)
from configplus.models import (  # noqa: E402
    ConfigurationOptions,
    ConfigurationResult,
    ValidationFailure,
)
from configplus.sources import ConfigurationSection, ConfigurationSource  # noqa: E402

__all__ = [
    "__version__",
    "ConfigManager",
    "ConfigPlusError",
    "ConfigurationBindingError",
    "ConfigurationError",
    "ConfigurationOptions",
    "ConfigurationResult",
    "ConfigurationSection",
    "ConfigurationSource",
    "ConfigurationSourceError",
    "ConfigurationValidationError",
    "NotInitializedError",
    "ValidationFailure",
    "get",
    "get_for_environment",
    "get_validated",
    "initialize",
    "reset_default_manager",
    "validate_all",
]
