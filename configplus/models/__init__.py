"""Value objects passed in and out of the binding pipeline."""

from configplus.models.options import ConfigurationOptions
from configplus.models.result import ConfigurationResult, ValidationFailure

__all__ = [
    "ConfigurationOptions",
    "ConfigurationResult",
    "ValidationFailure",
]
