"""
configplus - Structured Logging Module

Patterns Applied:
- One-time configure_logging() at startup
- structlog BoundLogger with JSON output
- Per-section context via contextvars: resolver and binder events carry
  the section being bound without passing it down explicitly

Anti-Patterns Avoided:
- structlog.configure() called per get_logger() - PREVENTED via _configured flag
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog
from structlog.typing import EventDict

# Module-level flag for one-time configuration
_configured: bool = False

LIBRARY_NAME = "configplus"


def add_library_info(
    logger: logging.Logger,  # noqa: ARG001 - Required by structlog interface
    method_name: str,  # noqa: ARG001 - Required by structlog interface
    event_dict: EventDict,
) -> EventDict:
    """Tag every log entry with the emitting library."""
    event_dict["library"] = LIBRARY_NAME
    return event_dict


def configure_logging(
    log_level: str = "INFO",
    json_output: bool = True,
) -> None:
    """Configure structlog for the host application.

    Call exactly ONCE at application startup. Later calls are no-ops until
    reset_logging() is called.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: Whether to use JSON renderer (True for production)
    """
    global _configured

    if _configured:
        return

    level = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )

    renderer: Any
    if json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            add_library_info,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    _configured = True


def get_logger(name: str) -> Any:
    """structlog logger; never configures structlog on its own."""
    return structlog.get_logger(name)


def reset_logging() -> None:
    """Reset logging configuration for testing."""
    global _configured
    _configured = False
    structlog.reset_defaults()


@contextmanager
def section_log_context(section_path: str, target_type: str) -> Iterator[None]:
    """Bind the section being resolved to every log event inside the block.

    Args:
        section_path: Section requested by the caller
        target_type: Name of the model the section is bound onto
    """
    with structlog.contextvars.bound_contextvars(
        section_path=section_path,
        target_type=target_type,
    ):
        yield
