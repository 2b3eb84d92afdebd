"""Structlog-based logging configuration for the feature resolver.

Log output goes to stderr so that command output on stdout (compiled
defaults, resolved features) stays machine readable. Output is
human-readable by default; JSON can be requested through the configuration
or the FEATURERESOLVER_JSON_LOGS environment variable.
"""

import logging
import os
import sys
from collections.abc import Callable
from importlib.metadata import PackageNotFoundError, version
from typing import Any

import structlog

from featureresolver.config.models import ResolverConfig


def get_package_version() -> str:
    """Get the installed package version for log context."""
    try:
        return version("feature-resolver")
    except PackageNotFoundError:
        return "unknown"


def _add_static_context(extra_fields: dict[str, str]) -> Callable:
    """Processor to add static context fields to all log entries."""

    def processor(
        logger: structlog.BoundLogger, method_name: str, event_dict: dict[str, Any]
    ) -> dict[str, Any]:
        event_dict.update(extra_fields)
        return event_dict

    return processor


def _use_json(config: ResolverConfig) -> bool:
    """Decide between JSON and human-readable output."""
    if config.logging.json_logs is not None:
        return config.logging.json_logs
    return os.environ.get("FEATURERESOLVER_JSON_LOGS", "false").lower() == "true"


def _configure_processors(config: ResolverConfig) -> list:
    """Configure structlog processors from the logging settings."""
    extra_fields = {
        "version": get_package_version(),
        **config.logging.extra_fields,  # Allow config to override/add fields
    }

    processors = [
        structlog.contextvars.merge_contextvars,
        _add_static_context(extra_fields),
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="ISO"),
    ]

    if config.logging.include_caller:
        processors.append(structlog.processors.CallsiteParameterAdder())

    if _use_json(config):
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    return processors


def _configure_handlers(config: ResolverConfig) -> None:
    """Route stdlib logging to stderr at the configured level."""
    root_logger = logging.getLogger()
    log_level = getattr(logging, config.logging.level.upper(), logging.WARNING)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    root_logger.setLevel(log_level)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(log_level)
    stderr_handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(stderr_handler)


def configure_structlog(config: ResolverConfig) -> None:
    """Configure structlog-based logging system.

    Args:
        config: The ResolverConfig instance containing logging settings.
    """
    processors = _configure_processors(config)

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, config.logging.level.upper(), logging.WARNING)
        ),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    _configure_handlers(config)

    logger = structlog.get_logger(__name__)
    logger.debug(
        "Structured logging configured",
        version=get_package_version(),
        log_level=config.logging.level,
        json_output=_use_json(config),
    )

