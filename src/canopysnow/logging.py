"""
Structured logging configuration for canopysnow.

Provides:
- CanopySnowLogger: Structured logger with context binding
- get_logger: Get a logger for a specific component
- configure_logging: Configure logging output format

Events are built by structlog and handed to standard library loggers below
``canopysnow``, so handlers attached there (files, consoles, pytest's
caplog) receive one rendered document per event.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, Dict, Optional

import structlog


def _processors(format: str) -> list:
    if format == "json":
        return [
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ]
    return [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="%H:%M:%S"),
        structlog.dev.ConsoleRenderer(colors=False),
    ]


def _configure_structlog(format: str) -> None:
    # loggers are created at import time, so resolve the configuration per call
    structlog.configure(
        processors=_processors(format),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


class CanopySnowLogger:
    """
    Structured logger for solver and driver events.

    Example:
        log = CanopySnowLogger("solver")
        log = log.bind(unit=12)

        log.debug("converged", iterations=3, residual=1e-9)
        log.error("convergence_failure", iterations=50)
    """

    def __init__(
        self,
        component: str,
        context: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize the logger.

        Args:
            component: Component name (e.g., "solver", "loop")
            context: Initial context bindings
        """
        self._component = component
        self._context = context or {}
        self._logger = structlog.get_logger(
            f"canopysnow.{component}", component=component, **self._context
        )

    def bind(self, **kwargs: Any) -> "CanopySnowLogger":
        """
        Create a new logger with additional context bindings.

        Args:
            **kwargs: Key-value pairs to bind to the logger

        Returns:
            New CanopySnowLogger with bound context
        """
        return CanopySnowLogger(self._component, {**self._context, **kwargs})

    def debug(self, event: str, **kwargs: Any) -> None:
        """Log debug message."""
        self._logger.debug(event, **kwargs)

    def info(self, event: str, **kwargs: Any) -> None:
        """Log info message."""
        self._logger.info(event, **kwargs)

    def warning(self, event: str, **kwargs: Any) -> None:
        """Log warning message."""
        self._logger.warning(event, **kwargs)

    def error(self, event: str, **kwargs: Any) -> None:
        """Log error message."""
        self._logger.error(event, **kwargs)


def get_logger(component: str) -> CanopySnowLogger:
    """
    Get a logger for a specific component.

    Args:
        component: Component name (e.g., "solver", "loop", "config")

    Returns:
        CanopySnowLogger instance
    """
    return CanopySnowLogger(component)


def configure_logging(
    level: str = "INFO",
    format: str = "json",
    output: str = "stderr",
) -> None:
    """
    Configure logging output.

    Args:
        level: Log level ("DEBUG", "INFO", "WARNING", "ERROR")
        format: Output format ("json", "console")
        output: Output destination ("stderr", "stdout", or file path)

    Example:
        # Solver diagnostics while debugging a run
        configure_logging(level="DEBUG", format="console")
    """
    level_num = getattr(logging, level.upper(), logging.INFO)

    if output == "stderr":
        handler = logging.StreamHandler(sys.stderr)
    elif output == "stdout":
        handler = logging.StreamHandler(sys.stdout)
    else:
        handler = logging.FileHandler(output)
    # structlog renders the message, stdlib only writes it
    handler.setFormatter(logging.Formatter("%(message)s"))

    package_logger = logging.getLogger("canopysnow")
    package_logger.setLevel(level_num)
    package_logger.handlers.clear()
    package_logger.addHandler(handler)

    _configure_structlog(format)


# A host application that configured structlog itself keeps its pipeline
if not structlog.is_configured():
    _configure_structlog("json")
