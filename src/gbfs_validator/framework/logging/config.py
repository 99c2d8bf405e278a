"""
structlog setup for the CLI and the API.

Level and format come from the arguments or, when omitted, from
``GBFS_VALIDATOR_LOG_LEVEL`` / ``GBFS_VALIDATOR_LOG_FORMAT`` through
:class:`~gbfs_validator.core.settings.ValidatorSettings`. Output always
goes to stderr: ``gbfs-validator validate --json`` prints the report on
stdout and nothing else.
"""

from __future__ import annotations

import logging
import sys

import structlog
from structlog.types import Processor

from gbfs_validator.framework.logging.context import merge_context

_configured = False

# Third-party loggers that are chatty at INFO
_QUIET = ("httpx", "httpcore")


def _renderer(log_format: str) -> Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(
        colors=sys.stderr.isatty(),
        exception_formatter=structlog.dev.plain_traceback,
    )


def configure_logging(level: str | None = None, format: str | None = None, force: bool = False) -> None:
    """
    Configure structlog over stdlib logging.

    The first call wins; later calls are no-ops unless ``force`` is set.
    """
    global _configured

    if _configured and not force:
        return

    if level is None or format is None:
        from gbfs_validator.core.settings import get_settings

        settings = get_settings()
        level = level or settings.log_level
        format = format or settings.log_format

    numeric_level = getattr(logging, level.upper())

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            merge_context,
            structlog.processors.format_exc_info,
            _renderer(format.lower()),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=numeric_level, force=True)
    logging.getLogger("gbfs_validator").setLevel(numeric_level)
    for name in _QUIET:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    _configured = True


def is_configured() -> bool:
    return _configured
