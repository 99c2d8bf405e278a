"""
Structured logging for the GBFS validator.

Usage:
    from gbfs_validator.framework.logging import configure_logging, get_logger, log_step

    configure_logging()
    log = get_logger(__name__)

    with log_step("validate.documents", documents=8):
        ...
"""

from gbfs_validator.framework.logging.config import configure_logging, is_configured
from gbfs_validator.framework.logging.context import (
    LogContext,
    bind_context,
    clear_context,
    get_context,
    get_logger,
    merge_context,
    new_run_id,
    scoped_context,
    set_context,
)
from gbfs_validator.framework.logging.timing import StepTimer, log_step

__all__ = [
    "LogContext",
    "StepTimer",
    "bind_context",
    "clear_context",
    "configure_logging",
    "get_context",
    "get_logger",
    "is_configured",
    "log_step",
    "merge_context",
    "new_run_id",
    "scoped_context",
    "set_context",
]
