"""
Utility modules for the line review auditor.
"""

from auditor.utils.logging import (
    ContextLoggerAdapter,
    JSONFormatter,
    get_logger,
    log_error_with_context,
    log_transition,
    setup_logging,
)

__all__ = [
    "ContextLoggerAdapter",
    "JSONFormatter",
    "get_logger",
    "log_error_with_context",
    "log_transition",
    "setup_logging",
]
