"""Utility functions."""

from memo_triage.utils.logging import (
    document_context,
    get_logger,
    get_request_id,
    log_error,
    set_request_id,
    setup_logging,
)

__all__ = [
    "document_context",
    "setup_logging",
    "get_logger",
    "set_request_id",
    "get_request_id",
    "log_error",
]
