"""Logging utilities."""

from .utils import configure_logging, redact, setup_file_logger

__all__ = [
    "configure_logging",
    "redact",
    "setup_file_logger",
]
