# Copyright (c) Meta Platforms, Inc. and affiliates.
# Modifications copyright (c) 2025 Logan Martel.
# Adapted from https://github.com/meta-pytorch/KernelAgent (Apache-2.0).

"""Logging helpers (secret redaction, rotating log files)."""

from __future__ import annotations

import logging
import os

from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

_SECRET_ENV_VARS = (
    "OPENAI_API_KEY",
    "AZURE_OPENAI_API_KEY",
    "ANTHROPIC_API_KEY",
)
_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def redact(text: str) -> str:
    """Replace API keys found in the environment with a placeholder."""

    if not text:
        return ""
    cleaned = text
    for env_var in _SECRET_ENV_VARS:
        secret = os.environ.get(env_var)
        if secret and secret in cleaned:
            cleaned = cleaned.replace(secret, f"<{env_var}>")
    return cleaned


def setup_file_logger(
    log_file: Path, name: str = "promptbind", level: int = logging.INFO
) -> logging.Logger:
    """Attach a rotating file handler to ``name`` (idempotent per file)."""

    log_file.parent.mkdir(parents=True, exist_ok=True)
    logger = logging.getLogger(name)
    logger.setLevel(level)
    marker = str(log_file.resolve())
    if not any(
        isinstance(handler, RotatingFileHandler)
        and getattr(handler, "_promptbind_tag", None) == marker
        for handler in logger.handlers
    ):
        handler = RotatingFileHandler(
            log_file, maxBytes=2_000_000, backupCount=3
        )
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        handler._promptbind_tag = marker  # type: ignore[attr-defined]
        logger.addHandler(handler)
    return logger


def configure_logging(
    level: str = "INFO", log_file: Optional[Path] = None
) -> None:
    """Configure console logging once, plus an optional rotating file."""

    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level '{level}'")
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=numeric_level,
            format="%(levelname)s %(name)s: %(message)s",
        )
    logging.getLogger("promptbind").setLevel(numeric_level)
    if log_file is not None:
        setup_file_logger(log_file, level=numeric_level)
