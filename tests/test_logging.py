from __future__ import annotations

from logging.handlers import RotatingFileHandler
from pathlib import Path

from promptbind.logging import redact, setup_file_logger


def test_redact_masks_api_keys(monkeypatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-secret-value")

    cleaned = redact("token sk-secret-value leaked")

    assert cleaned == "token <OPENAI_API_KEY> leaked"
    assert redact("") == ""


def test_setup_file_logger_is_idempotent(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "promptbind.log"
    name = "promptbind.test_logging"

    logger = setup_file_logger(log_file, name=name)
    setup_file_logger(log_file, name=name)
    logger.info("bound")
    for handler in logger.handlers:
        handler.flush()

    handlers = [
        handler
        for handler in logger.handlers
        if isinstance(handler, RotatingFileHandler)
    ]
    assert len(handlers) == 1
    assert "bound" in log_file.read_text(encoding="utf-8")
    for handler in handlers:
        logger.removeHandler(handler)
        handler.close()
