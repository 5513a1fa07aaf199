"""
Tests for logger setup.
"""

from __future__ import annotations

import logging

from rich.logging import RichHandler

from utils import logger as logger_module
from utils import setup_logger


def test_rich_console_handler_is_added_once():
    logger = setup_logger("rednote_evidence.test_once", level=logging.DEBUG)
    again = setup_logger("rednote_evidence.test_once", level=logging.DEBUG)

    assert again is logger
    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0], RichHandler)
    assert logger.level == logging.DEBUG


def test_plain_handler_and_log_file(tmp_path, monkeypatch):
    monkeypatch.setattr(logger_module, "LOG_DIR", tmp_path / "logs")

    logger = setup_logger("rednote_evidence.test_file", use_rich=False, log_file="run.log")
    logger.info("[Batch] Done: 3 succeeded, 1 failed")
    for handler in logger.handlers:
        handler.flush()

    assert not any(isinstance(handler, RichHandler) for handler in logger.handlers)
    content = (tmp_path / "logs" / "run.log").read_text(encoding="utf-8")
    assert "rednote_evidence.test_file | INFO | [Batch] Done: 3 succeeded, 1 failed" in content

    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
