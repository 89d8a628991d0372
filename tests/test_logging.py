"""Tests for eunoia.logging_config."""

from __future__ import annotations

import logging

import pytest
from rich.logging import RichHandler

from eunoia.config import AppConfig
from eunoia.logging_config import get_logger, setup_logging, setup_logging_from_config


@pytest.fixture(autouse=True)
def restore_package_logger():
    package_logger = logging.getLogger("eunoia")
    yield
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.setLevel(logging.NOTSET)
    package_logger.propagate = True


class TestSetupLogging:
    def test_console_handler(self):
        package_logger = setup_logging(level="warning")
        assert package_logger.level == logging.WARNING
        assert [type(h) for h in package_logger.handlers] == [RichHandler]
        assert logging.getLogger("google.api_core").level == logging.WARNING

    def test_repeat_calls_replace_handlers(self):
        setup_logging()
        setup_logging()
        assert len(logging.getLogger("eunoia").handlers) == 1

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "logs" / "eunoia.log"
        setup_logging(level="DEBUG", log_file=log_file)

        get_logger("services.tasks").info("Added task")
        for handler in logging.getLogger("eunoia").handlers:
            handler.flush()

        content = log_file.read_text(encoding="utf-8")
        assert "Added task" in content
        assert "eunoia.services.tasks" in content

    def test_debug_flag_wins(self):
        package_logger = setup_logging_from_config(AppConfig(debug=True, log_level="ERROR"))
        assert package_logger.level == logging.DEBUG


class TestGetLogger:
    def test_prefixes_package(self):
        assert get_logger("flows").name == "eunoia.flows"
        assert get_logger("eunoia.ai.flows").name == "eunoia.ai.flows"
