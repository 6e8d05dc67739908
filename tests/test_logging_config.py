"""
Unit Tests for Logging Setup
============================
"""

import logging

import pytest

from catcards.utils import get_logger, setup_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestSetupLogging:
    """Test handler wiring."""

    def test_level_applied(self):
        """Test the root level follows the argument."""
        setup_logging(level="debug")
        assert logging.getLogger().level == logging.DEBUG

    def test_unknown_level_falls_back_to_info(self):
        setup_logging(level="chatty")
        assert logging.getLogger().level == logging.INFO

    def test_log_file_receives_records(self, tmp_path):
        """Test records reach the optional log file."""
        path = tmp_path / "logs" / "render.log"
        setup_logging(level="INFO", log_file=path)

        get_logger("catcards.test").info("Rendered card 42")
        for handler in logging.getLogger().handlers:
            handler.flush()

        content = path.read_text()
        assert "Rendered card 42" in content
        assert "| INFO     | catcards.test |" in content

    def test_noisy_loggers_quietened_in_debug(self):
        """Test Pillow debug chatter stays hidden."""
        setup_logging(level="DEBUG")
        assert logging.getLogger("PIL").level == logging.INFO
