"""
Tests for logging setup.
"""

import logging

import pytest

from pineforge.core.observability.logging_config import (
    level_from_flags,
    parse_level,
    setup_logging,
)


@pytest.fixture(autouse=True)
def _restore_root():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for h in root.handlers:
        if h not in handlers:
            h.close()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestLevels:
    def test_flag_precedence(self, monkeypatch):
        monkeypatch.setenv("PINEFORGE_LOG_LEVEL", "INFO")
        assert level_from_flags(debug=True, quiet=True) == "DEBUG"
        assert level_from_flags(verbose=True) == "INFO"
        assert level_from_flags(quiet=True) == "ERROR"
        assert level_from_flags() == "INFO"

    def test_default_warning(self, monkeypatch):
        monkeypatch.delenv("PINEFORGE_LOG_LEVEL", raising=False)
        assert level_from_flags() == "WARNING"

    def test_parse_level(self):
        assert parse_level("debug") == logging.DEBUG
        assert parse_level("nonsense") == logging.WARNING
        assert parse_level(None) == logging.WARNING


class TestSetup:
    def test_console_only(self):
        setup_logging("INFO")
        root = logging.getLogger()
        assert root.level == logging.INFO
        assert len(root.handlers) == 1
        assert logging.getLogger("werkzeug").level == logging.WARNING

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "pineforge.log"
        setup_logging("WARNING", log_file=str(log_file), log_file_level="DEBUG")
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        logging.getLogger("pineforge.test").debug("to the file")
        for h in root.handlers:
            h.flush()
        assert "to the file" in log_file.read_text()
