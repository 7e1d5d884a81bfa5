"""
Tests for logging configuration.
"""

import logging

import pytest

from craft.core.observability.logging_config import resolve_level, setup_logging


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


class TestResolveLevel:
    def test_default(self):
        assert resolve_level() == "WARNING"

    def test_env(self):
        assert resolve_level(env_level="INFO") == "INFO"

    def test_debug_beats_everything(self):
        assert resolve_level(debug=True, verbose=True, quiet=True, env_level="ERROR") == "DEBUG"

    def test_verbose_beats_quiet(self):
        assert resolve_level(verbose=True, quiet=True) == "INFO"

    def test_quiet_beats_env(self):
        assert resolve_level(quiet=True, env_level="DEBUG") == "ERROR"


class TestSetupLogging:
    def test_console_level(self):
        setup_logging("INFO")
        root = logging.getLogger()
        assert root.level == logging.INFO
        assert len(root.handlers) == 1

    def test_unknown_level_falls_back(self):
        setup_logging("LOUD")
        assert logging.getLogger().level == logging.WARNING

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "craft.log"
        setup_logging("WARNING", log_file=str(log_file), log_file_level="DEBUG")

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert any(isinstance(h, logging.FileHandler) for h in root.handlers)

        logging.getLogger("craft.test").debug("written to file only")
        for handler in root.handlers:
            handler.flush()
        assert "written to file only" in log_file.read_text()

    def test_file_level_defaults_to_console(self, tmp_path):
        setup_logging("ERROR", log_file=str(tmp_path / "craft.log"))
        assert logging.getLogger().level == logging.ERROR
