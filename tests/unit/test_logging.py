"""
Unit tests for logging setup
"""

import logging
import pytest
from core.logging import QUIET_LOGGERS, setup_logging


@pytest.fixture
def root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_level_and_quiet_loggers(root_logger):
    setup_logging(level="debug")

    assert root_logger.level == logging.DEBUG
    for name in QUIET_LOGGERS:
        assert logging.getLogger(name).level == logging.WARNING


def test_log_file_written(root_logger, tmp_path):
    log_file = tmp_path / "logs" / "etl.log"

    setup_logging(level="INFO", log_file=str(log_file))
    logging.getLogger("ingestion.test").info("job finished")
    for handler in root_logger.handlers:
        handler.flush()

    assert "| INFO     | ingestion.test | job finished" in log_file.read_text()


def test_repeat_call_replaces_handlers(root_logger, tmp_path):
    setup_logging(log_file=str(tmp_path / "first.log"))
    setup_logging(log_file=str(tmp_path / "second.log"))

    files = [h.baseFilename for h in root_logger.handlers if isinstance(h, logging.FileHandler)]
    assert files == [str(tmp_path / "second.log")]
