import logging
from logging.handlers import TimedRotatingFileHandler

import pytest

from sessionstore import logging_config
from sessionstore.logging_config import LocalTimezoneFormatter, get_logger, setup_logging


@pytest.fixture
def fresh_logging(monkeypatch):
    monkeypatch.setattr(logging_config, "_LOGGING_CONFIGURED", False)
    app_logger = logging.getLogger("sessionstore")
    root_logger = logging.getLogger()
    app_before, root_before = list(app_logger.handlers), list(root_logger.handlers)
    app_level, root_level = app_logger.level, root_logger.level
    yield app_logger
    for logger, before, level in ((app_logger, app_before, app_level), (root_logger, root_before, root_level)):
        for handler in list(logger.handlers):
            if handler not in before:
                logger.removeHandler(handler)
                handler.close()
        logger.setLevel(level)


def test_get_logger_nests_under_app_logger():
    assert get_logger().name == "sessionstore"
    assert get_logger("gate").name == "sessionstore.gate"


def test_setup_logging_writes_app_records_to_file(fresh_logging, tmp_path):
    setup_logging(tmp_path)
    setup_logging(tmp_path)

    file_handlers = [h for h in fresh_logging.handlers if isinstance(h, TimedRotatingFileHandler)]
    assert len(file_handlers) == 1

    get_logger("store").warning("store went away")
    file_handlers[0].flush()

    assert "store went away" in (tmp_path / "sessionstore.log").read_text(encoding="utf-8")


def test_setup_logging_without_log_dir_skips_file(fresh_logging):
    setup_logging(None)

    assert not any(isinstance(h, TimedRotatingFileHandler) for h in fresh_logging.handlers)


def test_formatter_uses_configured_timezone():
    formatter = LocalTimezoneFormatter("%(asctime)s", timezone_name="UTC")
    record = logging.LogRecord("sessionstore", logging.INFO, __file__, 1, "x", None, None)
    record.created = 0

    assert formatter.formatTime(record) == "1970-01-01T00:00:00.000+00:00"
