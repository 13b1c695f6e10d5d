import datetime
import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .settings import settings

APP_LOGGER_NAME = "sessionstore"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"

_LOGGING_CONFIGURED = False


def _log_tzinfo(timezone_name: str | None) -> datetime.tzinfo:
    if timezone_name:
        try:
            return ZoneInfo(timezone_name)
        except ZoneInfoNotFoundError:
            pass
    return datetime.datetime.now().astimezone().tzinfo or datetime.timezone.utc


class LocalTimezoneFormatter(logging.Formatter):
    """Renders `asctime` as ISO-8601 in LOG_TIMEZONE (system zone by default)."""

    def __init__(self, *args, timezone_name: str | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.tzinfo = _log_tzinfo(timezone_name)

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        stamp = datetime.datetime.fromtimestamp(record.created, tz=self.tzinfo)
        return stamp.strftime(datefmt) if datefmt else stamp.isoformat(timespec="milliseconds")


def _file_handler(log_dir: Path, formatter: logging.Formatter) -> logging.Handler:
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = TimedRotatingFileHandler(
        log_dir / f"{APP_LOGGER_NAME}.log",
        when="midnight",
        backupCount=settings.log_backup_days,
        encoding="utf-8",
        delay=True,
    )
    handler.setFormatter(formatter)
    return handler


def setup_logging(log_dir: Path | None = Path("logs")) -> None:
    """
    Configure process-wide logging once.

    The `sessionstore` logger tree additionally writes to a file under
    `log_dir` rotated at midnight (skipped when `log_dir` is None). The
    console handler sits on the root logger so uvicorn's records show up too.
    """
    global _LOGGING_CONFIGURED
    if _LOGGING_CONFIGURED:
        return

    level = getattr(logging, str(settings.log_level).upper(), logging.INFO)
    formatter = LocalTimezoneFormatter(LOG_FORMAT, timezone_name=settings.log_timezone)

    app_logger = logging.getLogger(APP_LOGGER_NAME)
    app_logger.setLevel(level)
    if log_dir is not None:
        app_logger.addHandler(_file_handler(log_dir, formatter))

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    if not any(type(h) is logging.StreamHandler for h in root_logger.handlers):
        console = logging.StreamHandler()
        console.setFormatter(formatter)
        root_logger.addHandler(console)

    _LOGGING_CONFIGURED = True


def get_logger(component: str | None = None) -> logging.Logger:
    if not component:
        return logging.getLogger(APP_LOGGER_NAME)
    return logging.getLogger(f"{APP_LOGGER_NAME}.{component}")


logger = get_logger()

__all__ = ["APP_LOGGER_NAME", "LocalTimezoneFormatter", "get_logger", "logger", "setup_logging"]
