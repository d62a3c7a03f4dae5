import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from portfolio_tracker.core.config import settings

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s] — %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# third-party loggers and the level they run at
LIBRARY_LEVELS = {
    "sqlalchemy.engine": settings.SQL_LOG_LEVEL,
    "uvicorn.access": settings.UVICORN_LOG_LEVEL,
    "yfinance": "WARNING",
    "celery": settings.LOG_LEVEL,
}


def _file_handler(formatter: logging.Formatter) -> RotatingFileHandler:
    log_dir = Path(settings.LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_dir / "portfolio_tracker.log",
        maxBytes=settings.LOG_FILE_MAX_BYTES,
        backupCount=settings.LOG_FILE_BACKUPS,
        encoding="utf-8",
    )
    handler.setFormatter(formatter)
    return handler


def setup_logging(name: str = "portfolio_tracker") -> logging.Logger:
    """Configure the package logger once; repeated calls return it unchanged."""
    log = logging.getLogger(name)
    if log.handlers:
        return log

    formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)
    log.setLevel(settings.LOG_LEVEL)

    stream = logging.StreamHandler(sys.stdout)
    stream.setFormatter(formatter)
    log.addHandler(stream)
    if settings.LOG_TO_FILE:
        log.addHandler(_file_handler(formatter))
    log.propagate = False

    for library, level in LIBRARY_LEVELS.items():
        logging.getLogger(library).setLevel(level)
    return log


logger = setup_logging()
