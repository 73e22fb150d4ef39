import logging
import sys
from functools import lru_cache

from pydantic import BaseModel
from rich.logging import RichHandler

from capacity_forecast.config import EngineSettings, get_settings

DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"
LOGGER_FORMAT = "%(name)s | %(levelname)s | %(asctime)s | %(funcName)s:%(lineno)d | %(message)s"

PACKAGE_LOGGER = "capacity_forecast"


class LoggerConfig(BaseModel):
    handlers: list
    format: str
    date_format: str | None = None
    level: str | int = logging.INFO


@lru_cache
def get_logger_config(env: str = "dev", logging_level: str | int = logging.INFO) -> LoggerConfig:
    """Rich console output outside production, plain stdout lines in production."""
    if env != "prod":
        return LoggerConfig(
            handlers=[RichHandler(rich_tracebacks=True, show_time=False)],
            format=LOGGER_FORMAT,
            date_format=DATE_FORMAT,
            level=logging_level,
        )

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(logging.Formatter(LOGGER_FORMAT, datefmt=DATE_FORMAT))
    return LoggerConfig(handlers=[stdout_handler], format=LOGGER_FORMAT, date_format=DATE_FORMAT, level=logging_level)


def setup_logging(settings: EngineSettings | None = None) -> logging.Logger:
    """
    Attach handlers to the package logger for host applications that want engine logs.

    The library never configures logging on import; calling this is opt-in. Calling it again
    replaces the handlers instead of stacking them.
    """
    settings = settings or get_settings()
    logger_config = get_logger_config(env=settings.ENV, logging_level=settings.LOG_LEVEL.upper())

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.handlers = []
    for handler in logger_config.handlers:
        if not isinstance(handler, RichHandler):
            handler.setFormatter(logging.Formatter(logger_config.format, datefmt=logger_config.date_format))
        logger.addHandler(handler)
    logger.setLevel(logger_config.level)
    logger.propagate = False
    return logger
