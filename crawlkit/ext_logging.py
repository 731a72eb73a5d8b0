import logging
import os
import sys
from contextvars import ContextVar
from logging.handlers import RotatingFileHandler
from typing import Optional

from .configs import CrawlkitConfig, LoggingConfig

request_id_var: ContextVar[Optional[int]] = ContextVar("request_id", default=None)


def init_logging(config: LoggingConfig | None = None) -> None:
    config = config or CrawlkitConfig()

    log_handlers: list[logging.Handler] = []
    log_file = config.LOG_FILE
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        log_handlers.append(
            RotatingFileHandler(
                filename=log_file,
                maxBytes=config.LOG_FILE_MAX_SIZE * 1024 * 1024,
                backupCount=config.LOG_FILE_BACKUP_COUNT,
            )
        )

    # Always add StreamHandler to log to console
    sh = logging.StreamHandler(sys.stdout)
    log_handlers.append(sh)

    for handler in log_handlers:
        handler.addFilter(RequestIdFilter())

    logging.basicConfig(
        level="DEBUG" if config.DEBUG else config.LOG_LEVEL,
        format=config.LOG_FORMAT,
        datefmt=config.LOG_DATEFORMAT,
        handlers=log_handlers,
        force=True,
    )

    apply_request_id_formatter(config)

    # httpx logs every request at INFO, the crawler already does
    logging.getLogger("httpx").setLevel(logging.WARNING)
    log_tz = config.LOG_TZ
    if log_tz:
        from datetime import datetime

        import pytz

        timezone = pytz.timezone(log_tz)

        def time_converter(seconds):
            return datetime.fromtimestamp(seconds, tz=timezone).timetuple()

        for handler in logging.root.handlers:
            if handler.formatter:
                handler.formatter.converter = time_converter


class RequestIdFilter(logging.Filter):
    # Exposes the id of the request being dispatched in the current task.
    # Records emitted outside of a dispatch get an empty id.
    def filter(self, record):
        request_id = request_id_var.get()
        record.request_id = "" if request_id is None else request_id
        return True


class RequestIdFormatter(logging.Formatter):
    def format(self, record):
        if not hasattr(record, "request_id"):
            record.request_id = ""
        return super().format(record)


def apply_request_id_formatter(config: LoggingConfig):
    for handler in logging.root.handlers:
        if handler.formatter:
            handler.formatter = RequestIdFormatter(config.LOG_FORMAT, config.LOG_DATEFORMAT)
