"""
FILE DESCRIPTION: Logging foundation shared by every crawler component.
KEY FUNCTIONS/CLASSES: CompanyFormatter, setup_logger, CrawlerLogger, parse_log_level

The logger is built once by the entry point and handed to each component
at construction time. Nothing in this module keeps a process-wide logger.
"""

import logging
import sys
from datetime import datetime, timezone

LOG_LEVELS = {
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}

THIRD_PARTY_LOGGERS = ("urllib3", "requests")


class CompanyFormatter(logging.Formatter):
    """
    FLOW: Receives a log record -> Extracts timestamp -> Formats according to company standard
    (e.g., [ Tue Jan 06 05:32:41 AM UTC 2026 ]) -> Prepends level and context -> Returns final string.
    """
    def format(self, record):
        dt = datetime.fromtimestamp(record.created, timezone.utc)
        timestamp = dt.strftime("%a %b %d %I:%M:%S %p UTC %Y")
        context = getattr(record, 'context', 'root')
        message = f"[ {timestamp} ] : {record.levelname} : {context} : {record.getMessage()}"
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return message


def parse_log_level(name: str) -> int:
    """Map a CLI level name (error, warn, info, debug) to a logging level."""
    try:
        return LOG_LEVELS[(name or "").strip().lower()]
    except KeyError:
        raise ValueError(f"Invalid log level: {name!r} (expected one of {', '.join(LOG_LEVELS)})")


def setup_logger(name="site_generator", log_file=None, level=logging.INFO, stream=None):
    """
    FLOW: Initializes/Retrieves logger -> Drops handlers left by an earlier setup ->
    Attaches Console and optional File handlers with CompanyFormatter.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = CompanyFormatter()

    console_handler = logging.StreamHandler(stream or sys.stderr)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    for third_party in THIRD_PARTY_LOGGERS:
        logging.getLogger(third_party).setLevel(logging.WARNING)

    return logger


class CrawlerLogger(logging.LoggerAdapter):
    """
    Logger handed explicitly to the fetcher, pool, crawler and writer.
    Every record carries a `context` (worker name or component) for CompanyFormatter.
    """

    def __init__(self, logger: logging.Logger, context: str = "root"):
        super().__init__(logger, {"context": context})

    def process(self, msg, kwargs):
        extra = dict(self.extra)
        extra.update(kwargs.get("extra") or {})
        kwargs["extra"] = extra
        return msg, kwargs

    @property
    def context(self) -> str:
        return self.extra["context"]

    def with_context(self, context: str) -> "CrawlerLogger":
        return CrawlerLogger(self.logger, context)

    def warn(self, msg, *args, **kwargs):
        self.warning(msg, *args, **kwargs)

    def fatal(self, msg, *args, **kwargs):
        """Log at CRITICAL, then terminate the process with exit status 1."""
        self.critical(msg, *args, **kwargs)
        raise SystemExit(1)


def build_logger(level_name="info", log_file=None, name="site_generator", stream=None) -> CrawlerLogger:
    """Construct the process logger. Raises ValueError for an unknown level name."""
    level = parse_log_level(level_name)
    return CrawlerLogger(setup_logger(name, log_file=log_file, level=level, stream=stream))
