"""Logging setup: console, rotating main log, and per-channel upstream logs."""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUP_COUNT = 5

# Upstream traffic gets its own files at DEBUG regardless of the root level
UPSTREAM_CHANNELS = {
    "stream_calls.log": ("tools.chat_stream",),
    "task_calls.log": ("tools.task_client", "tools.cover_client", "tools.tts_client"),
}

# Third-party loggers that are noisy at INFO (one line per HTTP request)
QUIET_LOGGERS = ("httpx", "httpcore")


def _rotating_handler(path: Path, level: int, formatter: logging.Formatter) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        str(path),
        maxBytes=MAX_LOG_BYTES,
        backupCount=LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(
    level: int = logging.INFO,
    log_dir: Optional[str | Path] = None,
    console_enabled: bool = True,
) -> None:
    """Configure logging for the CLI and library code.

    Safe to call more than once; handlers installed by a previous call
    are replaced.

    Args:
        level: Root logging level.
        log_dir: Directory for log files. Defaults to ./data/logs.
        console_enabled: Also log to stderr.
    """
    log_dir = Path(log_dir or "./data/logs")
    log_dir.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    if console_enabled:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    root_logger.addHandler(_rotating_handler(log_dir / "novelgen.log", level, formatter))

    for filename, logger_names in UPSTREAM_CHANNELS.items():
        handler = _rotating_handler(log_dir / filename, logging.DEBUG, formatter)
        for name in logger_names:
            channel = logging.getLogger(name)
            channel.handlers.clear()
            channel.setLevel(logging.DEBUG)
            channel.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    logging.getLogger(__name__).debug("Logging initialized: level=%s, dir=%s", level, log_dir)
