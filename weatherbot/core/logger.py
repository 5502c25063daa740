"""Logger configuration for the weather bot.

httpx, openai and langchain log through the standard library; their records
are routed into loguru so every sink sees one stream.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message} | {extra}"

# Third-party loggers that are noisy below WARNING.
LIBRARY_LOGGERS = ("httpx", "httpcore", "openai", "langchain")


class InterceptHandler(logging.Handler):
    """Forward standard library log records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).bind(library=record.name).log(
            level, record.getMessage()
        )


def setup_logger(
    level: str = "INFO",
    log_file: str | None = None,
    rotation: str = "10 MB",
    retention: str = "7 days",
    serialize: bool = False,
    library_level: str = "WARNING",
) -> None:
    """Configure loguru sinks and capture standard library logging.

    Keyword context passed to ``logger.info(...)`` lands in ``record["extra"]``;
    the file sink prints it and ``serialize=True`` writes JSON lines instead.

    Args:
        level: Level for weather bot logs and both sinks
        log_file: Optional rotating log file; console only when None
        rotation: Log rotation size or interval (e.g., "10 MB", "1 day")
        retention: Log retention period (e.g., "7 days")
        serialize: Write the file sink as JSON lines
        library_level: Minimum level forwarded from LIBRARY_LOGGERS
    """
    logger.remove()
    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=level, colorize=True)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_path,
            format=FILE_FORMAT,
            level=level,
            rotation=rotation,
            retention=retention,
            compression="zip",
            serialize=serialize,
            backtrace=True,
            diagnose=False,
        )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in LIBRARY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)

    logger.info("Logging configured", level=level, log_file=log_file, library_level=library_level)
