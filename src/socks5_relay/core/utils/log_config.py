"""Logging configuration for the SOCKS5 server.

Logging goes through Loguru. ``configure_logging`` replaces the default
handler with a formatted console sink and, optionally, a rotating log file.
"""

import sys
from pathlib import Path

from loguru import logger

LOG_DIR = Path.home() / ".socks5-relay" / "logs"

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {extra} {message}"


def configure_logging(*, debug: bool = False, log_file: Path | None = None) -> None:
    """Install the console sink and, if ``log_file`` is given, a file sink.

    Args:
        debug: Log DEBUG records to the console as well
        log_file: Path of the rotating log file, its directory is created
    """
    logger.remove()  # Remove default handler
    logger.add(
        sys.stderr,
        format=CONSOLE_FORMAT,
        level="DEBUG" if debug else "INFO",
        backtrace=True,
        diagnose=debug,
    )
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            rotation="10 MB",
            retention="1 week",
            compression="zip",
            format=FILE_FORMAT,
            level="DEBUG",
            backtrace=True,
            enqueue=True,
        )


__all__ = ["LOG_DIR", "configure_logging", "logger"]
