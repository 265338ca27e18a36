import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Optional

from minirelay.settings import LOG_LEVEL, ENABLE_CONSOLE_LOG, ENABLE_FILE_LOG

Logger = logging.Logger


class SafeStreamHandler(logging.StreamHandler):
    """
    A StreamHandler that suppresses BlockingIOError during stdout congestion.

    The relay loop never waits on anything but its sockets, so a congested
    stdout must not stall it: the record is dropped instead.

    Example:
        logger = logging.getLogger("relay")
        handler = SafeStreamHandler(sys.stdout)
        logger.addHandler(handler)
    """
    def handleError(self, record):
        # StreamHandler.emit routes write failures here.
        if isinstance(sys.exc_info()[1], BlockingIOError):
            return
        super().handleError(record)


# Log formatting style
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FORMAT_CONSOLE = "\033[92m%(asctime)s\033[0m - \033[94m%(name)s\033[0m - %(levelname)s - %(message)s"

DEFAULT_MAX_FILE_SIZE = 1_000_000
DEFAULT_BACKUP_COUNT = 3

# Convert string level from settings to actual logging constant
DEFAULT_LEVEL = getattr(logging, LOG_LEVEL.upper(), logging.DEBUG)


def _console_handler() -> logging.Handler:
    handler = SafeStreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT_CONSOLE))
    return handler


def _file_handler(
        name: str,
        directory: Optional[str] = None,
        max_bytes: int = DEFAULT_MAX_FILE_SIZE,
        backup_count: int = DEFAULT_BACKUP_COUNT,
        ) -> logging.Handler:
    # Replace dots in logger name to create a safe filename
    # e.g. "relay.main" becomes "relay_main.log"
    safe_name = name.replace('.', '_')
    path = Path(directory) if directory else Path()
    path.mkdir(parents=True, exist_ok=True)

    handler = RotatingFileHandler(
        path / f"{safe_name}.log", maxBytes=max_bytes, backupCount=backup_count
    )
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def get_logger(name: str) -> Logger:
    """
    Get or create the named logger with the handlers selected by the
    environment settings (console on stdout, rotating file in the cwd).
    """
    logger = logging.getLogger(name)
    logger.setLevel(DEFAULT_LEVEL)

    # Prevent adding duplicate handlers if logger was already set up
    if not logger.handlers:
        if ENABLE_CONSOLE_LOG:
            logger.addHandler(_console_handler())
        if ENABLE_FILE_LOG:
            logger.addHandler(_file_handler(name))

    return logger


def configure_logger(logger: Logger, logger_cfg: dict[str, Any]) -> Logger:
    """
    Re-apply the `logger` section of a server config onto an existing logger.

    Recognised keys (all optional, environment defaults otherwise):
      - log_level: "DEBUG" | "INFO" | "WARNING" | "ERROR" | "CRITICAL"
      - enable_console_log: bool
      - enable_file_log: bool
      - log_file_path: directory for the rotating file
      - max_file_size: bytes before rotation
      - backup_count: rotated files to keep

    An empty section leaves the logger untouched.
    """
    if not logger_cfg:
        return logger

    level = logger_cfg.get("log_level")
    if isinstance(level, str):
        logger.setLevel(getattr(logging, level.upper(), DEFAULT_LEVEL))

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if logger_cfg.get("enable_console_log", ENABLE_CONSOLE_LOG):
        logger.addHandler(_console_handler())

    if logger_cfg.get("enable_file_log", ENABLE_FILE_LOG):
        logger.addHandler(_file_handler(
            logger.name,
            directory=logger_cfg.get("log_file_path"),
            max_bytes=logger_cfg.get("max_file_size", DEFAULT_MAX_FILE_SIZE),
            backup_count=logger_cfg.get("backup_count", DEFAULT_BACKUP_COUNT),
        ))

    return logger
