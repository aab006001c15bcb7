# src/utils/logging.py

import logging
import sys


class ColoredFormatter(logging.Formatter):
    """Custom formatter with colors for different log levels."""

    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
    }
    RESET = '\033[0m'

    def format(self, record):
        # Color the level name on a copy so other handlers see the plain name
        record = logging.makeLogRecord(record.__dict__)
        color = self.COLORS.get(record.levelname, self.RESET)
        record.levelname = f"{color}{record.levelname}{self.RESET}"

        return super().format(record)


def level_from_name(name: str, default: int = logging.INFO) -> int:
    """Translate a LOG_LEVEL string ("debug", "INFO", ...) into a logging level."""
    level = logging.getLevelName(str(name).upper())
    return level if isinstance(level, int) else default


def setup_global_logging(level: int = logging.INFO):
    """
    Configure global logging for the entire application.
    Call this once at application startup.

    Args:
        level: Global logging level (default: INFO)
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    if root_logger.handlers:
        root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(ColoredFormatter(
        fmt='%(levelname)s:    %(filename)s:%(lineno)d - %(message)s'
    ))
    root_logger.addHandler(handler)

    # matplotlib's font manager is chatty at DEBUG
    logging.getLogger('matplotlib').setLevel(max(level, logging.WARNING))
