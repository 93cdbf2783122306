# logging_config.py
# Version 01.01.00.00 dated 20261019
# Centralized logging configuration for PhotoPicker

import logging
import logging.handlers
import os
import sys
from typing import Optional


class ColoredFormatter(logging.Formatter):
    """
    Colored console formatter for better readability during development.
    Falls back to plain formatting if terminal doesn't support colors.
    """

    # ANSI color codes
    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
        'RESET': '\033[0m'
    }

    def __init__(self, fmt: str, use_colors: bool = True):
        super().__init__(fmt)
        self.use_colors = use_colors and self._supports_color()

    def _supports_color(self) -> bool:
        """Check if terminal supports ANSI colors."""
        try:
            if sys.platform == 'win32':
                return os.getenv('TERM') is not None or 'ANSICON' in os.environ
            return hasattr(sys.stderr, 'isatty') and sys.stderr.isatty()
        except Exception:
            return False

    def format(self, record: logging.LogRecord) -> str:
        # Copy so file handlers sharing the record never see escape codes
        if self.use_colors and record.levelname in self.COLORS:
            record = logging.makeLogRecord(record.__dict__)
            record.levelname = (
                f"{self.COLORS[record.levelname]}{record.levelname}{self.COLORS['RESET']}"
            )
        return super().format(record)


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    console: bool = True,
    max_bytes: int = 10 * 1024 * 1024,  # 10 MB
    backup_count: int = 5,
    use_colors: bool = True
) -> logging.Logger:
    """
    Configure application-wide logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file. If None, uses 'photo_picker.log' in the data directory
        console: Whether to log to console
        max_bytes: Max size of log file before rotation
        backup_count: Number of backup log files to keep
        use_colors: Whether to use colored output in console

    Returns:
        Configured root logger
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Clear existing handlers (in case of reconfiguration)
    root_logger.handlers.clear()

    detailed_format = '%(asctime)s [%(levelname)s] [%(name)s:%(lineno)d] %(message)s'
    simple_format = '%(asctime)s [%(levelname)s] %(message)s'

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(numeric_level)
        console_handler.setFormatter(ColoredFormatter(simple_format, use_colors=use_colors))
        root_logger.addHandler(console_handler)

    if log_file is None:
        from db_config import get_data_dir
        log_file = os.path.join(get_data_dir(), "photo_picker.log")

    log_dir = os.path.dirname(log_file)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    file_handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding='utf-8'
    )
    file_handler.setLevel(logging.DEBUG)  # Always log everything to file
    file_handler.setFormatter(logging.Formatter(detailed_format))
    root_logger.addHandler(file_handler)

    root_logger.info("=" * 80)
    root_logger.info(f"PhotoPicker logging initialized (level={log_level})")
    root_logger.info(f"Log file: {log_file}")
    root_logger.info("=" * 80)

    return root_logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a specific module.

    Usage:
        from logging_config import get_logger
        logger = get_logger(__name__)
        logger.info("Something happened")
    """
    return logging.getLogger(name)


def set_log_level(level: str):
    """Change log level at runtime."""
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.getLogger().setLevel(numeric_level)
    logging.info(f"Log level changed to {level}")


def disable_external_logging():
    """
    Reduce noise from external libraries (Qt, PIL).
    Call this after setup_logging() if needed.
    """
    logging.getLogger('PIL').setLevel(logging.WARNING)
    logging.getLogger('PIL.PngImagePlugin').setLevel(logging.ERROR)
    logging.getLogger('PIL.TiffImagePlugin').setLevel(logging.ERROR)
    os.environ.setdefault("QT_LOGGING_RULES", "*.debug=false;qt.qpa.*=false")
