"""
Logging configuration for SafeDrop.

Console output is colored and prefixed by application area. When a log
directory is configured, every area also writes to one timestamped file
with a ``latest.log`` symlink next to it.

Safe handles are logged truncated and payloads are never logged.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional


class Colors:
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    WHITE = "\033[37m"

    BRIGHT_RED = "\033[91m"
    BRIGHT_MAGENTA = "\033[95m"
    BRIGHT_CYAN = "\033[96m"


AREA_CONFIG = {
    "main": {"color": Colors.BRIGHT_CYAN, "prefix": "SAFEDROP.main"},
    "api.safes": {"color": Colors.GREEN, "prefix": "SAFEDROP.api.safes"},
    "vault": {"color": Colors.BRIGHT_MAGENTA, "prefix": "SAFEDROP.vault"},
}

DEFAULT_AREA_CONFIG = {"color": Colors.WHITE, "prefix": "SAFEDROP"}


class ColoredConsoleFormatter(logging.Formatter):
    """Formats console lines as ``[SAFEDROP.area] HH:MM:SS LEVEL message``."""

    LEVEL_COLORS = {
        logging.DEBUG: Colors.DIM,
        logging.INFO: Colors.RESET,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.RED,
        logging.CRITICAL: Colors.BRIGHT_RED + Colors.BOLD,
    }

    def __init__(self, area: str = "main"):
        super().__init__()
        config = AREA_CONFIG.get(area, DEFAULT_AREA_CONFIG)
        self.area_color = config["color"]
        self.area_prefix = config["prefix"]

    def format(self, record: logging.LogRecord) -> str:
        level_color = self.LEVEL_COLORS.get(record.levelno, Colors.RESET)
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")

        prefix = f"{self.area_color}[{self.area_prefix}]{Colors.RESET}"
        time_str = f"{Colors.DIM}{timestamp}{Colors.RESET}"
        level_str = f"{level_color}{record.levelname:<8}{Colors.RESET}"

        line = f"{prefix} {time_str} {level_str} {record.getMessage()}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class FileFormatter(logging.Formatter):
    """Formatter for file output with full timestamps."""

    def __init__(self, area: str = "main"):
        super().__init__()
        config = AREA_CONFIG.get(area, DEFAULT_AREA_CONFIG)
        self.area_prefix = config["prefix"]

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]

        extra = ""
        if hasattr(record, "client"):
            extra += f" client={record.client}"

        return f"{timestamp} [{self.area_prefix}] {record.levelname}: {record.getMessage()}{extra}"


_log_dir: Optional[Path] = None
_file_handler: Optional[logging.FileHandler] = None


def setup_logging(
    log_dir: str,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Start writing logs to a timestamped file under ``log_dir``.

    Loggers created before this call are attached to the file as well.

    Args:
        log_dir: Directory for log files, created if missing
        file_level: Minimum level for file output

    Returns:
        Path to the log file
    """
    global _log_dir, _file_handler

    _log_dir = Path(log_dir)
    _log_dir.mkdir(parents=True, exist_ok=True)

    log_filename = datetime.now().strftime("safedrop_%Y%m%d_%H%M%S.log")
    log_path = _log_dir / log_filename

    latest_link = _log_dir / "latest.log"
    try:
        if latest_link.is_symlink() or latest_link.exists():
            latest_link.unlink()
        latest_link.symlink_to(log_filename)
    except OSError:
        pass  # Symlinks may not work on all systems

    _file_handler = logging.FileHandler(log_path, encoding="utf-8")
    _file_handler.setLevel(file_level)
    _file_handler.setFormatter(FileFormatter("main"))

    for area in AREA_CONFIG:
        logger = logging.getLogger(f"safedrop.{area}")
        if logger.handlers:
            _attach_file_handler(logger, area)

    get_logger("main").info(f"Logging initialized. Log file: {log_path}")
    return log_path


def _attach_file_handler(logger: logging.Logger, area: str) -> None:
    if _file_handler is None:
        return
    for handler in logger.handlers:
        # Only our own log file counts; other FileHandlers are left alone
        if getattr(handler, "baseFilename", None) == _file_handler.baseFilename:
            return
    area_file_handler = logging.FileHandler(_file_handler.baseFilename, encoding="utf-8")
    area_file_handler.setLevel(_file_handler.level)
    area_file_handler.setFormatter(FileFormatter(area))
    logger.addHandler(area_file_handler)


def get_logger(area: str = "main") -> logging.Logger:
    """
    Get a logger for a specific application area.

    Args:
        area: The application area (e.g., "vault", "api.safes")

    Returns:
        Configured logger instance

    Example:
        logger = get_logger("vault")
        logger.info("Safe locked")
        # Output: [SAFEDROP.vault] 14:32:15 INFO     Safe locked
    """
    logger = logging.getLogger(f"safedrop.{area}")

    if not logger.handlers:
        logger.setLevel(logging.DEBUG)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.INFO)
        console_handler.setFormatter(ColoredConsoleFormatter(area))
        logger.addHandler(console_handler)

        _attach_file_handler(logger, area)

        # Don't propagate to root to avoid duplicate logs
        logger.propagate = False

    return logger


def get_log_dir() -> Optional[Path]:
    """Get the current log directory path."""
    return _log_dir
