"""Application Bootstrap (Entry Point)."""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .cli import app
from .config import get_settings

# Logging configuration constants
LOG_FILE_MAX_BYTES = 5 * 1024 * 1024  # 5MB max log file size
LOG_FILE_BACKUP_COUNT = 3  # Keep 3 backup log files
DEFAULT_LOG_FILE = Path.home() / ".flexplan" / "flexplan.log"

_NOISY_LOGGERS = ("httpx", "httpcore", "web3", "urllib3")


def setup_logging() -> None:
    """Configure application-wide logging.

    Logs to both file (~/.flexplan/flexplan.log) and stderr.
    Log level controlled by FLEXPLAN_LOG_LEVEL env var (default: INFO).

    Falls back to defaults when settings fail to load so that logging is
    still available to report the problem.
    """
    try:
        settings = get_settings()
        log_file = settings.log_file
        log_level = settings.log_level
    except Exception as e:
        print(f"Warning: Failed to load settings for logging: {e}", file=sys.stderr)
        log_file = DEFAULT_LOG_FILE
        log_level = "INFO"

    log_file.parent.mkdir(parents=True, exist_ok=True)

    file_formatter = logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    console_formatter = logging.Formatter("%(levelname)-8s | %(name)s | %(message)s")

    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.setFormatter(file_formatter)
    file_handler.setLevel(logging.DEBUG)

    # Console handler (stderr) - only WARNING+ to not clutter the TUI
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(console_formatter)
    console_handler.setLevel(logging.WARNING)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level))
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def main() -> None:
    """Main entry point for the Flex Plan CLI."""
    setup_logging()
    app()


if __name__ == "__main__":
    main()
