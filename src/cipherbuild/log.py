"""Logging setup for cipherbuild.

Components never reach for a global logger: each takes a ``logger`` argument
and falls back to ``logging.getLogger(__name__)``. This module only installs
handlers on the package logger for the CLI.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

LOGGER_NAME = "cipherbuild"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    verbose: bool = False, log_file: Optional[Path] = None
) -> logging.Logger:
    """Install console and (optionally) rotating file handlers.

    Args:
        verbose: Log DEBUG and above to the console instead of INFO
        log_file: Path of a log file to keep across runs

    Returns:
        The configured package logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)

    # Re-running setup (tests, repeated CLI calls) must not stack handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    logger.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            str(log_file),
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=3,
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(file_handler)

    return logger


def log_process_output(
    logger: logging.Logger, stderr: str, stdout: str, failed: bool
) -> None:
    """Log captured process output, stderr first.

    Stderr goes out as errors when the process failed and as warnings
    otherwise; stdout is logged at INFO.
    """
    for line in stderr.splitlines():
        if failed:
            logger.error(line)
        else:
            logger.warning(line)
    for line in stdout.splitlines():
        logger.info(line)
