"""
Logging configuration for framescan.

Log files live under logs/ (or FRAMESCAN_LOG_DIR) with a date prefix.
"""

import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

# Log directory (overridable via environment)
_env_log_dir = os.getenv("FRAMESCAN_LOG_DIR")
LOG_DIR = (
    Path(_env_log_dir).expanduser()
    if _env_log_dir
    else Path(__file__).parent.parent / "logs"
)

_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


def _ensure_log_dir() -> None:
    global LOG_DIR
    try:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        return
    except OSError:
        # Fallback to a writable temp dir if repo logs are not writable
        fallback = Path(os.getenv("FRAMESCAN_LOG_DIR_FALLBACK", "/tmp/framescan-logs"))
        if fallback != LOG_DIR:
            LOG_DIR = fallback
            LOG_DIR.mkdir(parents=True, exist_ok=True)
            return
        raise


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    console: bool = True,
) -> logging.Logger:
    """
    Configure the root logger.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        log_file: Log file name, prefixed with the current date
        console: Whether to log to stderr
    """
    formatter = logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    if console:
        # stdout is reserved for scan output
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    if log_file:
        _ensure_log_dir()
        try:
            date_str = datetime.now().strftime("%Y%m%d")
            log_path = LOG_DIR / f"{date_str}_{log_file}"
            file_handler = logging.FileHandler(log_path, encoding="utf-8")
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
        except OSError:
            # Ignore file handler if we cannot write logs
            pass

    # Quiet noisy third-party loggers
    for noisy in ("ppocr", "paddlex", "paddle", "PIL"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return root_logger


def get_logger(name: str) -> logging.Logger:
    """Return the logger for ``name`` (usually ``__name__``)."""
    return logging.getLogger(name)


def get_log_level(env_var: str, default: int = logging.INFO) -> int:
    """
    Read a log level name from an environment variable.

    Args:
        env_var: Environment variable name
        default: Level used when the variable is unset or unknown

    Returns:
        Numeric log level (logging.INFO etc.)
    """
    value = os.getenv(env_var, "").upper().strip()
    if not value:
        return default
    level = getattr(logging, value, default)
    return level if isinstance(level, int) else default


__all__ = [
    "setup_logging",
    "get_logger",
    "get_log_level",
    "LOG_DIR",
]
