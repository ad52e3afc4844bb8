"""Centralized logging configuration."""

import logging
import sys
from pathlib import Path

_initialized = False


def setup_logging(log_dir: str | Path | None = None, level: int = logging.INFO) -> Path | None:
    """Configure the root logger once; returns the log file path if any.

    Console output goes to stdout at ``level``. With a ``log_dir`` a DEBUG
    file log is written there as well.
    """
    global _initialized
    if _initialized:
        return None

    logger = logging.getLogger()
    logger.setLevel(logging.DEBUG)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
    logger.addHandler(console_handler)

    log_file = None
    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / "contribution_wall.log"
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
        logger.addHandler(file_handler)

    _initialized = True
    logger.info("Logging system initialized")
    return log_file
