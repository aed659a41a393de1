"""Logging configuration."""
import logging
import sys
from pathlib import Path
from typing import Optional, Union


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_initialized = False


def setup_logging(level: Union[str, int] = "INFO", logs_path: Optional[Path] = None) -> logging.Logger:
    """Configure the relaybot logger once.

    Args:
        level: Log level name or number
        logs_path: Directory for relaybot.log. Console only when None.

    Returns:
        The package logger
    """
    global _initialized

    logger = logging.getLogger("relaybot")
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(level)

    if not _initialized:
        logger.handlers.clear()
        logger.propagate = False

        formatter = logging.Formatter(LOG_FORMAT)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

        if logs_path is not None:
            logs_path = Path(logs_path)
            logs_path.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(logs_path / "relaybot.log")
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

        # Reduce noise from httpx
        logging.getLogger("httpx").setLevel(logging.WARNING)

        _initialized = True

    return logger
