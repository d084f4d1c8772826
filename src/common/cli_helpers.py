"""Common CLI helper utilities."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from common.errors import ConfigError

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def setup_logging(log_file: Path | None = None, level: int = logging.INFO) -> None:
    """Configure standard logging format for CLI tools.

    Args:
        log_file: Optional file to mirror console output into.
        level: Root log level.

    Raises:
        ConfigError: If the log file cannot be created.
    """
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file is not None:
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
        except OSError as exc:
            raise ConfigError(f"Unable to open log file {log_file}: {exc}") from exc

    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)


def parse_positive_int(value: str, field_name: str = "value") -> int:
    """Parse a strictly positive integer for argparse arguments.

    Raises:
        argparse.ArgumentTypeError: If the value is not a positive integer.
    """
    try:
        number = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"{field_name} must be a positive integer") from exc
    if number < 1:
        raise argparse.ArgumentTypeError(f"{field_name} must be a positive integer")
    return number
