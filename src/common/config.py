"""Configuration loader for the notification extractor."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from dotenv import load_dotenv

from common.errors import ConfigError

logger = logging.getLogger(__name__)

PASSWORD_ENV_VAR = "NOTIFICATION_DB_PASSWORD"
DEFAULT_MAX_WORKERS = 100


@dataclass(frozen=True)
class DatabaseConfig:
    user: str
    host: str
    sid: str
    port: int = 1521
    password: str = ""
    driver: str = "oracle+oracledb"


@dataclass(frozen=True)
class ExtractorConfig:
    customer_tool: str
    database: DatabaseConfig
    time_zone: str = "UTC"
    log_path: str = ""
    max_workers: int = DEFAULT_MAX_WORKERS

    @property
    def log_file(self) -> Path | None:
        """Per-tool log file under ``log_path``, if one is configured."""
        if not self.log_path:
            return None
        return Path(self.log_path) / f"{self.customer_tool}_NOTIFICATION_EXTRACTOR.log"


@dataclass(frozen=True)
class RunOptions:
    """Run modes chosen on the command line."""

    read_only: bool = False
    ignore_attachments: bool = False
    attachment_limit: int | None = None

    def __post_init__(self) -> None:
        if self.ignore_attachments and self.attachment_limit is not None:
            raise ConfigError("Attachments cannot be both ignored and limited")
        if self.attachment_limit is not None and self.attachment_limit < 1:
            raise ConfigError(f"Attachment limit must be positive, got {self.attachment_limit}")

    def describe(self) -> str:
        mode = "read-only" if self.read_only else "read-write"
        if self.ignore_attachments:
            attachments = "attachments are ignored"
        elif self.attachment_limit is not None:
            attachments = f"attachments limit: {self.attachment_limit} file(s)"
        else:
            attachments = "attachments are processed"
        return f"eventout is in {mode} mode, {attachments}"


def load_yaml(path: Path) -> dict:
    """Load YAML file and return dict."""
    with open(path) as f:
        return yaml.safe_load(f) or {}


def load_config(config_path: str | Path) -> ExtractorConfig:
    """Load configuration from a YAML file.

    Environment variables (including a ``.env`` file) may supply the database
    password through ``NOTIFICATION_DB_PASSWORD``.

    Raises:
        ConfigError: If the file is missing or a required value is invalid.
    """
    load_dotenv()

    path = Path(config_path)
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    try:
        data = load_yaml(path)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Unable to parse config file {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")

    return _parse_config(data)


def _parse_config(data: dict) -> ExtractorConfig:
    """Parse config dictionary into ExtractorConfig object."""
    customer_tool = str(data.get("customer_tool") or "").strip().upper()
    if not customer_tool:
        raise ConfigError("Customer tool name was not provided")

    time_zone = str(data.get("time_zone") or "UTC").strip()
    try:
        ZoneInfo(time_zone)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigError(f"Unknown time zone: {time_zone}") from exc

    max_workers = _parse_int(data.get("max_workers", DEFAULT_MAX_WORKERS), "max_workers")
    if max_workers < 1:
        raise ConfigError("max_workers must be at least 1")

    return ExtractorConfig(
        customer_tool=customer_tool,
        database=_parse_database(data.get("database") or {}),
        time_zone=time_zone,
        log_path=str(data.get("log_path") or ""),
        max_workers=max_workers,
    )


def _parse_database(data: dict) -> DatabaseConfig:
    user = str(data.get("user") or "")
    host = str(data.get("host") or "")
    sid = str(data.get("sid") or "")
    port = _parse_int(data.get("port", 1521), "database.port")
    password = os.environ.get(PASSWORD_ENV_VAR) or str(data.get("password") or "")

    if not user:
        raise ConfigError("Database user was not provided")
    if not host:
        raise ConfigError("Database host was not provided")
    if not 1 <= port <= 65535:
        raise ConfigError(f"Database port is out of range: {port}")
    if not sid:
        raise ConfigError("Database SID was not provided")
    if not password:
        logger.warning("Database password was not provided")

    return DatabaseConfig(
        user=user,
        host=host,
        sid=sid,
        port=port,
        password=password,
        driver=str(data.get("driver") or "oracle+oracledb"),
    )


def _parse_int(value: object, field_name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{field_name} must be a number, got {value!r}") from exc
