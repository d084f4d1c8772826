"""CLI for draining the notification queue."""

from __future__ import annotations

import logging
import sys
import time
from importlib.metadata import PackageNotFoundError, version
from typing import Sequence

from sqlalchemy.exc import SQLAlchemyError

from common.cli_helpers import setup_logging
from common.config import load_config
from common.db import get_session
from common.errors import ConfigError, DatabaseConnectionError
from process_records.helpers import parse_process_records_args, run_options_from_args
from process_records.process_records import process_records
from process_records.record_source import RecordSource

logger = logging.getLogger(__name__)

DISTRIBUTION_NAME = "notification-extractor"


def get_version() -> str:
    """Installed version of the extractor, or ``unknown`` when run from a checkout."""
    try:
        return version(DISTRIBUTION_NAME)
    except PackageNotFoundError:
        return "unknown"


def _log_failure(start: float) -> int:
    logger.info("Execution time: %.3f seconds", time.monotonic() - start)
    logger.info("ERROR. Application ended with error.")
    return 1


def main(argv: Sequence[str] | None = None) -> int:
    start = time.monotonic()
    args = parse_process_records_args(argv)
    level = logging.DEBUG if args.verbose else logging.INFO

    try:
        options = run_options_from_args(args)
        config = load_config(args.config_path)
        setup_logging(config.log_file, level=level)
    except ConfigError as exc:
        setup_logging(level=level)
        logger.error("Unable to load configuration: %s", exc)
        return 1

    logger.info("<------------  Starting Notification Extractor %s  ------------>", get_version())
    logger.info("Getting notifications for: %s", config.customer_tool)
    logger.info("Process information: %s", options.describe())

    try:
        with get_session(config.database) as session:
            source = RecordSource(session)
            records = source.fetch_pending_records()
            process_records(records, source, config, options, max_workers=config.max_workers)
    except DatabaseConnectionError:
        logger.critical("Unable to connect to database", exc_info=True)
        return _log_failure(start)
    except SQLAlchemyError:
        logger.critical("Database error while reading the event queue", exc_info=True)
        return _log_failure(start)

    logger.info("Execution time: %.3f seconds", time.monotonic() - start)
    logger.info("SUCCESS. Application ended with success.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
