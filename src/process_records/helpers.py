"""Helper functions for process_records CLI."""

from __future__ import annotations

import argparse
from typing import Sequence

from common.cli_helpers import parse_positive_int
from common.config import RunOptions


def parse_process_records_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    '''Parse CLI arguments for process_records.'''

    parser = argparse.ArgumentParser(
        prog="notification-extractor",
        description="Extract pending notifications and their attachments from the event queue.",
    )
    parser.add_argument("config_path", help="Path to the YAML configuration file")
    parser.add_argument(
        "--read-only",
        action="store_true",
        help="Keep processed records in the queue",
    )

    # Attachment options
    attachments = parser.add_mutually_exclusive_group()
    attachments.add_argument(
        "--ignore-attachments",
        action="store_true",
        help="Do not look up attachments",
    )
    attachments.add_argument(
        "--limit-attachments",
        type=lambda v: parse_positive_int(v, "limit-attachments"),
        default=None,
        metavar="N",
        help="Fetch at most N attachments per notification",
    )

    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def run_options_from_args(args: argparse.Namespace) -> RunOptions:
    return RunOptions(
        read_only=args.read_only,
        ignore_attachments=args.ignore_attachments,
        attachment_limit=args.limit_attachments,
    )
