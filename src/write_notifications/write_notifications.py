"""Write decoded notifications and their attachments to disk."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from assemble_attachments.models import Attachment
from parse_notifications.models import ParsedNotification

logger = logging.getLogger(__name__)

UTF8_BOM = b"\xef\xbb\xbf"
SEQUENCE_MARKER = ".temp"
MANIFEST_PREFIX = "&attachment="
MANIFEST_SUFFIX = ";\r\n"


def ensure_directory(path: Path) -> None:
    """Create a directory tree; concurrent creation by other workers is fine."""
    path.mkdir(parents=True, exist_ok=True)


def notification_directory(destination_path: str, file_name: str) -> Path:
    """Directory part of a destination path (the path minus its file name)."""
    if file_name and destination_path.endswith(file_name):
        return Path(destination_path[: -len(file_name)] or ".")
    return Path(destination_path).parent


def attachment_file_name(file_name: str, index: int, original_name: str) -> str:
    """Build the on-disk name of the index-th (1-based) attachment.

    ``20240101120000_ACME.temp`` with index 3 and ``log.txt`` becomes
    ``20240101120000_ACME_03_log.txt``.
    """
    base = file_name.replace(SEQUENCE_MARKER, f"_{index:02d}")
    return f"{base}_{original_name}"


def save_attachment(notification: ParsedNotification, attachment: Attachment, index: int) -> str:
    """
    Write one attachment next to its notification.

    Returns:
        The saved file name, also stored on ``attachment.saved_file_name``.
    """
    directory = notification_directory(notification.destination_path, notification.file_name)
    ensure_directory(directory)

    saved_name = attachment_file_name(notification.file_name, index, attachment.original_file_name)
    (directory / saved_name).write_bytes(attachment.content)

    attachment.saved_file_name = saved_name
    logger.debug("Saved attachment %s (%d bytes)", saved_name, len(attachment.content))
    return saved_name


def build_manifest(saved_names: Sequence[str]) -> str:
    """Trailing line listing saved attachments, empty when there are none."""
    if not saved_names:
        return ""
    return MANIFEST_PREFIX + "|".join(saved_names) + MANIFEST_SUFFIX


def save_notification(notification: ParsedNotification, saved_names: Sequence[str] = ()) -> Path:
    """
    Write the notification body to its destination path.

    The file holds a UTF-8 byte-order mark, the body and, when at least one
    attachment was saved, the attachment manifest line.
    """
    directory = notification_directory(notification.destination_path, notification.file_name)
    ensure_directory(directory)

    path = Path(notification.destination_path)
    with path.open("wb") as f:
        f.write(UTF8_BOM)
        f.write(notification.body.encode("utf-8"))
        manifest = build_manifest(saved_names)
        if manifest:
            f.write(manifest.encode("utf-8"))
    return path
