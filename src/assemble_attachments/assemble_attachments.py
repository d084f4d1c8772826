"""Rebuild attachments from segmented, optionally compressed, side-table rows."""

from __future__ import annotations

import logging
import zlib
from typing import Iterable

from assemble_attachments.models import Attachment, AttachmentSegmentRow

logger = logging.getLogger(__name__)

INDICATOR_OFFSET = 7
# Indicator byte -> header length to strip from the front of a segment.
HEADER_SIZES = {
    0x2D: 9,   # one length byte follows
    0x2E: 10,  # two length bytes follow
}


class SegmentFormatError(ValueError):
    """Segment is too short to carry a header indicator byte."""


def sanitize_file_name(name: str) -> str:
    return name.replace("?", "_")


def segment_header_size(data: bytes) -> int:
    """Return how many leading header bytes a stored segment carries.

    Indicator values other than 0x2D and 0x2E have never been observed; they
    are treated as headerless.

    Raises:
        SegmentFormatError: If the segment has no indicator byte.
    """
    if len(data) <= INDICATOR_OFFSET:
        raise SegmentFormatError(f"Segment of {len(data)} bytes has no header indicator")

    indicator = data[INDICATOR_OFFSET]
    header_size = HEADER_SIZES.get(indicator)
    if header_size is None:
        logger.debug("Unknown header indicator 0x%02X, keeping segment intact", indicator)
        return 0
    return header_size


def strip_segment_header(data: bytes) -> bytes:
    return data[segment_header_size(data):]


def group_segments(rows: Iterable[AttachmentSegmentRow]) -> list[list[AttachmentSegmentRow]]:
    """
    Group consecutive rows that belong to the same attachment.

    A new group starts whenever (file_name, uid, compressed) changes from the
    previous row. Rows are never re-sorted, so rows of one attachment must be
    contiguous in the input.
    """
    groups: list[list[AttachmentSegmentRow]] = []
    previous_key = None
    for row in rows:
        if not groups or row.group_key != previous_key:
            groups.append([])
        groups[-1].append(row)
        previous_key = row.group_key
    return groups


def inflate(payload: bytes) -> bytes:
    """Decompress a zlib stream, reading until the stream signals its end.

    Raises:
        zlib.error: If the stream is corrupt or ends before completion.
    """
    decompressor = zlib.decompressobj()
    content = decompressor.decompress(payload)
    content += decompressor.flush()
    if not decompressor.eof:
        raise zlib.error("Compressed stream ended before completion")
    return content


def finalize_group(rows: list[AttachmentSegmentRow]) -> Attachment:
    """Strip segment headers, join the segments and decompress if needed."""
    if not rows:
        raise ValueError("Cannot finalize an empty segment group")

    first = rows[0]
    segments = []
    for index, row in enumerate(rows):
        stripped = strip_segment_header(row.data)
        logger.debug("Segment %d size: %d", index, len(stripped))
        segments.append(stripped)
    payload = b"".join(segments)

    content = inflate(payload) if first.compressed else payload

    declared = first.declared_compressed_size if first.compressed else first.declared_size
    if declared and declared != len(payload):
        logger.debug(
            "Attachment %s: assembled %d bytes, declared %d",
            first.file_name,
            len(payload),
            declared,
        )

    return Attachment(
        original_file_name=sanitize_file_name(first.file_name),
        uid=first.uid,
        compressed=first.compressed,
        payload=payload,
        content=content,
        declared_size=first.declared_size,
        declared_compressed_size=first.declared_compressed_size,
    )


def assemble(rows: Iterable[AttachmentSegmentRow]) -> list[Attachment]:
    """
    Turn ordered segment rows into attachments.

    Args:
        rows: Segment rows in (mod_time, uid, segment) order.

    Returns:
        One Attachment per contiguous (file_name, uid, compressed) group.
    """
    return [finalize_group(group) for group in group_segments(rows)]
