"""Run one queue record through parse, attachment and write steps."""

from __future__ import annotations

import logging
from typing import Protocol

from assemble_attachments.assemble_attachments import finalize_group, group_segments
from assemble_attachments.models import AttachmentSegmentRow
from common.config import ExtractorConfig, RunOptions
from common.datetime import notification_window
from parse_notifications.models import ParsedNotification, RejectReason
from parse_notifications.parse_notifications import parse_payload
from process_records.models import ProcessingOutcome, RawRecord, RecordResult
from write_notifications.write_notifications import save_attachment, save_notification

logger = logging.getLogger(__name__)

LINE_ITEM_SOURCE = "LINEITEM"

_REJECT_OUTCOMES = {
    RejectReason.MALFORMED: ProcessingOutcome.MALFORMED,
    RejectReason.IGNORED: ProcessingOutcome.IGNORED,
    RejectReason.INCOMPLETE: ProcessingOutcome.INCOMPLETE,
}


class Counter(Protocol):
    def increment(self) -> int: ...


def _prefix(record_id: str) -> str:
    return f"<{record_id}> -> "


def _fetch_attachment_rows(
    notification: ParsedNotification,
    source,
    config: ExtractorConfig,
    options: RunOptions,
) -> list[AttachmentSegmentRow]:
    window = notification_window(notification.file_name, config.time_zone)
    rows = source.fetch_attachment_rows(notification.ticket_number, window, options.attachment_limit)

    if not rows and notification.ticket_source == LINE_ITEM_SOURCE:
        phase_number = source.fetch_phase_number(notification.ticket_number)
        rows = source.fetch_attachment_rows(phase_number, window, options.attachment_limit)

    return rows


def _save_attachments(
    record_id: str,
    notification: ParsedNotification,
    rows: list[AttachmentSegmentRow],
) -> tuple[int, list[str]]:
    """Rebuild and save each attachment on its own; failures only drop that one."""
    groups = group_segments(rows)
    saved_names: list[str] = []
    for index, group in enumerate(groups, start=1):
        try:
            attachment = finalize_group(group)
            saved_names.append(save_attachment(notification, attachment, index))
        except Exception:
            logger.exception(
                "%sAttachment: %s couldn't be read and will be ignored",
                _prefix(record_id),
                group[0].file_name,
            )
    return len(groups), saved_names


def process_record(
    record: RawRecord,
    source,
    config: ExtractorConfig,
    options: RunOptions,
    counter: Counter,
) -> RecordResult:
    """
    Process one pending event end to end.

    Args:
        record: Event fetched from the queue table.
        source: Record source used for attachment lookups and the final delete.
        config: Extractor configuration.
        options: Run modes (read-only, attachment handling).
        counter: Shared counter of accepted notifications.

    Returns:
        RecordResult describing the outcome. Errors are logged and reported as
        ``FAILED``; they never propagate.
    """
    prefix = _prefix(record.id)
    try:
        logger.debug("%sevFields content:\r\n%s", prefix, record.payload)
        parsed = parse_payload(record.payload, config.customer_tool)

        if parsed.reject_reason is RejectReason.MALFORMED:
            logger.info("Record: %sRecord ignored - invalid message format.", prefix)
        elif parsed.reject_reason is RejectReason.IGNORED:
            logger.info("Record: %sRecord ignored - message for another interface.", prefix)
        elif parsed.reject_reason is RejectReason.INCOMPLETE:
            logger.warning("Record: %sRecord ignored - message is incomplete.", prefix)
        if not parsed.accepted:
            return RecordResult(record_id=record.id, outcome=_REJECT_OUTCOMES[parsed.reject_reason])

        notification = parsed.notification
        counter.increment()

        found = 0
        saved_names: list[str] = []
        if notification.with_attachments and not options.ignore_attachments:
            rows = _fetch_attachment_rows(notification, source, config, options)
            found, saved_names = _save_attachments(record.id, notification, rows)

        logger.info(
            "Record: %sfilename = %s has %d attachment(s)",
            prefix,
            notification.file_name,
            found,
        )

        save_notification(notification, saved_names)

        result = RecordResult(
            record_id=record.id,
            outcome=ProcessingOutcome.PROCESSED,
            attachments_found=found,
            attachments_saved=len(saved_names),
        )
        if options.read_only:
            return result

        try:
            source.delete_record(record.id)
            result.deleted = True
        except Exception:
            logger.exception("%sUnable to remove record, it stays in the queue", prefix)
        return result

    except Exception:
        logger.exception("%sUnable to parse eventout record", prefix)
        return RecordResult(record_id=record.id, outcome=ProcessingOutcome.FAILED)
