"""Queue and attachment queries against the event database."""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Any

from sqlalchemy import text

from assemble_attachments.models import AttachmentSegmentRow
from process_records.models import RawRecord

logger = logging.getLogger(__name__)

PENDING_RECORDS_SQL = """
    SELECT
        evfields,
        CAST(FROM_TZ(CAST(evtime AS TIMESTAMP), 'utc') AT TIME ZONE sessiontimezone AS DATE) AS evtime,
        evsysseq
    FROM eventoutm1
    WHERE evtype = 'page'
      AND evtime IS NOT NULL
      AND evsysseq IS NOT NULL
"""

ATTACHMENT_ROWS_SQL = """
    SELECT
        s1.filename,
        s1."UID" AS attachment_uid,
        s1."DATA" AS attachment_data,
        s1.compressed,
        s1."SIZE" AS normal_size,
        s1.compressed_size,
        s1.sysmodtime,
        s1.segment
    FROM sysattachmem1 s1
    WHERE s1.topic = :topic
      AND s1.sysmodtime BETWEEN :start AND :end
      AND s1."UID" IN (
            SELECT s2."UID"
            FROM sysattachmem1 s2
            WHERE s2.topic = :topic
              AND s2.sysmodtime BETWEEN :start AND :end
              AND s2.segment = 0
              {row_limit}
        )
    ORDER BY s1.sysmodtime, s1."UID", s1.segment
"""

PHASE_NUMBER_SQL = """
    SELECT phase_num
    FROM ocmlm1
    WHERE "NUMBER" = :number
"""

DELETE_RECORD_SQL = """
    DELETE FROM eventoutm1
    WHERE evsysseq = :evsysseq
      AND evtype = 'page'
"""


def _read_lob(value: Any) -> Any:
    if hasattr(value, "read"):
        return value.read()
    return value


class RecordSource:
    """
    Record source over one database session shared by every worker.

    A session cannot run two statements at once, so every call holds a lock
    for the duration of its statement.
    """

    def __init__(self, session: Any):
        self._session = session
        self._lock = threading.Lock()

    def fetch_pending_records(self) -> list[RawRecord]:
        """Load all pending page events from the queue table."""
        with self._lock:
            rows = self._session.execute(text(PENDING_RECORDS_SQL)).mappings().all()
            records = [
                RawRecord(
                    id=str(row["evsysseq"]),
                    payload=_read_lob(row["evfields"]) or "",
                    event_time=row["evtime"],
                )
                for row in rows
            ]

        logger.info("Total eventout records found: %d", len(records))
        return records

    def fetch_attachment_rows(
        self,
        key: str,
        window: tuple[datetime, datetime],
        row_limit: int | None = None,
    ) -> list[AttachmentSegmentRow]:
        """
        Load attachment segments stored for a ticket within a time window.

        Args:
            key: Ticket (or phase) number the attachments are filed under.
            window: Inclusive (start, end) bounds on the segment mod time.
            row_limit: Optional cap on the number of attachments returned.

        Returns:
            Segment rows ordered by (mod_time, uid, segment).
        """
        start, end = window
        params: dict[str, Any] = {"topic": key, "start": start, "end": end}
        row_limit_clause = ""
        if row_limit is not None:
            row_limit_clause = "AND rownum <= :row_limit"
            params["row_limit"] = row_limit

        logger.debug("<%s> -> Attachment window: %s - %s", key, start, end)
        stmt = text(ATTACHMENT_ROWS_SQL.format(row_limit=row_limit_clause))
        with self._lock:
            rows = self._session.execute(stmt, params).mappings().all()
            segments = [
                AttachmentSegmentRow(
                    file_name=row["filename"],
                    uid=str(row["attachment_uid"]),
                    compressed=row["compressed"] == "t",
                    data=bytes(_read_lob(row["attachment_data"]) or b""),
                    declared_size=row["normal_size"] or 0,
                    declared_compressed_size=row["compressed_size"] or 0,
                    mod_time=row["sysmodtime"],
                    segment=row["segment"],
                )
                for row in rows
            ]
        return segments

    def fetch_phase_number(self, ticket_number: str) -> str:
        """Phase number of a line item, or an empty string if not found."""
        with self._lock:
            phase_number = self._session.execute(
                text(PHASE_NUMBER_SQL),
                {"number": ticket_number},
            ).scalar()

        if phase_number is None:
            logger.debug("<%s> -> Phase num not found", ticket_number)
            return ""
        logger.debug("<%s> -> Phase num: %s", ticket_number, phase_number)
        return str(phase_number)

    def delete_record(self, record_id: str) -> None:
        """Delete a processed event and commit immediately."""
        with self._lock:
            try:
                self._session.execute(text(DELETE_RECORD_SQL), {"evsysseq": record_id})
                self._session.commit()
            except Exception:
                self._session.rollback()
                raise

        logger.info("Record removed: evsysseq = %s", record_id)
