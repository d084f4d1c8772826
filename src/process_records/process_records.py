"""Fan pending records out over a bounded worker pool."""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Sequence

from common.config import DEFAULT_MAX_WORKERS, ExtractorConfig, RunOptions
from process_records.models import ProcessingOutcome, RawRecord, RecordResult, RunSummary
from process_records.process_record import process_record

logger = logging.getLogger(__name__)


class AcceptedCounter:
    """Thread-safe count of accepted notifications."""

    def __init__(self) -> None:
        self._value = 0
        self._lock = threading.Lock()

    def increment(self) -> int:
        with self._lock:
            self._value += 1
            return self._value

    @property
    def value(self) -> int:
        with self._lock:
            return self._value


def process_records(
    records: Sequence[RawRecord],
    source,
    config: ExtractorConfig,
    options: RunOptions,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> RunSummary:
    """
    Process every record concurrently and wait for all of them to finish.

    Args:
        records: Pending events to process.
        source: Record source shared by all workers.
        config: Extractor configuration.
        options: Run modes.
        max_workers: Maximum number of records processed at once.

    Returns:
        RunSummary with the accepted count, per-outcome counts and elapsed time.
    """
    summary = RunSummary(records=len(records))
    if not records:
        logger.info("No records found")
        return summary

    logger.info("Starting eventout processing...")
    counter = AcceptedCounter()
    start = time.monotonic()

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = {
            executor.submit(process_record, record, source, config, options, counter): record
            for record in records
        }
        for future, record in futures.items():
            try:
                result = future.result()
            except Exception:
                logger.exception("<%s> -> Worker failed", record.id)
                result = RecordResult(record_id=record.id, outcome=ProcessingOutcome.FAILED)
            summary.add(result)

    summary.elapsed_seconds = time.monotonic() - start
    summary.accepted = counter.value

    logger.info("Eventout processing complete in %.3f seconds", summary.elapsed_seconds)
    logger.info("Total notifications found: %d", summary.accepted)
    logger.info(
        "Outcomes: %s; records removed: %d",
        ", ".join(f"{outcome.value}={count}" for outcome, count in summary.outcomes.items()) or "none",
        summary.deleted,
    )
    return summary
