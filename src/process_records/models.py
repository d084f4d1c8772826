"""Data models for process_records pipeline stage."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class ProcessingOutcome(Enum):
    MALFORMED = "malformed"
    IGNORED = "ignored"
    INCOMPLETE = "incomplete"
    PROCESSED = "processed"
    FAILED = "failed"


@dataclass(frozen=True)
class RawRecord:
    """Pending event fetched from the queue table."""
    id: str
    payload: str
    event_time: Optional[datetime] = None


@dataclass
class RecordResult:
    """What happened to one queue record."""
    record_id: str
    outcome: ProcessingOutcome
    deleted: bool = False
    attachments_found: int = 0
    attachments_saved: int = 0


@dataclass
class RunSummary:
    """Aggregate counts for a whole run."""
    records: int = 0
    accepted: int = 0
    deleted: int = 0
    elapsed_seconds: float = 0.0
    outcomes: dict[ProcessingOutcome, int] = field(default_factory=dict)

    def add(self, result: RecordResult) -> None:
        self.outcomes[result.outcome] = self.outcomes.get(result.outcome, 0) + 1
        if result.deleted:
            self.deleted += 1
