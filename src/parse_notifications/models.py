"""Data models for parse_notifications pipeline stage."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class RejectReason(Enum):
    """Why a payload did not yield an accepted notification."""
    MALFORMED = "malformed"
    IGNORED = "ignored"
    INCOMPLETE = "incomplete"


@dataclass(frozen=True)
class ParsedNotification:
    """Notification decoded from an event payload."""
    ticket_source: str
    ticket_number: str
    with_attachments: bool
    destination_path: str
    file_name: str
    body: str


@dataclass(frozen=True)
class ParseResult:
    """Outcome of parsing one payload: a notification, a rejection, or both.

    Ignored and incomplete payloads still carry the decoded notification so the
    caller can log what was skipped.
    """
    notification: Optional[ParsedNotification] = None
    reject_reason: Optional[RejectReason] = None

    @property
    def accepted(self) -> bool:
        return self.reject_reason is None and self.notification is not None
