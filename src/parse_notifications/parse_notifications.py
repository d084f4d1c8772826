"""Decode the delimited notification protocol carried in event payloads."""

from __future__ import annotations

import logging
import re

from parse_notifications.models import ParsedNotification, ParseResult, RejectReason

logger = logging.getLogger(__name__)

END_MARKER = "$end"
START_MARKER = "telalert"
SEPARATORS_BEFORE_HEADER = 8
HEADER_DELIMITER = "||"
ATTACHMENTS_FLAG = "AA"
INCOMPLETE_SENTINEL = "Thismessagedidnotprovideenougharguments"

_LINE_BREAK = re.compile(r"\r\n|\r|\n")
_NON_WORD = re.compile(r"\W")
_PATH_SEPARATOR = re.compile(r"[\\/]")

_MALFORMED = ParseResult(reject_reason=RejectReason.MALFORMED)


def _skip_separators(text: str, separator: str, count: int) -> str | None:
    pos = 0
    for _ in range(count):
        found = text.find(separator, pos)
        if found == -1:
            return None
        pos = found + len(separator)
    return text[pos:]


def _split_header(header: str) -> list[str]:
    return [token for token in header.split(HEADER_DELIMITER) if token]


def _last_path_segment(path: str) -> str:
    segments = [segment for segment in _PATH_SEPARATOR.split(path) if segment]
    return segments[-1] if segments else ""


def extract_message(payload: str) -> str | None:
    """Return the text following the protocol preamble, or None if malformed.

    The message sits between the last start marker and the last end marker,
    after the eighth occurrence of the separator character that immediately
    follows the start marker.
    """
    end = payload.rfind(END_MARKER)
    if end == -1:
        return None
    text = payload[:end]

    start = text.rfind(START_MARKER)
    if start == -1:
        return None
    text = text[start:]

    if len(text) <= len(START_MARKER):
        return None
    separator = text[len(START_MARKER)]

    return _skip_separators(text, separator, SEPARATORS_BEFORE_HEADER)


def split_header_and_body(message: str) -> tuple[str, str]:
    """Split off the first line and return it with the CRLF-normalized rest."""
    match = _LINE_BREAK.search(message)
    if match is None:
        return message, ""
    header = message[: match.start()]
    body = _LINE_BREAK.sub("\r\n", message[match.end():])
    return header, body


def parse_payload(payload: str, customer_tool: str) -> ParseResult:
    """
    Parse an event payload into a notification.

    Args:
        payload: Raw ``evfields`` text of the event.
        customer_tool: Identifier that must appear in the destination path for
            the notification to belong to this interface.

    Returns:
        ParseResult with the notification and, for anything other than an
        accepted notification, the reason it was rejected.
    """
    message = extract_message(payload)
    if message is None:
        return _MALFORMED

    header, body = split_header_and_body(message)
    logger.debug("First line:\r\n%s", header)

    tokens = _split_header(header)
    if len(tokens) < 4:
        return _MALFORMED

    destination_path = tokens[3]
    notification = ParsedNotification(
        ticket_source=_NON_WORD.sub("", tokens[0]),
        ticket_number=tokens[2],
        with_attachments=tokens[1] == ATTACHMENTS_FLAG,
        destination_path=destination_path,
        file_name=_last_path_segment(destination_path),
        body=body,
    )

    if customer_tool not in destination_path:
        return ParseResult(notification=notification, reject_reason=RejectReason.IGNORED)
    if INCOMPLETE_SENTINEL in notification.ticket_source:
        return ParseResult(notification=notification, reject_reason=RejectReason.INCOMPLETE)
    return ParseResult(notification=notification)
