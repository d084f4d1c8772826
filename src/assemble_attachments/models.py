"""Data models for assemble_attachments pipeline stage."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class AttachmentSegmentRow:
    """One stored chunk of an attachment, in (mod_time, uid, segment) order."""
    file_name: str
    uid: str
    compressed: bool
    data: bytes
    declared_size: int = 0
    declared_compressed_size: int = 0
    mod_time: Optional[datetime] = None
    segment: int = 0

    @property
    def group_key(self) -> tuple[str, str, bool]:
        return self.file_name, self.uid, self.compressed


@dataclass
class Attachment:
    """Attachment rebuilt from its segments, ready to be written."""
    original_file_name: str
    uid: str
    compressed: bool
    payload: bytes
    content: bytes
    declared_size: int = 0
    declared_compressed_size: int = 0
    saved_file_name: Optional[str] = None
