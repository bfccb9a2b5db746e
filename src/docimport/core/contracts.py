"""
Core data structures (dataclasses) for docimport.

All values crossing the import boundary are defined as explicit dataclasses.
"""

from dataclasses import dataclass
from typing import Any, Optional, Union


@dataclass
class Config:
    """Configuration for the import pipeline and its default collaborators."""

    # Validation limits
    max_title_length: int = 100
    max_state_length: int = 1500 * 1024  # bytes

    # Title heuristics
    emoji_scan_length: int = 10  # leading characters searched for an emoji
    title_omission: str = "..."

    # State encoding
    zstd_level: int = 3

    # Attachments
    max_attachment_size: int = 10 * 1024 * 1024  # bytes
    attachment_timeout: float = 10.0  # seconds
    fetch_remote_images: bool = False
    attachment_url_prefix: str = "/api/attachments.redirect?id="

    def __post_init__(self):
        if self.max_title_length < 1:
            raise ValueError(f"max_title_length must be at least 1, got {self.max_title_length}")
        if self.max_state_length < 1:
            raise ValueError(f"max_state_length must be at least 1, got {self.max_state_length}")


@dataclass(frozen=True)
class Actor:
    """The user performing an import."""

    id: str
    team_id: str
    name: Optional[str] = None


@dataclass(frozen=True)
class ImportRequest:
    """
    Raw uploaded content plus the context needed to import it.

    `transaction` is an opaque persistence scope handle; it is only forwarded
    to the attachment store and never opened or committed here.
    """

    actor: Actor
    mime_type: str
    file_name: str
    content: Union[bytes, str]
    ip: Optional[str] = None
    transaction: Any = None


@dataclass(frozen=True)
class ImportResult:
    """Normalized output of a single import."""

    text: str  # sanitized markdown
    title: str
    state: bytes  # encoded document state
    emoji: Optional[str] = None


@dataclass(frozen=True)
class ParsedTitle:
    """Title extracted from a markdown heading and the text that follows it."""

    title: str
    text: str


@dataclass(frozen=True)
class StoredAttachment:
    """Metadata for an attachment written by an AttachmentStore."""

    id: str
    team_id: str
    actor_id: str
    content_type: str
    size: int
    checksum: int  # xxhash32 of the stored bytes
    source: Optional[str] = None  # original url, None for inline data
