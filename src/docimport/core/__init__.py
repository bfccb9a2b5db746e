"""
Core contracts, errors and ID generation for docimport.
"""

from docimport.core.contracts import (
    Actor,
    Config,
    ImportRequest,
    ImportResult,
    ParsedTitle,
    StoredAttachment,
)
from docimport.core.errors import (
    AttachmentError,
    ContentTooLargeError,
    ConversionError,
    DocumentImportError,
    StateIntegrityError,
    UnsupportedFormatError,
)
from docimport.core.ids import attachment_key, generate_attachment_id

__all__ = [
    "Config",
    "Actor",
    "ImportRequest",
    "ImportResult",
    "ParsedTitle",
    "StoredAttachment",
    "DocumentImportError",
    "ContentTooLargeError",
    "UnsupportedFormatError",
    "ConversionError",
    "AttachmentError",
    "StateIntegrityError",
    "generate_attachment_id",
    "attachment_key",
]
