"""
Document ingestion: format conversion, text normalization, titles and
attachments.
"""

from docimport.ingestion.attachments import (
    AttachmentRehoster,
    AttachmentStore,
    LocalAttachmentStore,
)
from docimport.ingestion.converters import DocumentConverter
from docimport.ingestion.normalizer import (
    collapse_redundant_marks,
    escape_math_delimiters,
    extract_emoji,
    normalize_formatting,
    normalize_hard_breaks,
    promote_heading_title,
    strip_extension,
)
from docimport.ingestion.title import MarkdownTitleParser, truncate_title

__all__ = [
    "DocumentConverter",
    "AttachmentRehoster",
    "AttachmentStore",
    "LocalAttachmentStore",
    "MarkdownTitleParser",
    "truncate_title",
    "strip_extension",
    "extract_emoji",
    "promote_heading_title",
    "normalize_hard_breaks",
    "escape_math_delimiters",
    "collapse_redundant_marks",
    "normalize_formatting",
]
