"""
Exception types raised by docimport.
"""


class DocumentImportError(Exception):
    """Base class for all import failures."""


class ContentTooLargeError(DocumentImportError):
    """The encoded document state exceeds the configured maximum."""

    def __init__(self, title: str, size: int, limit: int):
        self.title = title
        self.size = size
        self.limit = limit
        super().__init__(
            f'The document "{title}" is too large to import, '
            "please reduce the length and try again"
        )


class UnsupportedFormatError(DocumentImportError):
    """No converter is registered for the given mime type."""

    def __init__(self, mime_type: str, file_name: str = ""):
        self.mime_type = mime_type
        self.file_name = file_name
        super().__init__(f"Unsupported import format: {mime_type} ({file_name})")


class ConversionError(DocumentImportError):
    """Content could not be converted to markdown."""


class AttachmentError(DocumentImportError):
    """An inline image could not be fetched or stored."""


class StateIntegrityError(DocumentImportError, ValueError):
    """An encoded state blob failed header or checksum validation."""
