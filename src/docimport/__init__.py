"""
docimport - Document import normalization for collaborative editors.
"""

from docimport.core import (
    Actor,
    Config,
    ContentTooLargeError,
    DocumentImportError,
    ImportRequest,
    ImportResult,
)
from docimport.importer import ImportNormalizer
from docimport.tracing import traced_import

__version__ = "0.1.0"


async def import_document(request: ImportRequest, rehoster, config: Config = None) -> ImportResult:
    """
    Import one document with the default converter, title parser and codec.

    Args:
        request: Uploaded content and importing user
        rehoster: Attachment rehoster for inline images
        config: Optional configuration

    Returns:
        ImportResult
    """
    normalizer = ImportNormalizer(rehoster, config=config)
    return await traced_import(normalizer, request)


__all__ = [
    "import_document",
    "ImportNormalizer",
    "traced_import",
    "Actor",
    "Config",
    "ImportRequest",
    "ImportResult",
    "DocumentImportError",
    "ContentTooLargeError",
]
