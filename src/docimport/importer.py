"""
Document import pipeline for docimport.

Turns an uploaded file into a title, sanitized markdown and an encoded
document state. Steps run in a fixed order:

1. Format conversion (the only mime type dependent step)
2. Emoji extraction from the first characters
3. Leading heading promoted to title
4-6. Hard breaks, math delimiters, redundant marks
7. Attachment rehoming (may write attachments)
8. Title truncation
9. State encoding
10. State size guard
"""

import asyncio
from typing import Optional

from docimport.core.contracts import Config, ImportRequest, ImportResult
from docimport.core.errors import ContentTooLargeError
from docimport.ingestion.converters import DocumentConverter
from docimport.ingestion.normalizer import (
    extract_emoji,
    normalize_formatting,
    promote_heading_title,
    strip_extension,
)
from docimport.ingestion.title import MarkdownTitleParser, truncate_title
from docimport.state.codec import StateCodec
from docimport.state.tree import build_tree

DEFAULT_TITLE = "Untitled"


class ImportNormalizer:
    """Normalizes uploaded documents for storage."""

    def __init__(
        self,
        rehoster,
        config: Optional[Config] = None,
        converter=None,
        title_parser=None,
        codec=None,
    ):
        """
        Initialize the pipeline.

        Args:
            rehoster: Object with an async `rehost(text, actor, ip, transaction)`
            config: Limits and heuristics configuration
            converter: Object with an async `convert(content, file_name, mime_type)`
            title_parser: Object with `parse(text) -> ParsedTitle`
            codec: Object with `encode(tree) -> bytes`
        """
        self.config = config or Config()
        self.rehoster = rehoster
        self.converter = converter or DocumentConverter()
        self.title_parser = title_parser or MarkdownTitleParser()
        self.codec = codec or StateCodec(level=self.config.zstd_level)

    async def normalize(self, request: ImportRequest) -> ImportResult:
        """
        Run the import pipeline for one upload.

        Args:
            request: Uploaded content and importing user

        Returns:
            ImportResult with text, title, state and the extracted emoji

        Raises:
            ContentTooLargeError: If the encoded state exceeds max_state_length
        """
        text = await self.converter.convert(
            request.content, request.file_name, request.mime_type
        )
        title = strip_extension(request.file_name)

        emoji, text = extract_emoji(text, self.config.emoji_scan_length)

        heading_title, text = promote_heading_title(text, self.title_parser)
        if heading_title:
            title = heading_title

        text = normalize_formatting(text)

        text = await self.rehoster.rehost(
            text, request.actor, request.ip, request.transaction
        )

        # Long titles are shortened rather than failing the import
        title = title or request.file_name or DEFAULT_TITLE
        title = truncate_title(
            title, self.config.max_title_length, self.config.title_omission
        )

        state = await asyncio.to_thread(self.encode_state, text)
        if len(state) > self.config.max_state_length:
            raise ContentTooLargeError(title, len(state), self.config.max_state_length)

        return ImportResult(text=text, title=title, state=state, emoji=emoji)

    def encode_state(self, text: str) -> bytes:
        """Build the document tree for markdown text and encode it."""
        return self.codec.encode(build_tree(text))
