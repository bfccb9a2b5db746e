"""
Format converters for docimport.

Converts uploaded content of a supported mime type to markdown.
"""

import asyncio
import csv
import io
import logging
import re
import unicodedata
from pathlib import PurePosixPath
from typing import Union

from bs4 import BeautifulSoup
from bs4.element import Comment, Declaration, Doctype, NavigableString, Tag

try:
    import fitz  # PyMuPDF
except ImportError:
    fitz = None

from docimport.core.errors import ConversionError, UnsupportedFormatError

logger = logging.getLogger(__name__)

# Extension fallback for uploads sent as application/octet-stream
EXTENSION_MIME_TYPES = {
    ".md": "text/markdown",
    ".markdown": "text/markdown",
    ".txt": "text/plain",
    ".text": "text/plain",
    ".html": "text/html",
    ".htm": "text/html",
    ".csv": "text/csv",
    ".pdf": "application/pdf",
}

BLOCK_TAGS = {
    "p", "div", "section", "article", "main", "header", "footer", "body",
    "html", "figure", "figcaption", "dl", "dd", "dt",
}
SKIPPED_TAGS = {"script", "style", "head", "title", "meta", "link", "noscript"}

# Block syntax at the start of a text run that would change the document structure
BLOCK_MARKER_ESCAPES = [
    (re.compile(r"^(\s*)(#{1,6})(?=\s|$)"), r"\1\\\2"),
    (re.compile(r"^(\s*)([-+*>])"), r"\1\\\2"),
    (re.compile(r"^(\s*)(\d+)([.)])(?=\s|$)"), r"\1\2\\\3"),
]


def decode_content(content: Union[bytes, str]) -> str:
    """
    Decode uploaded content as UTF-8 text.

    Args:
        content: Raw bytes or already decoded text

    Returns:
        Text with any byte order mark removed
    """
    if isinstance(content, str):
        return content.lstrip("\ufeff")
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ConversionError(f"Content is not valid UTF-8: {e}") from e


def clean_extracted_text(text: str) -> str:
    """
    Normalize text extracted from a layout format (PDF).

    - Unicode normalization (NFKC)
    - Collapse runs of spaces/tabs, keep newlines
    - Normalize newlines to \\n and strip
    """
    normalized = unicodedata.normalize("NFKC", text)
    normalized = re.sub(r"[ \t]+", " ", normalized)
    normalized = normalized.replace("\r\n", "\n").replace("\r", "\n")
    return normalized.strip()


def escape_block_markers(text: str) -> str:
    """Escape a leading heading, list or quote marker so text stays a paragraph."""
    for pattern, replacement in BLOCK_MARKER_ESCAPES:
        text = pattern.sub(replacement, text, count=1)
    return text


class HtmlMarkdownRenderer:
    """Renders an HTML tree to markdown."""

    def render(self, html: str) -> str:
        soup = BeautifulSoup(html, "html.parser")
        markdown = self._render_children(soup)
        markdown = re.sub(r"[ \t]+\n", "\n", markdown)
        markdown = re.sub(r"\n{3,}", "\n\n", markdown)
        return markdown.strip()

    def _render_children(self, node: Tag) -> str:
        return "".join(self._render(child) for child in node.children)

    def _render(self, node) -> str:
        if isinstance(node, (Comment, Declaration, Doctype)):
            return ""
        if isinstance(node, NavigableString):
            return escape_block_markers(re.sub(r"\s+", " ", str(node)))
        if not isinstance(node, Tag):
            return ""

        name = node.name.lower()
        if name in SKIPPED_TAGS:
            return ""
        if re.fullmatch(r"h[1-6]", name):
            level = int(name[1])
            return f"\n\n{'#' * level} {self._render_children(node).strip()}\n\n"
        if name in BLOCK_TAGS:
            return f"\n\n{self._render_children(node).strip()}\n\n"
        if name == "br":
            # Normalized to the hard break token by the import pipeline
            return "<br>"
        if name in ("strong", "b"):
            return f"**{self._render_children(node)}**"
        if name in ("em", "i"):
            return f"_{self._render_children(node)}_"
        if name in ("s", "del", "strike"):
            return f"~~{self._render_children(node)}~~"
        if name == "code":
            return f"`{node.get_text()}`"
        if name == "pre":
            language = self._code_language(node)
            code = node.get_text().strip("\n")
            return f"\n\n```{language}\n{code}\n```\n\n"
        if name == "a":
            text = self._render_children(node).strip()
            href = node.get("href")
            return f"[{text}]({href})" if href else text
        if name == "img":
            return self._render_image(node)
        if name in ("ul", "ol"):
            return self._render_list(node, ordered=name == "ol")
        if name == "blockquote":
            inner = self._render_children(node).strip()
            quoted = "\n".join(f"> {line}".rstrip() for line in inner.splitlines())
            return f"\n\n{quoted}\n\n"
        if name == "hr":
            return "\n\n---\n\n"
        if name == "table":
            return self._render_table(node)
        return self._render_children(node)

    def _render_image(self, node: Tag) -> str:
        src = node.get("src")
        if not src:
            return ""
        alt = node.get("alt", "")
        title = node.get("title")
        if title:
            return f'![{alt}]({src} "{title}")'
        return f"![{alt}]({src})"

    def _render_list(self, node: Tag, ordered: bool) -> str:
        items = []
        start_attr = str(node.get("start", "1"))
        start = int(start_attr) if ordered and start_attr.isdigit() else 1
        for index, item in enumerate(node.find_all("li", recursive=False)):
            marker = f"{start + index}." if ordered else "-"
            body = self._render_children(item).strip()
            lines = body.splitlines() or [""]
            indent = " " * (len(marker) + 1)
            rest = [f"{indent}{line}" if line else "" for line in lines[1:]]
            items.append("\n".join([f"{marker} {lines[0]}"] + rest))
        return "\n\n" + "\n".join(items) + "\n\n"

    def _render_table(self, node: Tag) -> str:
        rows = []
        for row in node.find_all("tr"):
            cells = [
                self._render_children(cell).strip().replace("|", "\\|")
                for cell in row.find_all(["th", "td"], recursive=False)
            ]
            if cells:
                rows.append(cells)
        return "\n\n" + markdown_table(rows) + "\n\n" if rows else ""

    @staticmethod
    def _code_language(node: Tag) -> str:
        code = node.find("code")
        classes = code.get("class", []) if code else []
        for cls in classes:
            if cls.startswith("language-"):
                return cls[len("language-"):]
        return ""


def markdown_table(rows) -> str:
    """Render rows of cell strings as a pipe table. The first row is the header."""
    width = max(len(row) for row in rows)
    padded = [row + [""] * (width - len(row)) for row in rows]
    lines = ["| " + " | ".join(padded[0]) + " |"]
    lines.append("| " + " | ".join(["---"] * width) + " |")
    for row in padded[1:]:
        lines.append("| " + " | ".join(row) + " |")
    return "\n".join(lines)


class DocumentConverter:
    """Converts uploaded content to markdown based on its mime type."""

    def __init__(self):
        self.handlers = {
            "text/markdown": self.convert_markdown,
            "text/x-markdown": self.convert_markdown,
            "text/plain": self.convert_text,
            "text/html": self.convert_html,
            "application/xhtml+xml": self.convert_html,
            "text/csv": self.convert_csv,
            "application/pdf": self.convert_pdf,
        }
        self.html_renderer = HtmlMarkdownRenderer()

    async def convert(
        self, content: Union[bytes, str], file_name: str, mime_type: str
    ) -> str:
        """
        Convert content to markdown.

        Parsing runs in a worker thread so large uploads don't block the
        event loop.

        Args:
            content: Raw uploaded content
            file_name: Original file name (used when the mime type is generic)
            mime_type: Declared mime type

        Returns:
            Markdown text
        """
        handler = self.resolve_handler(file_name, mime_type)
        logger.debug("Converting %s as %s", file_name, mime_type)
        return await asyncio.to_thread(handler, content)

    def resolve_handler(self, file_name: str, mime_type: str):
        """Find the handler for a mime type, falling back to the file extension."""
        base_type = (mime_type or "").split(";")[0].strip().lower()
        handler = self.handlers.get(base_type)
        if handler is None and base_type in ("", "application/octet-stream"):
            suffix = PurePosixPath(file_name).suffix.lower()
            handler = self.handlers.get(EXTENSION_MIME_TYPES.get(suffix, ""))
        if handler is None:
            raise UnsupportedFormatError(mime_type, file_name)
        return handler

    def convert_markdown(self, content: Union[bytes, str]) -> str:
        return decode_content(content)

    def convert_text(self, content: Union[bytes, str]) -> str:
        return decode_content(content).replace("\r\n", "\n")

    def convert_html(self, content: Union[bytes, str]) -> str:
        return self.html_renderer.render(decode_content(content))

    def convert_csv(self, content: Union[bytes, str]) -> str:
        """Convert CSV to a markdown table; the first row is the header."""
        text = decode_content(content)
        try:
            rows = [
                [cell.strip().replace("|", "\\|") for cell in row]
                for row in csv.reader(io.StringIO(text))
                if any(cell.strip() for cell in row)
            ]
        except csv.Error as e:
            raise ConversionError(f"Invalid CSV: {e}") from e
        return markdown_table(rows) if rows else ""

    def convert_pdf(self, content: Union[bytes, str]) -> str:
        """Extract text from a PDF using PyMuPDF, one paragraph block per page."""
        if fitz is None:
            raise ConversionError("PyMuPDF (pymupdf) is required for PDF import")
        if isinstance(content, str):
            raise ConversionError("PDF content must be bytes")

        try:
            doc = fitz.open(stream=content, filetype="pdf")
        except Exception as e:
            raise ConversionError(f"Could not open PDF: {e}") from e

        try:
            pages = [clean_extracted_text(page.get_text()) for page in doc]
        finally:
            doc.close()

        return "\n\n".join(page for page in pages if page)
