"""
Text normalization for docimport.

Each step is a pure function from markdown text to markdown text. The import
pipeline applies them in a fixed order; reordering changes the output.
"""

import re
from typing import Optional, Tuple

import emoji
import regex

from docimport.core.contracts import ParsedTitle

EXTENSION_PATTERN = re.compile(r"\.[^/.]+$")
GRAPHEME_PATTERN = regex.compile(r"\X")
HARD_BREAK_PATTERN = re.compile(r"<br\s*/?>", re.IGNORECASE)
# A dollar preceded by an even number of backslashes (zero included) is unescaped
UNESCAPED_DOLLAR_PATTERN = re.compile(r"(?<!\\)((?:\\\\)*)\$")
REDUNDANT_MARKS_PATTERN = re.compile(r"\*\*\*\*|____")


def strip_extension(file_name: str) -> str:
    """
    Remove the final extension from a file name.

    Only the last `.` segment is removed; dots inside directory components are
    ignored and a name without an extension is returned unchanged.
    """
    return EXTENSION_PATTERN.sub("", file_name)


def extract_emoji(text: str, scan_length: int = 10) -> Tuple[Optional[str], str]:
    """
    Find an emoji near the beginning of the text and remove it.

    Only the first `scan_length` characters are searched, and only fully
    qualified emoji count: text-style symbols such as a bare © or ™ are left
    alone. The match is widened to its whole grapheme cluster in the full
    text, so a sequence cut by the window is removed in one piece.

    Args:
        text: Converted markdown
        scan_length: Number of leading characters to search

    Returns:
        Tuple of (emoji or None, text with the emoji removed)
    """
    for match in emoji.emoji_list(text[:scan_length]):
        data = emoji.EMOJI_DATA.get(match["emoji"], {})
        if data.get("status") != emoji.STATUS["fully_qualified"]:
            continue

        start = match["match_start"]
        cluster = GRAPHEME_PATTERN.match(text, start)
        end = max(cluster.end(), match["match_end"])
        return text[start:end], text[:start] + text[end:]

    return None, text


def promote_heading_title(text: str, title_parser) -> Tuple[Optional[str], str]:
    """
    Use a leading level-1 heading as the document title.

    The heading is removed from the text. The title is escaped before it is
    used to build the removal pattern since it may contain regex syntax.

    Args:
        text: Markdown text
        title_parser: Object with a `parse(text) -> ParsedTitle` method

    Returns:
        Tuple of (title or None when there is no leading heading, text)
    """
    trimmed = text.strip()
    if not trimmed.startswith("# "):
        return None, text

    parsed: ParsedTitle = title_parser.parse(text)
    title = parsed.title
    pattern = re.compile(r"#\s+" + re.escape(title))
    remainder = pattern.sub("", trimmed, count=1).lstrip()
    return title, remainder


def normalize_hard_breaks(text: str) -> str:
    """Replace <br> tags with the escaped newline used for hard breaks."""
    return HARD_BREAK_PATTERN.sub(r"\\n", text)


def escape_math_delimiters(text: str) -> str:
    """Escape dollar signs so they are not interpreted as math blocks."""
    return UNESCAPED_DOLLAR_PATTERN.sub(r"\1\\$", text)


def collapse_redundant_marks(text: str) -> str:
    """
    Remove closed and immediately reopened strong marks (`****`, `____`).

    Removing a run can join the halves around it into a new run, so this
    repeats until none are left.
    """
    while True:
        collapsed = REDUNDANT_MARKS_PATTERN.sub("", text)
        if collapsed == text:
            return collapsed
        text = collapsed


def normalize_formatting(text: str) -> str:
    """
    Apply the formatting cleanup steps in order.

    - Trim surrounding whitespace
    - Hard breaks: <br> -> \\n
    - Math delimiters: $ -> \\$
    - Redundant marks: **** and ____ removed
    """
    text = text.strip()
    text = normalize_hard_breaks(text)
    text = escape_math_delimiters(text)
    text = collapse_redundant_marks(text)
    return text
