"""
Title parsing and truncation for docimport.
"""

import re

import regex

from docimport.core.contracts import ParsedTitle

HEADING_PATTERN = re.compile(r"^#\s+(.*)$")
LINE_BREAK_PATTERN = re.compile(r"\r?\n")
GRAPHEME_PATTERN = regex.compile(r"\X")


class MarkdownTitleParser:
    """Extracts a title from a leading level-1 markdown heading."""

    def parse(self, text: str) -> ParsedTitle:
        """
        Parse the first line of the text as a heading.

        Args:
            text: Markdown text

        Returns:
            ParsedTitle with the heading text and the remaining lines, or an
            empty title and the unchanged text when there is no heading
        """
        trimmed = text.strip()
        lines = LINE_BREAK_PATTERN.split(trimmed, maxsplit=1)
        match = HEADING_PATTERN.match(lines[0])
        if not match:
            return ParsedTitle(title="", text=text)

        rest = lines[1] if len(lines) > 1 else ""
        return ParsedTitle(title=match.group(1).strip(), text=rest)


def truncate_title(title: str, length: int, omission: str = "...") -> str:
    """
    Shorten a title to at most `length` characters.

    Cuts only between grapheme clusters, so a multi-codepoint character (an
    emoji sequence or a letter with combining marks) is never split. When the
    cut lands inside a word it moves back to the previous whitespace, if any.
    The omission marker counts toward the length.

    Args:
        title: Title to shorten
        length: Maximum length in characters
        omission: Marker appended when the title is shortened

    Returns:
        The title unchanged if it fits, otherwise the shortened title
    """
    if len(title) <= length:
        return title

    graphemes = GRAPHEME_PATTERN.findall(title)
    budget = length - len(omission)
    if budget <= 0:
        # No room for the marker; a title is never cut to nothing
        return "".join(_take_graphemes(graphemes, length) or graphemes[:1])

    kept = _take_graphemes(graphemes, budget)
    if len(kept) < len(graphemes) and not graphemes[len(kept)].isspace():
        for index in range(len(kept) - 1, 0, -1):
            if kept[index].isspace():
                kept = kept[:index]
                break

    return "".join(kept).rstrip() + omission


def _take_graphemes(graphemes, budget):
    kept = []
    used = 0
    for grapheme in graphemes:
        if used + len(grapheme) > budget:
            break
        kept.append(grapheme)
        used += len(grapheme)
    return kept
