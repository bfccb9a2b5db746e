"""Tests for title parsing and truncation."""

from docimport.ingestion.title import MarkdownTitleParser, truncate_title


def test_parse_heading():
    """The first line heading is the title; the rest is returned as text."""
    parsed = MarkdownTitleParser().parse("# Quarterly Report\nFirst line\nSecond line")
    assert parsed.title == "Quarterly Report"
    assert parsed.text == "First line\nSecond line"


def test_parse_heading_with_crlf():
    """Windows line endings don't leak into the title."""
    parsed = MarkdownTitleParser().parse("# Title\r\nBody")
    assert parsed.title == "Title"
    assert parsed.text == "Body"


def test_parse_heading_keeps_closing_marks():
    """Closing `#` marks stay in the title, which is taken verbatim."""
    parsed = MarkdownTitleParser().parse("# Title #\nBody")
    assert parsed.title == "Title #"
    assert parsed.text == "Body"


def test_parse_without_heading():
    """Text without a heading yields an empty title and unchanged text."""
    parsed = MarkdownTitleParser().parse("Just a paragraph")
    assert parsed.title == ""
    assert parsed.text == "Just a paragraph"


def test_truncate_short_title_unchanged():
    """Titles within the limit are returned as they are."""
    assert truncate_title("Short title", 100) == "Short title"
    assert truncate_title("x" * 100, 100) == "x" * 100


def test_truncate_long_title_within_limit():
    """A title 50 characters over the limit is cut to fit, marker included."""
    title = "a" * 150
    truncated = truncate_title(title, 100)
    assert len(truncated) == 100
    assert truncated == "a" * 97 + "..."


def test_truncate_at_word_boundary():
    """A cut inside a word moves back to the previous space."""
    assert truncate_title("Hello wonderful world", 15) == "Hello..."


def test_truncate_keeps_combining_marks_together():
    """Letters with combining marks are never split from their marks."""
    letter = "e\u0301"
    truncated = truncate_title(letter * 80, 100)
    assert len(truncated) <= 100
    assert truncated == letter * 48 + "..."


def test_truncate_keeps_emoji_sequences_together():
    """Multi-codepoint emoji sequences are kept whole."""
    family = "\U0001F468\u200d\U0001F469\u200d\U0001F467"
    truncated = truncate_title(family * 30, 100)
    assert len(truncated) <= 100
    assert truncated[:-3] == family * 19
    assert truncated.endswith("...")


def test_truncate_without_room_for_marker():
    """Limits shorter than the marker cut without it."""
    assert truncate_title("abcdef", 2) == "ab"


def test_truncate_custom_omission():
    """A custom omission marker counts toward the limit."""
    assert truncate_title("abcdefghij", 6, omission="…") == "abcde…"


def test_truncate_never_empty():
    """A single grapheme longer than the limit is kept rather than dropped."""
    assert truncate_title("e\u0301clair", 1) == "e\u0301"
