"""
Structural text metrics: paragraphs, words, characters.

Pure functions over the raw document text; no normalization is applied.
"""

from __future__ import annotations

from dataclasses import dataclass

PARAGRAPH_SEPARATOR = "\n\n"


@dataclass(frozen=True)
class TextMetrics:
    paragraphs: int
    words: int
    characters: int


def count_words(text: str) -> int:
    """Number of maximal whitespace-delimited tokens."""
    return len(text.split())


def count_paragraphs(text: str) -> int:
    """
    Segments separated by a blank line that are non-empty once trimmed.

    Windows line endings are folded to \\n first so "\\r\\n\\r\\n" counts as a
    blank line too. Non-empty text without a blank line is one paragraph.
    """
    text = text.replace("\r\n", "\n")
    return sum(1 for segment in text.split(PARAGRAPH_SEPARATOR) if segment.strip())


def count_characters(text: str) -> int:
    """Unicode code points, not bytes."""
    return len(text)


def compute_metrics(text: str) -> TextMetrics:
    return TextMetrics(
        paragraphs=count_paragraphs(text),
        words=count_words(text),
        characters=count_characters(text),
    )
