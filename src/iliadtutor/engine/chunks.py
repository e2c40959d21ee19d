"""Reference translation windows aligned to multiples of five lines."""

from __future__ import annotations

from dataclasses import dataclass

from iliadtutor.ingest.translation import TranslationIndex, normalize_book_id

CHUNK_SIZE = 5


@dataclass
class Chunk:
    """Merged translation text for one window."""

    start_line: int
    text: str


def window_bounds(line_number: int, size: int = CHUNK_SIZE) -> tuple[int, int]:
    """
    Return (start, end_exclusive) of the window containing a line.

    Windows start at multiples of ``size``; the first window starts at 1
    and stops short of ``size`` (lines 1-4 for size 5).

    Raises:
        ValueError: If line_number < 1
    """
    if line_number < 1:
        raise ValueError(f"Line number must be >= 1, got {line_number}")

    start = (line_number // size) * size
    end = start + size
    if start == 0:
        start = 1
    return start, end


def get_chunk(
    index: TranslationIndex, book: str | int, line_number: int, size: int = CHUNK_SIZE
) -> list[Chunk]:
    """
    Resolve the translation window for a book line.

    Returns:
        A single-element list, or an empty list when the book is unknown or
        the window has no translated lines
    """
    start, end = window_bounds(line_number, size)
    entries = index.get(normalize_book_id(book), ())

    texts = [e.text for e in entries if start <= e.line_number < end and e.text]
    if not texts:
        return []

    return [Chunk(start_line=start, text=" ".join(texts).strip())]
