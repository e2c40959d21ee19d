"""Load Greek verse lines from the Iliad TEI document.

Expected format (Perseus TEI):
<div type="textpart" subtype="Book" n="1">
  <l n="1">μῆνιν ἄειδε θεὰ Πηληϊάδεω Ἀχιλῆος</l>
  ...
</div>
"""

from __future__ import annotations

import logging
import threading
import unicodedata
import xml.etree.ElementTree as ET
from dataclasses import dataclass

import httpx

from iliadtutor.ingest.translation import (
    local_name,
    normalize_book_id,
    parse_line_number,
    read_document,
)

logger = logging.getLogger(__name__)

DEFAULT_WINDOW = 10


class TextLoadError(Exception):
    """Raised when the Greek text document cannot be read or parsed."""

    pass


@dataclass
class LineRecord:
    """A single numbered Greek line."""

    line_number: int
    text: str


def parse_greek_xml(data: bytes | str) -> dict[str, list[LineRecord]]:
    """
    Parse the Greek text into book id -> lines in document order.

    Lines whose ``n`` has no leading digits are skipped.

    Raises:
        TextLoadError: If the XML is malformed
    """
    try:
        root = ET.fromstring(data)
    except ET.ParseError as e:
        raise TextLoadError(f"Malformed Greek text XML: {e}") from e

    books: dict[str, list[LineRecord]] = {}
    for elem in root.iter():
        if local_name(elem.tag) != "div" or elem.get("type") != "textpart":
            continue
        if (elem.get("subtype") or "").lower() != "book":
            continue

        lines = books.setdefault(normalize_book_id(elem.get("n", "")), [])
        for line_elem in elem.iter():
            if local_name(line_elem.tag) != "l":
                continue
            number = parse_line_number(line_elem.get("n"))
            if number is None:
                continue
            text = " ".join("".join(line_elem.itertext()).split())
            lines.append(
                LineRecord(line_number=number, text=unicodedata.normalize("NFC", text))
            )
    return books


def window_range(
    first_line: int, last_line: int, max_lines: int = DEFAULT_WINDOW
) -> tuple[int, int]:
    """
    Compute the inclusive line range served for a requested span.

    A span of at least ``max_lines`` is cut to its first ``max_lines``
    lines; a shorter span is padded backwards, never below line 1.
    """
    if first_line > last_line:
        first_line, last_line = last_line, first_line

    count = last_line - first_line + 1
    if count >= max_lines:
        return first_line, first_line + max_lines - 1
    return max(1, first_line - (max_lines - count)), last_line


class GreekText:
    """Lazily loaded Greek text with book and window lookups."""

    def __init__(self, location: str, timeout: float = 30.0):
        self.location = location
        self.timeout = timeout
        self._books: dict[str, list[LineRecord]] | None = None
        self._load_lock = threading.Lock()

    @property
    def books(self) -> dict[str, list[LineRecord]]:
        with self._load_lock:
            if self._books is None:
                try:
                    data = read_document(self.location, timeout=self.timeout)
                except (OSError, httpx.HTTPError) as e:
                    raise TextLoadError(
                        f"Could not load Greek text {self.location}: {e}"
                    ) from e
                self._books = parse_greek_xml(data)
                logger.info(f"Loaded {len(self._books)} books from {self.location}")
        return self._books

    def list_books(self) -> list[str]:
        return sorted(self.books, key=lambda b: (len(b), b))

    def load_book(
        self,
        book: str | int,
        first_line: int | None = None,
        last_line: int | None = None,
    ) -> list[LineRecord]:
        """All lines of a book, or those within an inclusive range.

        An unknown book yields an empty list.
        """
        lines = self.books.get(normalize_book_id(book))
        if lines is None:
            logger.debug(f"Book {book} not found in Greek text")
            return []
        if first_line is None or last_line is None:
            return list(lines)
        return [line for line in lines if first_line <= line.line_number <= last_line]

    def load_book_window(
        self,
        book: str | int,
        first_line: int,
        last_line: int,
        max_lines: int = DEFAULT_WINDOW,
    ) -> list[LineRecord]:
        """Return up to ``max_lines`` lines around a requested span."""
        start, end = window_range(first_line, last_line, max_lines)
        return self.load_book(book, start, end)
