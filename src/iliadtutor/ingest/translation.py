"""Parse reference translation XML into a per-book line index.

Expected format (Perseus TEI, e.g. Murray's Iliad):
<TEI>
  <text><body>
    <div type="translation">
      <div type="textpart" subtype="book" n="1">
        <div type="textpart" subtype="card" n="1">
          <p>Sing, goddess, <milestone unit="line" n="5"/>of Peleus' son ...</p>
        </div>
      </div>
    </div>
  </body></text>
</TEI>

Text between two line milestones belongs to the line number of the first.
Several documents can be layered: a later document overrides the lines it
shares with an earlier one and fills in the lines the earlier one lacks.
"""

from __future__ import annotations

import asyncio
import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, Sequence

import httpx

if TYPE_CHECKING:
    from iliadtutor.config import Settings

logger = logging.getLogger(__name__)

# Elements whose boundaries separate words in the running text
BLOCK_TAGS = {"p", "div", "l", "lb", "head", "sp", "q"}

LINE_NUMBER_PATTERN = re.compile(r"^\s*(\d+)")


class TranslationLoadError(Exception):
    """Raised when a translation document cannot be read or parsed."""

    pass


@dataclass(frozen=True)
class TranslationEntry:
    """Translated text anchored at one source-line milestone."""

    line_number: int
    text: str


@dataclass(frozen=True)
class DocumentSource:
    """A translation document location (path or http(s) URL)."""

    location: str
    required: bool = True


# book id -> entries ascending by line number
TranslationIndex = dict[str, tuple[TranslationEntry, ...]]


def normalize_book_id(book: str | int) -> str:
    """Normalize a caller-supplied book identifier ("01", 1, " 1") to "1"."""
    text = str(book).strip()
    if text.isdigit():
        return str(int(text))
    return text


def local_name(tag: object) -> str:
    """Strip any XML namespace from an element tag."""
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1]


def clean_text(text: str) -> str:
    """Collapse runs of whitespace to single spaces."""
    return " ".join(text.split())


def parse_line_number(value: str | None) -> int | None:
    """Parse a milestone ``n`` attribute ("12", "12a") to an int."""
    if not value:
        return None
    match = LINE_NUMBER_PATTERN.match(value)
    return int(match.group(1)) if match else None


class LineAccumulator:
    """Two-state walker over a book's text.

    ``current is None`` is the no-entry-open state; otherwise an entry is
    open at ``current``. Anchors move between states, text appends to the
    open entry (or to the provisional pre-anchor buffer).
    """

    def __init__(self) -> None:
        self.current: int | None = None
        self.seen_anchor = False
        self._provisional: list[str] = []
        self._parts: dict[int, list[str]] = {}

    def anchor(self, line_number: int) -> None:
        if not self.seen_anchor:
            self._close_provisional()
            self.seen_anchor = True
        self.current = line_number
        self._parts.setdefault(line_number, [])

    def text(self, value: str | None) -> None:
        if not value:
            return
        if self.current is None:
            self._provisional.append(value)
        else:
            self._parts[self.current].append(value)

    def _close_provisional(self) -> None:
        # Pre-anchor text survives only as line 1, and only before any anchor
        pending = clean_text("".join(self._provisional))
        self._provisional = []
        if pending and not self.seen_anchor:
            self._parts.setdefault(1, []).insert(0, pending + " ")

    def entries(self) -> list[TranslationEntry]:
        if not self.seen_anchor:
            self._close_provisional()
        return [
            TranslationEntry(line_number=n, text=clean_text("".join(parts)))
            for n, parts in sorted(self._parts.items())
        ]


def _walk(element: ET.Element, acc: LineAccumulator) -> None:
    name = local_name(element.tag)
    if name == "milestone" and element.get("unit") == "line":
        line_number = parse_line_number(element.get("n"))
        if line_number is None:
            logger.debug(f"Ignoring line milestone with n={element.get('n')!r}")
        else:
            acc.anchor(line_number)
        return

    acc.text(element.text)
    for child in element:
        _walk(child, acc)
        acc.text(child.tail)
    if name in BLOCK_TAGS:
        acc.text(" ")


def parse_book(book_elem: ET.Element) -> list[TranslationEntry]:
    """Walk one book element depth-first and return its line entries."""
    acc = LineAccumulator()
    acc.text(book_elem.text)
    for child in book_elem:
        _walk(child, acc)
        acc.text(child.tail)
    return acc.entries()


def _is_book(elem: ET.Element) -> bool:
    return (
        local_name(elem.tag) == "div"
        and elem.get("type") == "textpart"
        and (elem.get("subtype") or "").lower() == "book"
    )


def parse_translation_xml(data: bytes | str) -> dict[str, list[TranslationEntry]]:
    """
    Parse a translation document into book id -> entries.

    Raises:
        TranslationLoadError: If the XML is malformed or has no translation body
    """
    try:
        root = ET.fromstring(data)
    except ET.ParseError as e:
        raise TranslationLoadError(f"Malformed translation XML: {e}") from e

    body = None
    for elem in root.iter():
        if local_name(elem.tag) == "div" and elem.get("type") == "translation":
            body = elem
            break
    if body is None:
        raise TranslationLoadError('No <div type="translation"> found in XML')

    books: dict[str, list[TranslationEntry]] = {}
    for elem in body.iter():
        if not _is_book(elem):
            continue
        book_id = normalize_book_id(elem.get("n", ""))
        entries = parse_book(elem)
        if book_id in books:
            books[book_id] = list(merge_entries(books[book_id], entries))
        else:
            books[book_id] = entries
    return books


def read_document(location: str, timeout: float = 30.0) -> bytes:
    """Read a document from a filesystem path or an http(s) URL."""
    if location.startswith(("http://", "https://")):
        response = httpx.get(location, timeout=timeout, follow_redirects=True)
        response.raise_for_status()
        return response.content
    return Path(location).read_bytes()


def load_document(location: str, timeout: float = 30.0) -> dict[str, list[TranslationEntry]]:
    """
    Read and parse one translation document.

    Raises:
        TranslationLoadError: If the document is missing, unreachable or malformed
    """
    try:
        data = read_document(location, timeout=timeout)
    except (OSError, httpx.HTTPError) as e:
        raise TranslationLoadError(
            f"Could not load translation XML {location}: {e}"
        ) from e
    return parse_translation_xml(data)


def merge_entries(
    base: Iterable[TranslationEntry], overlay: Iterable[TranslationEntry]
) -> tuple[TranslationEntry, ...]:
    """Overlay entries onto base by line number (overlay wins), sorted ascending."""
    by_line = {entry.line_number: entry for entry in base}
    for entry in overlay:
        by_line[entry.line_number] = entry
    return tuple(by_line[n] for n in sorted(by_line))


def build_index(
    documents: Sequence[DocumentSource], timeout: float = 30.0
) -> TranslationIndex:
    """
    Build a translation index from documents in override order.

    Args:
        documents: Primary document first, supplements after
        timeout: HTTP timeout for URL locations

    Returns:
        Mapping of book id to entries ascending by line number

    Raises:
        TranslationLoadError: If a required document fails to load
    """
    if not documents:
        raise TranslationLoadError("No translation documents configured")

    index: TranslationIndex = {}
    for source in documents:
        try:
            books = load_document(source.location, timeout=timeout)
        except TranslationLoadError as e:
            if source.required:
                raise
            logger.warning(f"Skipping optional translation document: {e}")
            continue

        for book_id, entries in books.items():
            index[book_id] = merge_entries(index.get(book_id, ()), entries)
        logger.info(f"Indexed {len(books)} books from {source.location}")

    return index


class TranslationIndexer:
    """Process-lifetime memo over build_index.

    The first caller starts the build; callers arriving while it is in
    flight await the same task. A failed build is not memoized.
    """

    def __init__(self, documents: Sequence[DocumentSource], timeout: float = 30.0):
        self.documents = tuple(documents)
        self.timeout = timeout
        self.build_count = 0
        self._index: TranslationIndex | None = None
        self._pending: asyncio.Task | None = None

    @classmethod
    def from_settings(cls, settings: "Settings") -> "TranslationIndexer":
        documents = [
            DocumentSource(settings.resolve_document(settings.translation_primary))
        ]
        documents.extend(
            DocumentSource(settings.resolve_document(location), required=False)
            for location in settings.translation_supplements
        )
        return cls(documents, timeout=settings.http_timeout)

    def _build(self) -> TranslationIndex:
        self.build_count += 1
        return build_index(self.documents, timeout=self.timeout)

    async def get_index(self) -> TranslationIndex:
        if self._index is not None:
            return self._index

        if self._pending is None:
            self._pending = asyncio.get_running_loop().create_task(
                asyncio.to_thread(self._build)
            )
        try:
            index = await self._pending
        except Exception:
            self._pending = None
            raise

        self._index = index
        return index

    def get_index_sync(self) -> TranslationIndex:
        if self._index is None:
            self._index = self._build()
        return self._index
