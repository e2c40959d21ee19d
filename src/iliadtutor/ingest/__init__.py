"""Source document ingestion.

Public API:
    Translation index:
        build_index(documents) -> TranslationIndex
        TranslationIndexer(documents).get_index() -> TranslationIndex (memoized)

    Greek text:
        GreekText(location).load_book_window(book, first, last, max_lines)
"""

from iliadtutor.ingest.translation import (
    DocumentSource,
    TranslationEntry,
    TranslationIndex,
    TranslationIndexer,
    TranslationLoadError,
    build_index,
    merge_entries,
    parse_translation_xml,
)
from iliadtutor.ingest.greek_text import (
    GreekText,
    LineRecord,
    TextLoadError,
    window_range,
)

__all__ = [
    # Translation index
    "DocumentSource",
    "TranslationEntry",
    "TranslationIndex",
    "TranslationIndexer",
    "TranslationLoadError",
    "build_index",
    "merge_entries",
    "parse_translation_xml",
    # Greek text
    "GreekText",
    "LineRecord",
    "TextLoadError",
    "window_range",
]
