"""Tests for the reference translation indexer."""

import asyncio
import logging

import pytest

from iliadtutor.ingest.translation import (
    DocumentSource,
    TranslationEntry,
    TranslationIndexer,
    TranslationLoadError,
    build_index,
    merge_entries,
    normalize_book_id,
    parse_line_number,
    parse_translation_xml,
)


def _texts(entries):
    return {e.line_number: e.text for e in entries}


class TestParseTranslationXml:
    """Tests for parsing one translation document."""

    def test_text_between_milestones_belongs_to_first(self, primary_xml):
        """Each milestone owns the text up to the next milestone."""
        books = parse_translation_xml(primary_xml)

        assert _texts(books["1"]) == {
            1: "The wrath sing, goddess,",
            3: "that brought countless woes,",
            5: "and sent forth many souls",
            8: "to Hades.",
        }

    def test_book_subtype_case_insensitive(self, primary_xml):
        """Both subtype="Book" and subtype="book" are books."""
        books = parse_translation_xml(primary_xml)
        assert set(books) == {"1", "3"}

    def test_pre_anchor_text_becomes_line_one(self, primary_xml):
        """Text before the first milestone of a book is kept as line 1."""
        books = parse_translation_xml(primary_xml)

        assert _texts(books["3"]) == {
            1: "Now when they were marshalled",
            2: "each with their leaders",
        }

    def test_book_without_milestones(self):
        """A book with text but no milestones yields a single line 1."""
        xml = (
            '<TEI><div type="translation">'
            '<div type="textpart" subtype="book" n="4"><p>Thus they spoke</p></div>'
            "</div></TEI>"
        )
        books = parse_translation_xml(xml)
        assert books["4"] == [TranslationEntry(1, "Thus they spoke")]

    def test_repeated_milestone_accumulates(self):
        """A line number seen twice in one document collects both texts."""
        xml = (
            '<TEI><div type="translation"><div type="textpart" subtype="book" n="1">'
            '<p><milestone unit="line" n="1"/>first part</p>'
            '<p><milestone unit="line" n="1"/>second part</p>'
            "</div></div></TEI>"
        )
        books = parse_translation_xml(xml)
        assert books["1"] == [TranslationEntry(1, "first part second part")]

    def test_non_line_milestones_ignored(self):
        """Milestones for other units do not open entries."""
        xml = (
            '<TEI><div type="translation"><div type="textpart" subtype="book" n="1">'
            '<p><milestone unit="line" n="1"/>sing <milestone unit="para"/>on</p>'
            "</div></div></TEI>"
        )
        books = parse_translation_xml(xml)
        assert _texts(books["1"]) == {1: "sing on"}

    def test_malformed_xml_raises(self):
        """Unparseable XML raises TranslationLoadError."""
        with pytest.raises(TranslationLoadError, match="Malformed"):
            parse_translation_xml("<TEI><div>")

    def test_missing_translation_div_raises(self):
        """A document without a translation body is rejected."""
        with pytest.raises(TranslationLoadError, match="translation"):
            parse_translation_xml('<TEI><div type="edition"/></TEI>')


class TestHelpers:
    """Tests for small parsing helpers."""

    def test_normalize_book_id(self):
        assert normalize_book_id("01") == "1"
        assert normalize_book_id(12) == "12"
        assert normalize_book_id(" 3 ") == "3"
        assert normalize_book_id("A") == "A"

    def test_parse_line_number(self):
        assert parse_line_number("12") == 12
        assert parse_line_number("12a") == 12
        assert parse_line_number("x") is None
        assert parse_line_number(None) is None

    def test_merge_entries_overlay_wins(self):
        """Overlay replaces shared lines and fills missing ones, sorted."""
        base = [TranslationEntry(1, "a"), TranslationEntry(5, "b")]
        overlay = [TranslationEntry(5, "B"), TranslationEntry(3, "c")]

        merged = merge_entries(base, overlay)

        assert merged == (
            TranslationEntry(1, "a"),
            TranslationEntry(3, "c"),
            TranslationEntry(5, "B"),
        )


class TestBuildIndex:
    """Tests for layering several documents."""

    def test_supplement_overrides_and_adds(self, corpus_dir):
        """Later documents override shared lines and add new books."""
        index = build_index(
            [
                DocumentSource(str(corpus_dir / "murrayTranslation.xml")),
                DocumentSource(
                    str(corpus_dir / "murrayTranslationSupplement.xml"), required=False
                ),
            ]
        )

        book1 = _texts(index["1"])
        assert book1[5] == "and hurled many mighty souls"
        assert book1[1] == "The wrath sing, goddess,"
        assert _texts(index["2"]) == {1: "Now all other gods slept"}
        assert [e.line_number for e in index["1"]] == [1, 3, 5, 8]

    def test_missing_primary_is_fatal(self, tmp_path):
        """A required document that cannot be read raises."""
        with pytest.raises(TranslationLoadError, match="Could not load"):
            build_index([DocumentSource(str(tmp_path / "missing.xml"))])

    def test_missing_supplement_is_skipped(self, corpus_dir, tmp_path, caplog):
        """An optional document that cannot be read is logged and skipped."""
        with caplog.at_level(logging.WARNING):
            index = build_index(
                [
                    DocumentSource(str(corpus_dir / "murrayTranslation.xml")),
                    DocumentSource(str(tmp_path / "missing.xml"), required=False),
                ]
            )

        assert _texts(index["1"])[5] == "and sent forth many souls"
        assert "Skipping optional translation document" in caplog.text

    def test_no_documents_raises(self):
        with pytest.raises(TranslationLoadError):
            build_index([])


class TestTranslationIndexer:
    """Tests for the process-lifetime index memo."""

    def test_built_once(self, settings):
        """Repeated requests reuse the first build."""
        indexer = TranslationIndexer.from_settings(settings)

        first = indexer.get_index_sync()
        second = indexer.get_index_sync()

        assert first is second
        assert indexer.build_count == 1

    def test_concurrent_requests_share_build(self, settings):
        """Requests arriving while the build runs await the same build."""
        indexer = TranslationIndexer.from_settings(settings)

        async def run():
            return await asyncio.gather(*(indexer.get_index() for _ in range(5)))

        results = asyncio.run(run())

        assert indexer.build_count == 1
        assert all(r is results[0] for r in results)

    def test_failure_not_memoized(self, settings, corpus_dir):
        """A failed build is retried by the next request."""
        primary = corpus_dir / "murrayTranslation.xml"
        primary.rename(corpus_dir / "moved.xml")
        indexer = TranslationIndexer.from_settings(settings)

        with pytest.raises(TranslationLoadError):
            asyncio.run(indexer.get_index())

        (corpus_dir / "moved.xml").rename(primary)
        index = asyncio.run(indexer.get_index())

        assert "1" in index
        assert indexer.build_count == 2
