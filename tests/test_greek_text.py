"""Tests for loading Greek line windows."""

import unicodedata
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import patch

import pytest

from iliadtutor.ingest.greek_text import (
    GreekText,
    TextLoadError,
    parse_greek_xml,
    window_range,
)
from iliadtutor.ingest.translation import read_document


@pytest.fixture
def greek(corpus_dir):
    return GreekText(str(corpus_dir / "illiadGreek.xml"))


class TestWindowRange:
    """Tests for the served line range."""

    def test_short_span_padded_backwards(self):
        assert window_range(15, 15, 10) == (6, 15)

    def test_padding_stops_at_line_one(self):
        """Near the start of a book the window is not shifted forward."""
        assert window_range(3, 4, 10) == (1, 4)
        assert window_range(1, 1, 10) == (1, 1)

    def test_long_span_cut(self):
        assert window_range(5, 30, 10) == (5, 14)

    def test_exact_span_unchanged(self):
        assert window_range(11, 20, 10) == (11, 20)

    def test_reversed_span_swapped(self):
        assert window_range(20, 10, 10) == (10, 19)


class TestParseGreekXml:
    """Tests for parsing the Greek text."""

    def test_lines_are_nfc(self):
        decomposed = unicodedata.normalize("NFD", "μῆνιν ἄειδε")
        xml = (
            '<TEI><div type="textpart" subtype="Book" n="1">'
            f'<l n="1">{decomposed}</l></div></TEI>'
        )
        books = parse_greek_xml(xml)
        assert books["1"][0].text == unicodedata.normalize("NFC", decomposed)

    def test_unnumbered_lines_skipped(self):
        xml = (
            '<TEI><div type="textpart" subtype="book" n="1">'
            '<l n="1">a</l><l>b</l><l n="2a">c</l></div></TEI>'
        )
        books = parse_greek_xml(xml)
        assert [(r.line_number, r.text) for r in books["1"]] == [(1, "a"), (2, "c")]

    def test_malformed_raises(self):
        with pytest.raises(TextLoadError):
            parse_greek_xml("<TEI>")


class TestGreekText:
    """Tests for the lazily loaded Greek text."""

    def test_list_books(self, greek):
        assert greek.list_books() == ["1", "2"]

    def test_load_book_range(self, greek):
        lines = greek.load_book("1", 3, 5)
        assert [r.line_number for r in lines] == [3, 4, 5]
        assert lines[0].text == "στίχος 3"

    def test_load_whole_book(self, greek):
        assert len(greek.load_book("2")) == 3

    def test_window_padded(self, greek):
        lines = greek.load_book_window("1", 15, 15, 10)
        assert [r.line_number for r in lines] == list(range(6, 16))

    def test_window_past_book_end(self, greek):
        """A window running past the last line returns what exists."""
        lines = greek.load_book_window("2", 2, 11, 10)
        assert [r.line_number for r in lines] == [2, 3]

    def test_unknown_book_empty(self, greek):
        assert greek.load_book_window("24", 1, 1, 10) == []

    def test_missing_document_raises(self, tmp_path):
        text = GreekText(str(tmp_path / "missing.xml"))
        with pytest.raises(TextLoadError, match="Could not load"):
            text.list_books()

    def test_loaded_once_across_threads(self, greek):
        with patch(
            "iliadtutor.ingest.greek_text.read_document", wraps=read_document
        ) as read:
            with ThreadPoolExecutor(max_workers=8) as pool:
                results = list(pool.map(lambda _: greek.list_books(), range(16)))

        assert read.call_count == 1
        assert all(books == results[0] for books in results)
