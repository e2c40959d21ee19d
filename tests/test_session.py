"""Tests for saving a study session."""

import pytest

from iliadtutor.services.anki import AnkiConnectError
from iliadtutor.studylog.session import SessionLine, SessionRow, save_session
from iliadtutor.studylog.store import StudyLogStore


class FakeAnki:
    """Records flashcards instead of talking to Anki."""

    def __init__(self, fail_on=()):
        self.cards = []
        self.fail_on = set(fail_on)

    def add_flashcard(self, context, greek, translation, phrase_guess=""):
        if greek in self.fail_on:
            raise AnkiConnectError("cannot create note because it is a duplicate")
        self.cards.append((context, greek, translation, phrase_guess))
        return len(self.cards)


@pytest.fixture
def store(db_conn):
    return StudyLogStore(db_conn)


@pytest.fixture
def lines():
    return [
        SessionLine(
            original_line="μῆνιν ἄειδε θεὰ",
            rows=[
                SessionRow("μῆνιν", " wrath ", "acc.", add_to_anki=True),
                SessionRow("ἄειδε", "sing", "imp."),
            ],
            line_number=12,
            phrase_guess=" Sing the wrath ",
        ),
        SessionLine(original_line="skipped", line_number=13),
        SessionLine(
            original_line="οὐλομένην",
            rows=[SessionRow("οὐλομένην", "accursed", "", add_to_anki=True)],
            line_number=14,
        ),
    ]


class TestSaveSession:
    """Tests for save_session."""

    def test_saves_lines_with_rows(self, store, lines):
        result = save_session(store, lines, 20000)

        assert result.saved == 2
        assert result.seconds_per_line == "10.00"
        assert [b.line_number for b in store.blocks()] == [12, 14]
        assert all(b.seconds_per_line == "10.00" for b in store.blocks())

    def test_fields_trimmed(self, store, lines):
        save_session(store, lines, 20000)

        first = store.blocks()[0]
        assert first.rows[0].translation == "wrath"
        assert first.phrase_guess == "Sing the wrath"
        assert store.blocks()[1].phrase_guess is None

    def test_next_first_line(self, store, lines):
        assert save_session(store, lines, 20000).next_first_line == 15

    def test_nothing_to_save(self, store):
        result = save_session(store, [SessionLine("only text")], 5000)

        assert result.saved == 0
        assert result.seconds_per_line is None
        assert result.next_first_line is None
        assert store.count() == 0

    def test_flashcards_for_flagged_rows(self, store, lines):
        anki = FakeAnki()

        result = save_session(store, lines, 20000, anki)

        assert result.flashcards_added == 2
        assert anki.cards == [
            ("μῆνιν ἄειδε θεὰ", "μῆνιν", "wrath", "Sing the wrath"),
            ("μῆνιν ἄειδε θεὰ<br>οὐλομένην", "οὐλομένην", "accursed", ""),
        ]

    def test_context_uses_previously_saved_line(self, store, lines):
        save_session(store, lines[2:], 1000)
        anki = FakeAnki()

        save_session(store, lines[:1], 1000, anki)

        assert anki.cards[0][0] == "οὐλομένην<br>μῆνιν ἄειδε θεὰ"

    def test_flashcard_failure_does_not_abort(self, store, lines):
        anki = FakeAnki(fail_on={"μῆνιν"})

        result = save_session(store, lines, 20000, anki)

        assert result.saved == 2
        assert result.flashcards_added == 1
        assert len(result.flashcard_errors) == 1
        assert "duplicate" in result.flashcard_errors[0]
