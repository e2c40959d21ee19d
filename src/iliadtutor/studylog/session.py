"""Saving a study session: timing, log append, flashcards."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

from iliadtutor.services.anki import AnkiConnectClient, AnkiConnectError
from iliadtutor.studylog.codec import StudyLogBlock, WordRow, seconds_per_line
from iliadtutor.studylog.store import StudyLogStore

logger = logging.getLogger(__name__)


@dataclass
class SessionRow(WordRow):
    """A word-table row as edited, with its flashcard flag."""

    add_to_anki: bool = False


@dataclass
class SessionLine:
    """One line of the study session as edited."""

    original_line: str
    rows: list[SessionRow] = field(default_factory=list)
    line_number: int | None = None
    phrase_guess: str = ""

    def to_block(self, timing: str) -> StudyLogBlock:
        return StudyLogBlock(
            original_line=self.original_line,
            rows=[
                WordRow(r.greek.strip(), r.translation.strip(), r.form.strip())
                for r in self.rows
            ],
            line_number=self.line_number,
            phrase_guess=self.phrase_guess.strip() or None,
            seconds_per_line=timing,
        )


@dataclass
class SaveResult:
    """Outcome of a save."""

    saved: int = 0
    seconds_per_line: str | None = None
    last_line_number: int | None = None
    flashcards_added: int = 0
    flashcard_errors: list[str] = field(default_factory=list)

    @property
    def next_first_line(self) -> int | None:
        if self.last_line_number is None:
            return None
        return self.last_line_number + 1


def save_session(
    store: StudyLogStore,
    lines: Sequence[SessionLine],
    elapsed_ms: float,
    anki: AnkiConnectClient | None = None,
) -> SaveResult:
    """
    Append a session's lines to the study log.

    Lines without word rows are neither counted nor saved. Flashcard
    failures are reported in the result and never abort the save.
    """
    timing = seconds_per_line(elapsed_ms, [line.to_block("") for line in lines])
    if timing is None:
        return SaveResult()

    result = SaveResult(seconds_per_line=timing)
    previous_line = store.last_original_line()
    blocks = []

    for line in lines:
        if not line.rows:
            continue
        block = line.to_block(timing)
        blocks.append(block)
        if block.line_number is not None:
            result.last_line_number = block.line_number

        context = (
            f"{previous_line}<br>{block.original_line}"
            if previous_line
            else block.original_line
        )
        previous_line = block.original_line

        if anki is None:
            continue
        for row in line.rows:
            if not row.add_to_anki:
                continue
            try:
                anki.add_flashcard(
                    context,
                    row.greek.strip(),
                    row.translation.strip(),
                    block.phrase_guess or "",
                )
                result.flashcards_added += 1
            except AnkiConnectError as e:
                logger.error(f"Error adding flashcard for {row.greek!r}: {e}")
                result.flashcard_errors.append(f"{row.greek}: {e}")

    result.saved = store.append(blocks)
    return result
