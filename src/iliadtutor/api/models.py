"""Pydantic models for API."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class HealthModel(BaseModel):
    """Health check response."""

    status: str
    version: str
    db_connected: bool
    tutor_configured: bool


class HitsResponse(BaseModel):
    """Concordance hit count for a word."""

    word: str = Field(..., description="Greek word searched")
    results_length: int = Field(..., description="Number of concordance hits")


class ParseModel(BaseModel):
    """One morphological analysis."""

    lemma: str = Field(..., description="Dictionary headword")
    parse: str = Field(..., description="Morphological description")


class MorphologyResponse(BaseModel):
    """Morphology lookup result."""

    word: str
    parses: List[ParseModel] = Field(default_factory=list)
    definitions: List[str] = Field(default_factory=list)


class WordGuessModel(BaseModel):
    """Learner's guess for one word."""

    word: str
    translation_guess: str = ""
    form_guess: str = ""


class TutorAnalysisRequest(BaseModel):
    """Request body for POST /tutor-analysis."""

    line_number: Optional[int] = Field(None, description="Source line number")
    original_line: str = Field(..., description="Greek line text")
    word_guesses: List[WordGuessModel] = Field(default_factory=list)
    user_translation: str = Field("", description="Learner's phrase translation")


class TutorAnalysisResponse(BaseModel):
    """Tutor critique."""

    analysis: str


class LineModel(BaseModel):
    """A numbered Greek line."""

    line_number: int
    text: str


class LinesResponse(BaseModel):
    """A window of Greek lines."""

    book: str
    first_line: int
    last_line: int
    lines: List[LineModel]


class ChunkModel(BaseModel):
    """A reference translation window."""

    start_line: int = Field(..., description="First line number of the window")
    text: str = Field(..., description="Merged translation text")


class DisplayBlockModel(BaseModel):
    """A decoded study log block."""

    metadata: List[str]
    header: List[str]
    rows: List[List[str]]
    trailing: List[str]


class LogResponse(BaseModel):
    """Recent study log blocks."""

    total_blocks: int = Field(..., description="Blocks stored in the log")
    blocks: List[DisplayBlockModel]
    html: str = Field(..., description="HTML rendering of the blocks")


class SessionRowModel(BaseModel):
    """A word-table row."""

    greek: str
    translation: str = ""
    form: str = ""
    add_to_anki: bool = False


class SessionLineModel(BaseModel):
    """One line of a study session."""

    line_number: Optional[int] = None
    original_line: str
    rows: List[SessionRowModel] = Field(default_factory=list)
    phrase_guess: str = ""


class SaveLogRequest(BaseModel):
    """Request body for POST /log."""

    elapsed_ms: float = Field(..., ge=0, description="Time since the grids were generated")
    lines: List[SessionLineModel]
    export_flashcards: bool = Field(True, description="Send flagged rows to Anki")


class SaveLogResponse(BaseModel):
    """Result of saving a session."""

    saved: int
    seconds_per_line: Optional[str] = None
    next_first_line: Optional[int] = None
    flashcards_added: int = 0
    flashcard_errors: List[str] = Field(default_factory=list)


class ImportLogRequest(BaseModel):
    """Request body for POST /log/import."""

    text: str = Field(..., description="Flat-text study log")


class ImportLogResponse(BaseModel):
    """Result of a log import."""

    imported: int


class SelectionModel(BaseModel):
    """Cached line selector state."""

    book: str
    first_line: int = Field(..., ge=1)
