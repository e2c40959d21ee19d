"""API route definitions."""

from __future__ import annotations

import asyncio
import logging
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import PlainTextResponse

# Keep typing imports in namespace for Pydantic annotation evaluation
__typing_imports__ = (List, Optional)

from iliadtutor import __version__
from iliadtutor.api.models import (
    ChunkModel,
    DisplayBlockModel,
    HealthModel,
    HitsResponse,
    ImportLogRequest,
    ImportLogResponse,
    LineModel,
    LinesResponse,
    LogResponse,
    MorphologyResponse,
    ParseModel,
    SaveLogRequest,
    SaveLogResponse,
    SelectionModel,
    TutorAnalysisRequest,
    TutorAnalysisResponse,
)
from iliadtutor.api.state import Services
from iliadtutor.cache import Selection, load_selection, save_selection
from iliadtutor.engine.chunks import get_chunk
from iliadtutor.ingest.greek_text import window_range
from iliadtutor.keys import get_api_key
from iliadtutor.services.tutor import TutorRequest, WordGuess
from iliadtutor.studylog.codec import render_html
from iliadtutor.studylog.session import SessionLine, SessionRow, save_session

logger = logging.getLogger(__name__)

router = APIRouter()


def get_services(request: Request) -> Services:
    return request.app.state.services


ServicesDep = Annotated[Services, Depends(get_services)]


def _ping_db(services: Services) -> None:
    with services.lock:
        services.conn.execute("SELECT 1").fetchone()


def _require_word(word: str) -> str:
    word = word.strip()
    if not word:
        logger.info("No word provided in query.")
        raise HTTPException(status_code=400, detail="Missing word")
    return word


@router.get("/health", response_model=HealthModel)
async def health_check(services: ServicesDep):
    """Health check endpoint."""
    db_connected = False
    try:
        await asyncio.to_thread(_ping_db, services)
        db_connected = True
    except Exception as e:
        logger.warning(f"Health check database ping failed: {e}")

    return HealthModel(
        status="ok" if db_connected else "degraded",
        version=__version__,
        db_connected=db_connected,
        tutor_configured=get_api_key() is not None,
    )


@router.get("/hits", response_model=HitsResponse)
async def get_hits(
    services: ServicesDep,
    word: Annotated[str, Query(description="Greek word to search")] = "",
):
    """Concordance hit count for a word in the Iliad (memoized)."""
    word = _require_word(word)
    count = await asyncio.to_thread(services.frequency.lookup, word)
    return HitsResponse(word=word, results_length=count)


@router.get("/lookup", response_model=MorphologyResponse)
async def lookup_word(
    services: ServicesDep,
    word: Annotated[str, Query(description="Greek word to parse")] = "",
):
    """Morphological parses and short definitions for a word."""
    word = _require_word(word)
    result = await asyncio.to_thread(services.morphology.lookup, word)
    return MorphologyResponse(
        word=word,
        parses=[ParseModel(lemma=p.lemma, parse=p.parse) for p in result.parses],
        definitions=result.definitions,
    )


@router.post("/tutor-analysis", response_model=TutorAnalysisResponse)
async def tutor_analysis(body: TutorAnalysisRequest, services: ServicesDep):
    """Forward the learner's guesses to the tutor model."""
    client = services.tutor()
    request = TutorRequest(
        original_line=body.original_line,
        line_number=body.line_number,
        word_guesses=[
            WordGuess(g.word, g.translation_guess, g.form_guess)
            for g in body.word_guesses
        ],
        user_translation=body.user_translation,
    )
    analysis = await asyncio.to_thread(client.analyze, request)
    return TutorAnalysisResponse(analysis=analysis)


@router.get("/books", response_model=List[str])
async def list_books(services: ServicesDep):
    """Book identifiers available in the Greek text."""
    return await asyncio.to_thread(services.greek.list_books)


@router.get("/lines", response_model=LinesResponse)
async def get_lines(
    services: ServicesDep,
    book: Annotated[str, Query(description="Book identifier")],
    first_line: Annotated[int, Query(ge=1, description="First line of interest")],
    last_line: Annotated[
        Optional[int], Query(ge=1, description="Last line of interest")
    ] = None,
    max_lines: Annotated[
        Optional[int], Query(ge=1, le=500, description="Window size")
    ] = None,
):
    """A padded window of Greek lines."""
    size = max_lines or services.settings.selector_window
    if last_line is None:
        last_line = first_line + size - 1

    start, end = window_range(first_line, last_line, size)
    lines = await asyncio.to_thread(
        services.greek.load_book_window, book, first_line, last_line, size
    )
    return LinesResponse(
        book=book,
        first_line=start,
        last_line=end,
        lines=[LineModel(line_number=ln.line_number, text=ln.text) for ln in lines],
    )


@router.get("/translation-chunk", response_model=List[ChunkModel])
async def translation_chunk(
    services: ServicesDep,
    book: Annotated[str, Query(description="Book identifier")],
    line: Annotated[int, Query(ge=1, description="Line number")],
):
    """The reference translation window containing a line.

    An empty list means no translation is available for that window.
    """
    index = await services.indexer.get_index()
    chunks = get_chunk(index, book, line, services.settings.chunk_size)
    return [ChunkModel(start_line=c.start_line, text=c.text) for c in chunks]


@router.get("/log", response_model=LogResponse)
async def get_log(
    services: ServicesDep,
    limit: Annotated[Optional[int], Query(ge=0, description="Blocks to render")] = None,
):
    """The most recent study log blocks, oldest first."""
    if limit is None:
        limit = services.settings.log_display_limit
    blocks = await asyncio.to_thread(services.store.display, limit)
    total = await asyncio.to_thread(services.store.count)
    return LogResponse(
        total_blocks=total,
        blocks=[
            DisplayBlockModel(
                metadata=b.metadata, header=b.header, rows=b.rows, trailing=b.trailing
            )
            for b in blocks
        ],
        html=render_html(blocks),
    )


@router.get("/log/text", response_class=PlainTextResponse)
async def get_log_text(services: ServicesDep):
    """The whole study log in its flat-text format."""
    return await asyncio.to_thread(services.store.render_text)


@router.post("/log", response_model=SaveLogResponse)
async def save_log(body: SaveLogRequest, services: ServicesDep):
    """Append a study session to the log."""
    lines = [
        SessionLine(
            original_line=line.original_line,
            rows=[
                SessionRow(r.greek, r.translation, r.form, r.add_to_anki)
                for r in line.rows
            ],
            line_number=line.line_number,
            phrase_guess=line.phrase_guess,
        )
        for line in body.lines
    ]
    anki = services.anki if body.export_flashcards else None
    result = await asyncio.to_thread(
        save_session, services.store, lines, body.elapsed_ms, anki
    )
    return SaveLogResponse(
        saved=result.saved,
        seconds_per_line=result.seconds_per_line,
        next_first_line=result.next_first_line,
        flashcards_added=result.flashcards_added,
        flashcard_errors=result.flashcard_errors,
    )


@router.post("/log/import", response_model=ImportLogResponse)
async def import_log(body: ImportLogRequest, services: ServicesDep):
    """Import a flat-text log written by an earlier version."""
    imported = await asyncio.to_thread(services.store.import_text, body.text)
    return ImportLogResponse(imported=imported)


@router.get("/selection", response_model=Optional[SelectionModel])
async def get_selection(services: ServicesDep):
    """The cached book / first line selection, or null."""
    selection = await asyncio.to_thread(load_selection, services.state_cache)
    if selection is None:
        return None
    return SelectionModel(book=selection.book, first_line=selection.first_line)


@router.put("/selection", response_model=SelectionModel)
async def put_selection(body: SelectionModel, services: ServicesDep):
    """Remember the book / first line selection."""
    await asyncio.to_thread(
        save_selection,
        services.state_cache,
        Selection(book=body.book, first_line=body.first_line),
    )
    return body
