"""Flat-text study log format.

Each saved line is one self-delimited block:

    ===START_BLOCK===
    Line Number: 12
    Original Line: ἣ μυρί᾽ Ἀχαιοῖς ἄλγε᾽ ἔθηκε,
    | Word (Greek) | Word (Translation) | Form |
    | μυρί | countless | acc. pl. neut. |
    Phrase Guess: which set countless pains on the Achaeans
    Time Data: 41.20 seconds per line
    ===END_BLOCK===

Blocks concatenate into one append-only log. Decoding is for display only;
``parse_log`` recovers structured blocks on a best-effort basis for
importing logs written by earlier versions.
"""

from __future__ import annotations

import html
from dataclasses import dataclass, field, replace
from typing import Iterable, Sequence

START_MARKER = "===START_BLOCK==="
END_MARKER = "===END_BLOCK==="
TABLE_HEADER = "| Word (Greek) | Word (Translation) | Form |"
DISPLAY_LIMIT = 10
EMPTY_LOG_MESSAGE = "No translations logged yet."


@dataclass
class WordRow:
    """One word of a line's word table."""

    greek: str
    translation: str = ""
    form: str = ""


@dataclass
class StudyLogBlock:
    """One line's saved study record."""

    original_line: str
    rows: list[WordRow] = field(default_factory=list)
    line_number: int | None = None
    phrase_guess: str | None = None
    seconds_per_line: str = "0.00"


@dataclass
class DisplayBlock:
    """A decoded block, ready for rendering."""

    metadata: list[str] = field(default_factory=list)
    header: list[str] = field(default_factory=list)
    rows: list[list[str]] = field(default_factory=list)
    trailing: list[str] = field(default_factory=list)


def _single_line(value: str | None) -> str:
    # Newlines inside a field would split the record
    return " ".join((value or "").split())


def encode_block(block: StudyLogBlock) -> str:
    """
    Serialize one block, including its trailing blank line.

    Raises:
        ValueError: If the block has no word rows; such lines are never logged
    """
    if not block.rows:
        raise ValueError("Cannot encode a study block without word rows")

    lines = [START_MARKER]
    if block.line_number is not None:
        lines.append(f"Line Number: {int(block.line_number)}")
    lines.append(f"Original Line: {_single_line(block.original_line)}")
    lines.append(TABLE_HEADER)
    for row in block.rows:
        lines.append(
            f"| {_single_line(row.greek)} | {_single_line(row.translation)} "
            f"| {_single_line(row.form)} |"
        )
    guess = _single_line(block.phrase_guess)
    if guess:
        lines.append(f"Phrase Guess: {guess}")
    lines.append(f"Time Data: {block.seconds_per_line} seconds per line")
    lines.append(END_MARKER)
    return "\n".join(lines) + "\n\n"


def seconds_per_line(elapsed_ms: float, blocks: Iterable[StudyLogBlock]) -> str | None:
    """Average seconds per line over blocks that have word rows.

    Returns None when no block has rows.
    """
    valid = sum(1 for block in blocks if block.rows)
    if valid == 0:
        return None
    return f"{elapsed_ms / 1000 / valid:.2f}"


def encode_session(blocks: Sequence[StudyLogBlock], elapsed_ms: float) -> str:
    """Encode a study session, stamping the averaged timing on every block.

    Blocks without rows are left out entirely.
    """
    average = seconds_per_line(elapsed_ms, blocks)
    if average is None:
        return ""
    return "".join(
        encode_block(replace(block, seconds_per_line=average))
        for block in blocks
        if block.rows
    )


def append_log(existing: str, new_text: str) -> str:
    """Append encoded blocks to a log without touching earlier text."""
    return existing + new_text


def split_blocks(text: str) -> list[str]:
    """Return the trimmed body of every block, oldest first.

    Text before the first start marker and empty fragments are dropped.
    """
    bodies = []
    for chunk in text.split(START_MARKER)[1:]:
        body = chunk.split(END_MARKER, 1)[0].strip()
        if body:
            bodies.append(body)
    return bodies


def split_cells(line: str) -> list[str]:
    """Trimmed, non-empty cells of a ``| a | b |`` table line."""
    return [cell.strip() for cell in line[1:].split("|") if cell.strip()]


def _is_empty_phrase_guess(line: str) -> bool:
    return line.startswith("Phrase Guess:") and not line.split(":", 1)[1].strip()


def decode_block(body: str) -> DisplayBlock:
    """Decode one block body into display sections."""
    lines = body.splitlines()
    table_start = next(
        (i for i, line in enumerate(lines) if line.startswith("|")), None
    )
    if table_start is None:
        return DisplayBlock(metadata=[line for line in lines if line.strip()])

    table_end = table_start
    while table_end < len(lines) and lines[table_end].startswith("|"):
        table_end += 1

    return DisplayBlock(
        metadata=[line for line in lines[:table_start] if line.strip()],
        header=split_cells(lines[table_start]),
        rows=[split_cells(line) for line in lines[table_start + 1 : table_end]],
        trailing=[
            line
            for line in lines[table_end:]
            if line.strip() and not _is_empty_phrase_guess(line)
        ],
    )


def decode_log(text: str, limit: int | None = DISPLAY_LIMIT) -> list[DisplayBlock]:
    """
    Decode a log for display.

    Args:
        text: Full log text
        limit: Render only this many most recent blocks (None for all)

    Returns:
        Display blocks in chronological order
    """
    bodies = split_blocks(text)
    if limit is not None:
        bodies = bodies[-limit:] if limit > 0 else []
    return [decode_block(body) for body in bodies]


def _field_value(line: str) -> str:
    return line.split(":", 1)[1].strip() if ":" in line else ""


def _parse_row(line: str) -> WordRow:
    cells = [cell.strip() for cell in line.strip().strip("|").split("|")]
    if len(cells) < 3:
        cells += [""] * (3 - len(cells))
    return WordRow(
        greek=cells[0],
        translation=" | ".join(cells[1:-1]),
        form=cells[-1],
    )


def parse_log(text: str) -> list[StudyLogBlock]:
    """
    Parse a text log back into structured blocks.

    Best effort: blocks without an ``Original Line`` or without word rows
    are dropped.
    """
    blocks = []
    for body in split_blocks(text):
        line_number = None
        original_line = None
        phrase_guess = None
        timing = "0.00"
        rows: list[WordRow] = []
        seen_header = False

        for line in body.splitlines():
            if line.startswith("|"):
                if seen_header:
                    rows.append(_parse_row(line))
                seen_header = True
            elif line.startswith("Line Number:"):
                value = _field_value(line)
                line_number = int(value) if value.isdigit() else None
            elif line.startswith("Original Line:"):
                original_line = _field_value(line)
            elif line.startswith("Phrase Guess:"):
                phrase_guess = _field_value(line) or None
            elif line.startswith("Time Data:"):
                timing = _field_value(line).split(" ", 1)[0] or timing

        if original_line is None or not rows:
            continue
        blocks.append(
            StudyLogBlock(
                original_line=original_line,
                rows=rows,
                line_number=line_number,
                phrase_guess=phrase_guess,
                seconds_per_line=timing,
            )
        )
    return blocks


def render_html(blocks: Sequence[DisplayBlock]) -> str:
    """Render display blocks as metadata paragraphs plus a table each."""
    if not blocks:
        return f"<p>{EMPTY_LOG_MESSAGE}</p>"

    parts = []
    for block in blocks:
        parts.append('<div class="translation-block">')
        parts.extend(f"<p>{html.escape(line)}</p>" for line in block.metadata)
        parts.append('<table class="translation-grid">')
        if block.header:
            cells = "".join(f"<th>{html.escape(h)}</th>" for h in block.header)
            parts.append(f"<thead><tr>{cells}</tr></thead>")
        for row in block.rows:
            cells = "".join(f"<td>{html.escape(c)}</td>" for c in row)
            parts.append(f"<tr>{cells}</tr>")
        parts.append("</table>")
        parts.extend(f"<p>{html.escape(line)}</p>" for line in block.trailing)
        parts.append("</div>")
    return "\n".join(parts)
