"""Append-only study log persisted as one row per saved line.

Rows are rendered back to the flat-text block format on read, so the
display path and text exports see exactly what earlier versions wrote.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from datetime import datetime, timezone
from typing import Sequence

from iliadtutor.studylog.codec import (
    DISPLAY_LIMIT,
    DisplayBlock,
    StudyLogBlock,
    WordRow,
    decode_log,
    encode_block,
    parse_log,
)

logger = logging.getLogger(__name__)


class StudyLogStore:
    """Append-only store of StudyLogBlocks.

    Pass the lock shared by every user of ``conn`` when the connection is
    used from several threads.
    """

    def __init__(self, conn: sqlite3.Connection, lock: threading.RLock | None = None):
        self.conn = conn
        self.lock = lock or threading.RLock()

    def append(self, blocks: Sequence[StudyLogBlock]) -> int:
        """Append blocks in order. Blocks without rows are skipped.

        Returns:
            Number of blocks written
        """
        created_at = datetime.now(timezone.utc).isoformat()
        rows = []
        for block in blocks:
            if not block.rows:
                continue
            rows.append(
                (
                    block.line_number,
                    block.original_line,
                    json.dumps(
                        [[r.greek, r.translation, r.form] for r in block.rows],
                        ensure_ascii=False,
                    ),
                    block.phrase_guess or None,
                    block.seconds_per_line,
                    created_at,
                )
            )
        if not rows:
            return 0

        with self.lock:
            self.conn.executemany(
                """
                INSERT INTO study_log
                    (line_number, original_line, rows_json, phrase_guess,
                     seconds_per_line, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                rows,
            )
            self.conn.commit()
        logger.info(f"Appended {len(rows)} study log blocks")
        return len(rows)

    def _row_to_block(self, row: sqlite3.Row) -> StudyLogBlock | None:
        try:
            cells = json.loads(row["rows_json"])
        except json.JSONDecodeError:
            logger.warning(f"Skipping study log row {row['id']} with malformed rows")
            return None
        return StudyLogBlock(
            original_line=row["original_line"],
            rows=[WordRow(*cell[:3]) for cell in cells],
            line_number=row["line_number"],
            phrase_guess=row["phrase_guess"],
            seconds_per_line=row["seconds_per_line"],
        )

    def blocks(self, limit: int | None = None) -> list[StudyLogBlock]:
        """Stored blocks oldest first; with ``limit``, only the most recent."""
        with self.lock:
            if limit is None:
                rows = self.conn.execute("SELECT * FROM study_log ORDER BY id").fetchall()
            else:
                rows = self.conn.execute(
                    "SELECT * FROM study_log ORDER BY id DESC LIMIT ?", (limit,)
                ).fetchall()[::-1]

        blocks = []
        for row in rows:
            block = self._row_to_block(row)
            if block is not None and block.rows:
                blocks.append(block)
        return blocks

    def count(self) -> int:
        with self.lock:
            return self.conn.execute("SELECT COUNT(*) FROM study_log").fetchone()[0]

    def render_text(self, limit: int | None = None) -> str:
        """The log in its flat-text block format."""
        return "".join(encode_block(block) for block in self.blocks(limit))

    def display(self, limit: int = DISPLAY_LIMIT) -> list[DisplayBlock]:
        """Decode the most recent blocks for display, oldest first."""
        return decode_log(self.render_text(limit), limit=limit)

    def last_original_line(self) -> str | None:
        with self.lock:
            row = self.conn.execute(
                "SELECT original_line FROM study_log ORDER BY id DESC LIMIT 1"
            ).fetchone()
        return row["original_line"] if row else None

    def import_text(self, text: str) -> int:
        """Append blocks parsed from a flat-text log. Returns the count."""
        blocks = parse_log(text)
        if not blocks:
            logger.warning("No study log blocks found to import")
            return 0
        return self.append(blocks)
