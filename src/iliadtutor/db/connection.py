"""SQLite connection management."""

import sqlite3
import unicodedata
from pathlib import Path


def normalize_greek(text: str) -> str:
    """
    Normalize Greek text to NFC form.

    Memo keys are looked up by surface form, so composed and decomposed
    spellings of the same word must map to one key.

    Args:
        text: Greek text (surface form, lemma, etc.)

    Returns:
        NFC-normalized text
    """
    return unicodedata.normalize("NFC", text)


def get_connection(db_path: Path, check_same_thread: bool = True) -> sqlite3.Connection:
    """
    Get a SQLite connection with row factory and WAL mode.

    The parent directory is created on first use. Pass
    check_same_thread=False when one connection is shared across threads;
    callers then serialize access with a shared lock.
    """
    if str(db_path) != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_path, check_same_thread=check_same_thread)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode = WAL")
    return conn


def init_db(conn: sqlite3.Connection) -> None:
    """Initialize database schema."""
    conn.executescript("""
        -- memo_entries: flat key/value memos (frequency, morphology, selection)
        CREATE TABLE IF NOT EXISTS memo_entries (
            namespace TEXT NOT NULL,
            key TEXT NOT NULL,
            value TEXT NOT NULL,
            PRIMARY KEY (namespace, key)
        );

        -- study_log: append-only saved study records, one row per line
        CREATE TABLE IF NOT EXISTS study_log (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            line_number INTEGER,
            original_line TEXT NOT NULL,
            rows_json TEXT NOT NULL,
            phrase_guess TEXT,
            seconds_per_line TEXT NOT NULL,
            created_at TEXT NOT NULL
        );
    """)
    conn.commit()
