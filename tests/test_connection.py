"""Tests for database connection and Unicode normalization."""

import unicodedata

from iliadtutor.db.connection import get_connection, init_db, normalize_greek


class TestNormalizeGreek:
    """Tests for Greek text normalization."""

    def test_nfc_normalization(self):
        """Composed and decomposed spellings normalize to the same key."""
        composed = "ἄειδε"
        decomposed = unicodedata.normalize("NFD", composed)

        assert composed != decomposed
        assert normalize_greek(composed) == normalize_greek(decomposed)

    def test_already_normalized_unchanged(self):
        text = "Πηληϊάδεω"
        assert normalize_greek(text) == text


class TestGetConnection:
    """Tests for database connection setup."""

    def test_wal_mode_enabled(self, tmp_path):
        conn = get_connection(tmp_path / "test.db")

        assert conn.execute("PRAGMA journal_mode").fetchone()[0] == "wal"
        conn.close()

    def test_parent_directory_created(self, tmp_path):
        db_path = tmp_path / "nested" / "dir" / "test.db"
        conn = get_connection(db_path)

        assert db_path.parent.is_dir()
        conn.close()

    def test_row_factory(self, db_conn):
        row = db_conn.execute("SELECT 1 AS one").fetchone()
        assert row["one"] == 1


class TestInitDb:
    """Tests for schema creation."""

    def test_tables_created(self, db_conn):
        names = {
            row["name"]
            for row in db_conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
        }
        assert {"memo_entries", "study_log"} <= names

    def test_idempotent(self, db_conn):
        init_db(db_conn)
        init_db(db_conn)
