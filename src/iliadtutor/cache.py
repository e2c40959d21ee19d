"""Persisted key/value memos.

Each memo is a namespace in the ``memo_entries`` table. Values are JSON.
Entries are never expired; writes are buffered until ``flush()``.

Caches that share a connection across threads must share one lock; it
guards both the in-memory entries and every statement on the connection.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from dataclasses import dataclass
from typing import Any, Iterator

logger = logging.getLogger(__name__)

HITS_NAMESPACE = "hits"
MORPHO_NAMESPACE = "morpho"
STATE_NAMESPACE = "state"

SELECTION_KEY = "selection"


class MemoCache:
    """In-memory view of one memo namespace with explicit load/flush."""

    def __init__(
        self,
        conn: sqlite3.Connection,
        namespace: str,
        lock: threading.RLock | None = None,
    ):
        self.conn = conn
        self.namespace = namespace
        self.lock = lock or threading.RLock()
        self._entries: dict[str, Any] = {}
        self._dirty: set[str] = set()

    def load(self) -> "MemoCache":
        """Replace in-memory entries with the persisted ones.

        Rows holding malformed JSON are skipped.
        """
        with self.lock:
            rows = self.conn.execute(
                "SELECT key, value FROM memo_entries WHERE namespace = ?",
                (self.namespace,),
            ).fetchall()
            entries = {}
            for row in rows:
                try:
                    entries[row["key"]] = json.loads(row["value"])
                except json.JSONDecodeError:
                    logger.warning(
                        f"Dropping malformed {self.namespace} memo entry: {row['key']!r}"
                    )
            self._entries = entries
            self._dirty.clear()
        return self

    def has(self, key: str) -> bool:
        with self.lock:
            return key in self._entries

    def get(self, key: str, default: Any = None) -> Any:
        with self.lock:
            return self._entries.get(key, default)

    def set(self, key: str, value: Any) -> None:
        with self.lock:
            self._entries[key] = value
            self._dirty.add(key)

    def flush(self) -> int:
        """Write pending entries. Returns the number written."""
        with self.lock:
            if not self._dirty:
                return 0
            rows = [
                (self.namespace, key, json.dumps(self._entries[key], ensure_ascii=False))
                for key in sorted(self._dirty)
            ]
            self.conn.executemany(
                "INSERT OR REPLACE INTO memo_entries (namespace, key, value) VALUES (?, ?, ?)",
                rows,
            )
            self.conn.commit()
            self._dirty.clear()
            return len(rows)

    def __contains__(self, key: str) -> bool:
        return self.has(key)

    def __len__(self) -> int:
        with self.lock:
            return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        with self.lock:
            return iter(list(self._entries))


@dataclass
class Selection:
    """Last book and first line chosen in the line selector."""

    book: str
    first_line: int


def load_selection(cache: MemoCache) -> Selection | None:
    """Read the cached selection; a malformed entry reads as None."""
    data = cache.get(SELECTION_KEY)
    if not isinstance(data, dict):
        return None
    try:
        return Selection(book=str(data["book"]), first_line=int(data["first_line"]))
    except (KeyError, TypeError, ValueError):
        return None


def save_selection(cache: MemoCache, selection: Selection) -> None:
    cache.set(
        SELECTION_KEY, {"book": selection.book, "first_line": selection.first_line}
    )
    cache.flush()
