"""Per-app service wiring."""

from __future__ import annotations

import sqlite3
import threading
from dataclasses import dataclass, field
from typing import Callable

from iliadtutor.cache import HITS_NAMESPACE, MORPHO_NAMESPACE, STATE_NAMESPACE, MemoCache
from iliadtutor.config import Settings
from iliadtutor.db.connection import get_connection, init_db
from iliadtutor.ingest.greek_text import GreekText
from iliadtutor.ingest.translation import TranslationIndexer
from iliadtutor.services.anki import AnkiConnectClient
from iliadtutor.services.browser import PageRenderer
from iliadtutor.services.corpus import CorpusFrequencyService, PhilologicClient
from iliadtutor.services.morphology import LogeionClient, MorphologyService
from iliadtutor.services.tutor import TutorClient
from iliadtutor.studylog.store import StudyLogStore


@dataclass
class Services:
    """Everything the routes need, built once per app.

    Handlers run blocking work in worker threads, so every user of ``conn``
    holds ``lock`` around its statements.
    """

    settings: Settings
    conn: sqlite3.Connection
    indexer: TranslationIndexer
    greek: GreekText
    frequency: CorpusFrequencyService
    morphology: MorphologyService
    store: StudyLogStore
    state_cache: MemoCache
    tutor_factory: Callable[[], TutorClient]
    anki: AnkiConnectClient | None = None
    lock: threading.RLock = field(default_factory=threading.RLock)
    _tutor: TutorClient | None = field(default=None, init=False, repr=False)

    @classmethod
    def from_settings(cls, settings: Settings) -> "Services":
        conn = get_connection(settings.db_path, check_same_thread=False)
        init_db(conn)
        lock = threading.RLock()

        timeout = settings.http_timeout
        return cls(
            settings=settings,
            conn=conn,
            indexer=TranslationIndexer.from_settings(settings),
            greek=GreekText(settings.resolve_document(settings.greek_text), timeout),
            frequency=CorpusFrequencyService(
                PhilologicClient(settings.hits_url, settings.hits_title, timeout),
                MemoCache(conn, HITS_NAMESPACE, lock).load(),
            ),
            morphology=MorphologyService(
                LogeionClient(settings.morpho_url, PageRenderer(timeout)),
                MemoCache(conn, MORPHO_NAMESPACE, lock).load(),
            ),
            store=StudyLogStore(conn, lock),
            state_cache=MemoCache(conn, STATE_NAMESPACE, lock).load(),
            tutor_factory=lambda: TutorClient.from_settings(settings),
            anki=AnkiConnectClient(settings.anki_url, settings.anki_deck),
            lock=lock,
        )

    def tutor(self) -> TutorClient:
        """The tutor client, built on first use.

        Raises:
            TutorConfigError: If no API key is configured; a later call retries
        """
        if self._tutor is None:
            self._tutor = self.tutor_factory()
        return self._tutor

    def close(self) -> None:
        self.frequency.cache.flush()
        self.morphology.cache.flush()
        self.state_cache.flush()
        if self._tutor is not None:
            self._tutor.close()
            self._tutor = None
        with self.lock:
            self.conn.close()
