"""Shared fixtures for API integration tests."""

import threading
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from iliadtutor.api.main import create_app
from iliadtutor.api.state import Services
from iliadtutor.cache import HITS_NAMESPACE, MORPHO_NAMESPACE, STATE_NAMESPACE, MemoCache
from iliadtutor.db.connection import get_connection, init_db
from iliadtutor.ingest.greek_text import GreekText
from iliadtutor.ingest.translation import TranslationIndexer
from iliadtutor.services.base import MorphologyResult, Parse
from iliadtutor.services.corpus import CorpusFrequencyService
from iliadtutor.services.morphology import MorphologyService
from iliadtutor.services.tutor import TutorClient
from iliadtutor.studylog.store import StudyLogStore


class FakeHits:
    def __init__(self):
        self.calls = []
        self.error = None

    def fetch_hits(self, word):
        if self.error:
            raise self.error
        self.calls.append(word)
        return 12


class FakeMorphology:
    def fetch_morphology(self, word):
        return MorphologyResult(
            word=word, parses=[Parse("μῆνις", "noun sg fem acc")], definitions=["wrath"]
        )


class FakeAnki:
    def __init__(self):
        self.cards = []

    def add_flashcard(self, context, greek, translation, phrase_guess=""):
        self.cards.append((context, greek, translation, phrase_guess))
        return len(self.cards)


@pytest.fixture
def fake_llm():
    llm = MagicMock()
    llm.chat.completions.create.return_value = SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content="Literal: Sing, goddess."))]
    )
    return llm


@pytest.fixture
def services(settings, fake_llm):
    """Services over the fixture corpus with every remote source faked."""
    conn = get_connection(settings.db_path, check_same_thread=False)
    init_db(conn)
    lock = threading.RLock()
    return Services(
        settings=settings,
        conn=conn,
        indexer=TranslationIndexer.from_settings(settings),
        greek=GreekText(settings.resolve_document(settings.greek_text)),
        frequency=CorpusFrequencyService(FakeHits(), MemoCache(conn, HITS_NAMESPACE, lock)),
        morphology=MorphologyService(FakeMorphology(), MemoCache(conn, MORPHO_NAMESPACE, lock)),
        store=StudyLogStore(conn, lock),
        state_cache=MemoCache(conn, STATE_NAMESPACE, lock).load(),
        tutor_factory=lambda: TutorClient("sk-test", "https://llm.test/v1", "m", client=fake_llm),
        anki=FakeAnki(),
        lock=lock,
    )


@pytest.fixture
def api_client(services):
    """Test client over prebuilt services, with no tutor key in the keychain."""
    with patch("iliadtutor.keys._keyring_available", return_value=False):
        app = create_app(services=services)
        with TestClient(app) as client:
            yield client
