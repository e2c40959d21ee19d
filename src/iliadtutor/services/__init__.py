"""External lookup services: corpus frequency, morphology, tutor, flashcards."""

from iliadtutor.services.base import (
    HitsSource,
    MorphologyResult,
    MorphologySource,
    Parse,
    ServiceError,
)
from iliadtutor.services.corpus import (
    CorpusFrequencyService,
    CorpusServiceError,
    PhilologicClient,
)
from iliadtutor.services.morphology import (
    LogeionClient,
    MorphologyService,
    MorphologyServiceError,
)
from iliadtutor.services.tutor import (
    TutorClient,
    TutorConfigError,
    TutorRequest,
    TutorServiceError,
    WordGuess,
)
from iliadtutor.services.anki import AnkiConnectClient, AnkiConnectError
from iliadtutor.services.browser import PageRenderer, RenderError, RenderTimeoutError

__all__ = [
    "HitsSource",
    "MorphologyResult",
    "MorphologySource",
    "Parse",
    "ServiceError",
    "CorpusFrequencyService",
    "CorpusServiceError",
    "PhilologicClient",
    "LogeionClient",
    "MorphologyService",
    "MorphologyServiceError",
    "TutorClient",
    "TutorConfigError",
    "TutorRequest",
    "TutorServiceError",
    "WordGuess",
    "AnkiConnectClient",
    "AnkiConnectError",
    "PageRenderer",
    "RenderError",
    "RenderTimeoutError",
]
