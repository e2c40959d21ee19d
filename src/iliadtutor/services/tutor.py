"""Tutoring critique of a learner's guesses via an OpenAI-compatible endpoint."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any

import openai
from openai import OpenAI

from iliadtutor.keys import API_KEY_ENV, get_api_key
from iliadtutor.services.base import ServiceError

if TYPE_CHECKING:
    from iliadtutor.config import Settings

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a Homeric Greek tutor. Given the original Greek line, the "
    "learner's word-level translation and form guesses, and their phrase "
    "translation, point out mistranslations, omissions and syntactic "
    "errors, give the correct lemmas with brief grammatical notes, provide "
    "a literal translation of the line, and end with one short tip."
)


class TutorServiceError(ServiceError):
    """The tutor endpoint failed."""

    pass


class TutorConfigError(TutorServiceError):
    """No API key is configured for the tutor endpoint."""

    pass


@dataclass
class WordGuess:
    """The learner's guess for one word."""

    word: str
    translation_guess: str = ""
    form_guess: str = ""


@dataclass
class TutorRequest:
    """Everything the tutor sees about one line."""

    original_line: str
    line_number: int | None = None
    word_guesses: list[WordGuess] = field(default_factory=list)
    user_translation: str = ""

    def to_payload(self) -> dict[str, Any]:
        return asdict(self)


class TutorClient:
    """Single request/response chat completion. No retries."""

    def __init__(
        self,
        api_key: str,
        base_url: str,
        model: str,
        timeout: float = 60.0,
        client: Any = None,
    ):
        self.model = model
        self.client = client or OpenAI(
            api_key=api_key, base_url=base_url, timeout=timeout, max_retries=0
        )

    @classmethod
    def from_settings(cls, settings: "Settings") -> "TutorClient":
        """
        Build a client from settings and the stored API key.

        Raises:
            TutorConfigError: If no API key is configured
        """
        api_key = get_api_key()
        if not api_key:
            raise TutorConfigError(
                f"Missing tutor API key. Set {API_KEY_ENV} or run 'iliadtutor keys set'."
            )
        return cls(
            api_key=api_key,
            base_url=settings.tutor_base_url,
            model=settings.tutor_model,
            timeout=settings.http_timeout * 2,
        )

    def build_messages(self, request: TutorRequest) -> list[dict[str, str]]:
        return [
            {"role": "system", "content": SYSTEM_PROMPT},
            {
                "role": "user",
                "content": json.dumps(request.to_payload(), ensure_ascii=False, indent=2),
            },
        ]

    def analyze(self, request: TutorRequest) -> str:
        """
        Return the tutor's free-text critique.

        Raises:
            TutorServiceError: If the endpoint call fails
        """
        logger.info(f"Requesting tutor analysis for line {request.line_number}")
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=self.build_messages(request),
            )
        except openai.OpenAIError as e:
            raise TutorServiceError(f"Tutor analysis failed: {e}") from e

        if not response.choices:
            logger.warning("Tutor response had no choices")
            return ""
        return response.choices[0].message.content or ""

    def close(self) -> None:
        """Release the underlying HTTP connection pool."""
        self.client.close()
