"""Flashcard export through the AnkiConnect add-on."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from iliadtutor.services.base import ServiceError

logger = logging.getLogger(__name__)

ANKICONNECT_VERSION = 6
NOTE_MODEL = "Basic"
NOTE_TAGS = ["auto-greek"]


class AnkiConnectError(ServiceError):
    """AnkiConnect was unreachable or rejected the request."""

    pass


def build_note(deck: str, front: str, back: str) -> dict[str, Any]:
    """An addNote payload that refuses duplicates within the deck."""
    return {
        "deckName": deck,
        "modelName": NOTE_MODEL,
        "fields": {"Front": front, "Back": back},
        "options": {
            "allowDuplicate": False,
            "duplicateScope": "deck",
            "duplicateScopeOptions": {
                "deckName": deck,
                "checkChildren": False,
                "checkAllModels": False,
            },
        },
        "tags": list(NOTE_TAGS),
    }


class AnkiConnectClient:
    """Minimal AnkiConnect RPC client."""

    def __init__(
        self,
        url: str,
        deck: str,
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ):
        self.url = url
        self.deck = deck
        self.client = client or httpx.Client(timeout=timeout)

    def invoke(self, action: str, **params: Any) -> Any:
        """
        Call an AnkiConnect action and return its result.

        Raises:
            AnkiConnectError: On transport failure, a malformed reply, or an
                error reported by Anki
        """
        payload = {"action": action, "version": ANKICONNECT_VERSION, "params": params}
        try:
            response = self.client.post(self.url, json=payload)
            response.raise_for_status()
            reply = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise AnkiConnectError(f"failed to issue request: {e}") from e

        if not isinstance(reply, dict) or len(reply) != 2:
            raise AnkiConnectError("response has an unexpected number of fields")
        if "error" not in reply:
            raise AnkiConnectError("response is missing required error field")
        if "result" not in reply:
            raise AnkiConnectError("response is missing required result field")
        if reply["error"]:
            raise AnkiConnectError(str(reply["error"]))
        return reply["result"]

    def add_flashcard(
        self, context: str, greek: str, translation: str, phrase_guess: str = ""
    ) -> Any:
        """Add a word card: Greek word over its line context, gloss on the back."""
        note = build_note(
            self.deck,
            front=f"{greek}<br>{context}",
            back=f"{translation}<br>{phrase_guess}",
        )
        note_id = self.invoke("addNote", note=note)
        logger.info(f"Note added successfully: {note_id}")
        return note_id
