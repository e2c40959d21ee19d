"""Protocols and errors shared by the external lookup services."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable


class ServiceError(Exception):
    """An external service failed or returned an unusable response."""

    pass


@dataclass
class Parse:
    """One morphological analysis of a surface form."""

    lemma: str
    parse: str


@dataclass
class MorphologyResult:
    """Parses and short definitions for a word."""

    word: str
    parses: list[Parse] = field(default_factory=list)
    definitions: list[str] = field(default_factory=list)

    @property
    def has_data(self) -> bool:
        return bool(self.parses or self.definitions)

    def to_dict(self) -> dict:
        return {
            "word": self.word,
            "parses": [{"lemma": p.lemma, "parse": p.parse} for p in self.parses],
            "definitions": list(self.definitions),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "MorphologyResult":
        return cls(
            word=data.get("word", ""),
            parses=[
                Parse(lemma=p.get("lemma", ""), parse=p.get("parse", ""))
                for p in data.get("parses", [])
            ],
            definitions=list(data.get("definitions", [])),
        )


@runtime_checkable
class HitsSource(Protocol):
    """Corpus concordance search."""

    def fetch_hits(self, word: str) -> int:
        """Return the number of concordance hits for a word."""
        ...


@runtime_checkable
class MorphologySource(Protocol):
    """Morphological dictionary."""

    def fetch_morphology(self, word: str) -> MorphologyResult:
        """Return parses and definitions for a word."""
        ...
