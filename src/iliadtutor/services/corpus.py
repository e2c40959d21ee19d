"""Corpus frequency lookups against PhiloLogic concordance search."""

from __future__ import annotations

import json
import logging

import httpx
from bs4 import BeautifulSoup

from iliadtutor.cache import MemoCache
from iliadtutor.db.connection import normalize_greek
from iliadtutor.services.base import HitsSource, ServiceError

logger = logging.getLogger(__name__)

HITS_SELECTOR = "#search-hits[description]"


class CorpusServiceError(ServiceError):
    """Concordance search failed."""

    pass


def parse_hits_page(html: str) -> int:
    """
    Read the hit count from a concordance results page.

    The count sits in the JSON ``description`` attribute of ``#search-hits``;
    a page without it has no hits.

    Raises:
        CorpusServiceError: If the attribute is not valid JSON
    """
    soup = BeautifulSoup(html, "html.parser")
    node = soup.select_one(HITS_SELECTOR)
    if node is None:
        return 0
    try:
        return int(json.loads(node["description"])["resultsLength"])
    except (ValueError, KeyError, TypeError) as e:
        raise CorpusServiceError(f"Unreadable hit count: {e}") from e


class PhilologicClient:
    """Concordance hit counts for one PhiloLogic database and title.

    Asks for the JSON concordance report, since the HTML results page only
    fills in its hit count client-side.
    """

    def __init__(
        self,
        base_url: str,
        title: str = '"Iliad"',
        timeout: float = 30.0,
        client: httpx.Client | None = None,
    ):
        self.base_url = base_url
        self.title = title
        self.client = client or httpx.Client(timeout=timeout, follow_redirects=True)

    def query_params(self, word: str) -> dict[str, str]:
        return {
            "report": "concordance",
            "method": "phrase",
            "q": word,
            "start": "0",
            "end": "0",
            "author": "",
            "script": "",
            "frequency_field": "",
            "arg": "",
            "sort_order": "rowid",
            "title": self.title,
            "format": "json",
        }

    def fetch_hits(self, word: str) -> int:
        logger.info(f"Fetching concordance hits for word: {word}")
        try:
            response = self.client.get(self.base_url, params=self.query_params(word))
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise CorpusServiceError(f"Error fetching hits for {word!r}: {e}") from e

        try:
            report = response.json()
        except ValueError:
            report = None

        if isinstance(report, dict):
            try:
                count = int(report["results_length"])
            except (KeyError, TypeError, ValueError) as e:
                raise CorpusServiceError(f"Unreadable hit count: {e}") from e
        else:
            # Older servers ignore format=json and send the results page
            count = parse_hits_page(response.text)
        logger.debug(f"Found hit count for {word}: {count}")
        return count


class CorpusFrequencyService:
    """Memoized hit counts. Cached counts never expire."""

    def __init__(self, source: HitsSource, cache: MemoCache):
        self.source = source
        self.cache = cache

    def lookup(self, word: str) -> int:
        key = normalize_greek(word.strip())
        if self.cache.has(key):
            return int(self.cache.get(key))

        count = self.source.fetch_hits(key)
        self.cache.set(key, count)
        self.cache.flush()
        return count
