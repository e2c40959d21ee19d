"""Morphology lookups against Logeion's morpho pages."""

from __future__ import annotations

import logging
from urllib.parse import quote

from bs4 import BeautifulSoup

from iliadtutor.cache import MemoCache
from iliadtutor.db.connection import normalize_greek
from iliadtutor.services.base import (
    MorphologyResult,
    MorphologySource,
    Parse,
    ServiceError,
)
from iliadtutor.services.browser import PageRenderer, RenderError, RenderTimeoutError

logger = logging.getLogger(__name__)

PARSE_SELECTOR = "ul.parse li"
LEMMA_SELECTOR = "p a"
PARSE_TEXT_SELECTOR = "p[ng-bind-html]"
SHORT_DEF_SELECTOR = 'div[ng-if="vm.shortDef.length > 0"] ul li'


class MorphologyServiceError(ServiceError):
    """Morphology lookup failed."""

    pass


def parse_morpho_page(word: str, html: str) -> MorphologyResult:
    """Extract parses and short definitions from a rendered morpho page."""
    soup = BeautifulSoup(html, "html.parser")

    parses = []
    for item in soup.select(PARSE_SELECTOR):
        lemma = item.select_one(LEMMA_SELECTOR)
        parse = item.select_one(PARSE_TEXT_SELECTOR)
        parses.append(
            Parse(
                lemma=lemma.get_text(strip=True) if lemma else "",
                parse=parse.get_text(strip=True) if parse else "",
            )
        )

    definitions = [li.get_text(strip=True) for li in soup.select(SHORT_DEF_SELECTOR)]
    if not definitions:
        logger.debug(f"No short definitions found for {word}")

    return MorphologyResult(word=word, parses=parses, definitions=definitions)


class LogeionClient:
    """Fetches rendered morpho pages for single words.

    The parse list is filled in client-side, so pages go through a
    headless browser that waits for it.
    """

    def __init__(self, base_url: str, renderer: PageRenderer | None = None):
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.renderer = renderer or PageRenderer()

    def fetch_morphology(self, word: str) -> MorphologyResult:
        url = self.base_url + quote(word)
        logger.info(f"Fetching morphology for word: {word}")
        try:
            html = self.renderer.render(url, wait_for=PARSE_SELECTOR)
        except RenderTimeoutError as e:
            # Not memoized as a hit: results without data are fetched again
            logger.info(f"No parses rendered for {word}: {e}")
            return MorphologyResult(word=word)
        except RenderError as e:
            raise MorphologyServiceError(
                f"Error fetching morphology for {word!r}: {e}"
            ) from e
        return parse_morpho_page(word, html)


class MorphologyService:
    """Memoized morphology lookups.

    A cached result with neither parses nor definitions is fetched again.
    """

    def __init__(self, source: MorphologySource, cache: MemoCache):
        self.source = source
        self.cache = cache

    def lookup(self, word: str) -> MorphologyResult:
        key = normalize_greek(word.strip())
        cached = self.cache.get(key)
        if isinstance(cached, dict):
            result = MorphologyResult.from_dict(cached)
            if result.has_data:
                return result

        result = self.source.fetch_morphology(key)
        self.cache.set(key, result.to_dict())
        self.cache.flush()
        return result
