"""
News-to-market correlation run.

feed -> window filter -> normalize -> classify -> extract highlights ->
resolve + price each highlight.
"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol

from .correlator import PriceCorrelator
from .errors import AuthenticationError, ProviderError
from .highlights import extract_highlights, is_no_significant_news
from .models.highlights import AnalysisResult, Classification, Highlight, RunStatus
from .models.news import NewsItem
from .normalizer import build_stats, filter_recent, normalize_records

logger = logging.getLogger(__name__)


class NewsSource(Protocol):
    async def fetch(self, limit: int) -> List[Dict[str, Any]]: ...


class Classifier(Protocol):
    async def classify(self, items: List[NewsItem]) -> Classification: ...


def _url_key(url: Optional[str]) -> str:
    return (url or "").strip().rstrip("/").lower()


def anchor_highlights(highlights: List[Highlight], items: List[NewsItem]) -> None:
    """
    Attach each highlight to the news item its link points at. Unmatched
    highlights are anchored on the newest item in the batch.
    """
    if not items:
        return
    by_url = {}
    for item in items:
        key = _url_key(item.url)
        if key and key not in by_url:
            by_url[key] = item
    newest = max(items, key=lambda i: i.published_at)

    for h in highlights:
        item = by_url.get(_url_key(h.url))
        if item is None:
            logger.debug(f"Highlight {h.index} has no matching item, anchoring on newest")
            h.anchor_time = newest.published_at
            continue
        h.source_item = item
        h.anchor_time = item.published_at


class NewsAnalyzer:
    """
    Runs one analysis at a time. Starting a new run supersedes the previous
    one: its remaining enrichment is skipped and its result is marked
    superseded.
    """

    def __init__(
        self,
        news: NewsSource,
        classifier: Classifier,
        correlator: PriceCorrelator,
        *,
        concurrency: int = 1,
    ):
        self.news = news
        self.classifier = classifier
        self.correlator = correlator
        self.concurrency = max(1, concurrency)
        self._generation = 0

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    async def analyze(self, hours_back: float = 2.0, limit: int = 1500) -> AnalysisResult:
        self._generation += 1
        generation = self._generation
        started = datetime.now(timezone.utc)
        result = AnalysisResult(started_at=started, hours_back=hours_back)

        # Feed failures propagate: nothing to analyse without news
        raw = await self.news.fetch(limit)
        if not self._is_current(generation):
            result.status = RunStatus.SUPERSEDED
            return result

        recent = filter_recent(raw, hours_back, now=started)
        items = normalize_records(recent)
        result.stats = build_stats(items)
        logger.info(f"{len(items)} of {len(raw)} items within the last {hours_back}h")

        if not items:
            result.status = RunStatus.NO_NEWS
            return result

        try:
            classification = await self.classifier.classify(items)
        except AuthenticationError:
            raise
        except ProviderError as e:
            logger.error(f"Classification failed: {e.message}")
            result.status = RunStatus.CLASSIFICATION_FAILED
            result.error = e.message
            return result

        if not self._is_current(generation):
            result.status = RunStatus.SUPERSEDED
            return result

        result.usage = classification.usage
        if is_no_significant_news(classification.content):
            logger.info("Classifier reported no significant news")
            result.status = RunStatus.NO_SIGNIFICANT_NEWS
            return result

        highlights = extract_highlights(classification.content)
        anchor_highlights(highlights, items)
        result.highlights = highlights
        logger.info(f"Extracted {len(highlights)} highlights")

        completed = await self._enrich_all(highlights, generation)
        if not completed:
            result.status = RunStatus.SUPERSEDED
        return result

    async def _enrich_one(self, highlight: Highlight) -> None:
        try:
            await self.correlator.enrich(highlight)
        except Exception as e:
            logger.warning(f"Enrichment failed for highlight {highlight.index}: {e}")

    async def _enrich_all(self, highlights: List[Highlight], generation: int) -> bool:
        if self.concurrency == 1:
            for h in highlights:
                if not self._is_current(generation):
                    return False
                await self._enrich_one(h)
            return self._is_current(generation)

        semaphore = asyncio.Semaphore(self.concurrency)

        async def _bounded(h: Highlight) -> None:
            async with semaphore:
                if self._is_current(generation):
                    await self._enrich_one(h)

        await asyncio.gather(*(_bounded(h) for h in highlights))
        return self._is_current(generation)
