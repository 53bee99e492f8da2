import asyncio
import logging
from dataclasses import asdict
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from newsfacts.ai import GeminiAnalyzer
from newsfacts.config import Settings
from newsfacts.content import ContentResolver
from newsfacts.db import Database
from newsfacts.errors import ContentFetchError
from newsfacts.feeds import FeedAggregator, html_to_text
from newsfacts.http_client import HTTPClient
from newsfacts.models import (
    AnalysisOutcome,
    AnalysisStatus,
    Article,
    CandidateItem,
    ItemResult,
    ItemStatus,
    PipelineReport,
    Source,
)
from newsfacts.sources import build_registry

logger = logging.getLogger(__name__)


def _first_non_empty(*values: Optional[str]) -> str:
    for value in values:
        if value and value.strip():
            return value
    return ""


def _iso_date(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def filter_existing_items(items: List[CandidateItem], db: Database) -> Tuple[List[CandidateItem], int]:
    """
    Drop candidates whose URL is already stored, plus later repeats of a URL
    within the same batch (first occurrence wins). Order is preserved.
    Returns the kept items and the number dropped.
    """
    if not items:
        return [], 0

    logger.info("Filtering existing articles")
    existing = db.existing_urls(item.link for item in items if item.link)

    kept = []
    seen = set()
    for item in items:
        if item.link:
            if item.link in existing or item.link in seen:
                logger.debug(f"Duplicate article skipped: {item.link}")
                continue
            seen.add(item.link)
        kept.append(item)
    return kept, len(items) - len(kept)


def assemble_article(item: CandidateItem, outcome: AnalysisOutcome) -> Optional[Article]:
    """
    Build the row for a candidate, or None if it is not complete.
    Content falls back from resolved content to feed summary (as text) to snippet.
    """
    if not outcome.ok:
        return None

    analysis = outcome.analysis
    article = Article(
        url=item.link,
        title=item.title,
        publication=item.source.name,
        authors=[item.creator] if item.creator else [],
        date_published=_iso_date(item.published_at),
        content=_first_non_empty(item.raw_content, html_to_text(item.summary), item.snippet),
        source=analysis.source,
        headline=analysis.headline,
        summary=analysis.summary,
    )
    if is_complete(article):
        return article
    return None


def is_complete(article: Article) -> bool:
    return all(
        value and value.strip()
        for value in (article.content, article.headline, article.summary, article.source)
    )


class Pipeline:
    def __init__(
        self,
        settings: Settings,
        http_client: HTTPClient,
        db: Database,
        analyzer: GeminiAnalyzer,
        sources: Optional[List[Source]] = None,
    ):
        self.settings = settings
        self.db = db
        self.analyzer = analyzer
        self.sources = build_registry(sources) if sources is not None else build_registry()
        self.aggregator = FeedAggregator(
            http_client,
            item_limit=settings.rss_item_limit,
            max_concurrency=settings.max_concurrency,
        )
        self.resolver = ContentResolver(http_client)
        # Serializes storage lookup through insert across overlapping runs
        self._write_lock = asyncio.Lock()

    async def process_item(self, item: CandidateItem) -> ItemResult:
        """Resolve content then analyze one candidate. Never raises."""
        content_error = None
        try:
            await self.resolver.resolve(item)
        except ContentFetchError as e:
            logger.warning(f"Content fetch failed: {e}")
            content_error = str(e)

        # Summary/snippet fallback applies to the stored row only
        outcome = await self.analyzer.analyze(item.title, item.raw_content or "")

        result = ItemResult(url=item.link, title=item.title, status=ItemStatus.INCOMPLETE,
                            content_error=content_error, error=outcome.error)
        if outcome.status is AnalysisStatus.FAILED:
            result.status = ItemStatus.ANALYSIS_FAILED
        elif outcome.status is AnalysisStatus.NOT_FACTUAL:
            result.status = ItemStatus.NOT_FACTUAL
        else:
            result.article = assemble_article(item, outcome)
            if result.article is not None:
                result.status = ItemStatus.STORED
        return result

    async def process_items(self, items: List[CandidateItem]) -> List[ItemResult]:
        logger.info(f"Scraping and analyzing articles: {len(items)}")
        semaphore = asyncio.Semaphore(self.settings.max_concurrency)
        done = 0

        async def _process_one(item: CandidateItem) -> ItemResult:
            nonlocal done
            async with semaphore:
                result = await self.process_item(item)
            done += 1
            logger.info(f"\t[{done}/{len(items)}] {result.status.value}: {item.title[:60]}")
            return result

        return list(await asyncio.gather(*[_process_one(item) for item in items]))

    async def run(self) -> PipelineReport:
        """Run one ingestion pass. Raises PersistenceError if the insert fails."""
        report = PipelineReport()

        items, report.feed_errors = await self.aggregator.aggregate(self.sources)
        report.fetched = len(items)

        async with self._write_lock:
            new_items, report.duplicates = filter_existing_items(items, self.db)
            report.candidates = len(new_items)
            logger.info(f"Found {len(new_items)} new articles (after deduplication)")

            report.results = await self.process_items(new_items)

            rows = [asdict(r.article) for r in report.results if r.status is ItemStatus.STORED]
            report.persisted = self.db.insert_articles(rows)

        logger.info(f"Pipeline complete: {report.summary_line()}")
        return report


def build_pipeline(settings: Settings) -> Tuple[Pipeline, HTTPClient]:
    """
    Construct the pipeline and its collaborators from settings.
    The caller owns the returned HTTP client and must close it.
    """
    analyzer = GeminiAnalyzer(settings.require_api_key(), settings.llm_model)
    http = HTTPClient(timeout=settings.http_timeout, attempts=settings.fetch_attempts)
    db = Database(settings.database_path)
    return Pipeline(settings, http, db, analyzer), http
