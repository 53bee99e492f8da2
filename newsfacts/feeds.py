import asyncio
import logging
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Dict, List, Optional, Tuple

import feedparser
from bs4 import BeautifulSoup

from newsfacts.errors import FeedFetchError
from newsfacts.http_client import HTTPClient
from newsfacts.models import CandidateItem, Source

logger = logging.getLogger(__name__)


def _parse_date(entry) -> Optional[datetime]:
    if 'published' in entry:
        try:
            return parsedate_to_datetime(entry.published)
        except (TypeError, ValueError):
            logger.debug(f"Could not parse date: {entry.published}")
    # Atom and other formats are normalised by feedparser
    parsed = entry.get('published_parsed') or entry.get('updated_parsed')
    if parsed:
        return datetime(*parsed[:6], tzinfo=timezone.utc)
    return None


def html_to_text(html: Optional[str]) -> Optional[str]:
    if not html:
        return None
    text = BeautifulSoup(html, 'lxml').get_text(separator=" ", strip=True)
    return text or None


def entry_to_candidate(source: Source, entry) -> CandidateItem:
    """Convert one feedparser entry to a CandidateItem."""
    encoded = None
    if entry.get('content'):
        # feedparser exposes <content:encoded> as entry.content[0]
        encoded = entry.content[0].get('value') or None

    summary = entry.get('summary') or entry.get('description') or None

    return CandidateItem(
        source=source,
        link=entry.get('link') or None,
        title=entry.get('title', ''),
        encoded_content=encoded,
        summary=summary,
        snippet=html_to_text(summary),
        creator=entry.get('author') or None,
        published_at=_parse_date(entry),
    )


class FeedAggregator:
    def __init__(self, http_client: HTTPClient, item_limit: int = 50, max_concurrency: int = 8):
        self.http_client = http_client
        self.item_limit = item_limit
        self.max_concurrency = max_concurrency

    def limit_for(self, source: Source) -> int:
        return self.item_limit if source.item_limit is None else source.item_limit

    async def fetch_source(self, source: Source) -> List[CandidateItem]:
        """
        Fetch and parse a single feed.
        Returns at most limit_for(source) items, in feed order.
        Raises FeedFetchError if the feed cannot be fetched or parsed.
        """
        try:
            content = await self.http_client.fetch(source.feed_url)
        except Exception as e:
            raise FeedFetchError(source.id, f"fetch failed: {e}") from e

        feed = feedparser.parse(content)
        if feed.bozo and not feed.entries:
            raise FeedFetchError(source.id, f"unparseable feed: {feed.get('bozo_exception')}")

        items = []
        for entry in feed.entries[:self.limit_for(source)]:
            try:
                items.append(entry_to_candidate(source, entry))
            except Exception as e:
                logger.error(f"Error parsing entry from {source.name}: {e}")
                continue
        return items

    async def aggregate(self, sources: List[Source]) -> Tuple[List[CandidateItem], Dict[str, str]]:
        """
        Fetch every enabled source concurrently.

        Returns the flattened items (registry order, then feed order) and a
        mapping of source id -> error message for feeds that failed.
        """
        logger.info("Parsing RSS feeds")
        semaphore = asyncio.Semaphore(self.max_concurrency)
        errors: Dict[str, str] = {}

        async def _fetch_one(source: Source) -> List[CandidateItem]:
            if not source.enabled:
                return []
            async with semaphore:
                try:
                    items = await self.fetch_source(source)
                except FeedFetchError as e:
                    logger.error(f"Feed {source.name} failed: {e}")
                    errors[source.id] = str(e)
                    return []
            logger.info(f"Found {len(items)} items from {source.name}")
            return items

        batches = await asyncio.gather(*[_fetch_one(s) for s in sources])
        return [item for batch in batches for item in batch], errors
