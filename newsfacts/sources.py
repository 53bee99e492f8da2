from typing import Iterable, List

from newsfacts.errors import ConfigurationError
from newsfacts.models import Source


# RSS feed sources, in the order their items are processed
SOURCES: List[Source] = [
    Source(
        feed_url="https://moxie.foxnews.com/google-publisher/politics.xml",
        name="Fox News",
        id="fox",
    ),
    Source(
        feed_url="https://rss.nytimes.com/services/xml/rss/nyt/HomePage.xml",
        name="New York Times",
        id="nyt",
        enabled=False,
    ),
]


def build_registry(sources: Iterable[Source] = SOURCES) -> List[Source]:
    """Validate a source list and return it as an immutable-by-convention list."""
    registry = list(sources)
    seen = set()
    for source in registry:
        if source.id in seen:
            raise ConfigurationError(f"Duplicate source id: {source.id}")
        if source.item_limit is not None and source.item_limit < 0:
            raise ConfigurationError(f"Source {source.id} has a negative item limit")
        seen.add(source.id)
    return registry


def enabled_sources(registry: Iterable[Source]) -> List[Source]:
    return [source for source in registry if source.enabled]
