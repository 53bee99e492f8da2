class NewsFactsError(Exception):
    """Base class for all pipeline errors"""


class ConfigurationError(NewsFactsError):
    """Raised at process start when settings or credentials are unusable"""


class FeedFetchError(NewsFactsError):
    """A single feed could not be fetched or parsed"""

    def __init__(self, source_id: str, message: str):
        super().__init__(f"[{source_id}] {message}")
        self.source_id = source_id


class ContentFetchError(NewsFactsError):
    """The article page for one candidate could not be fetched or extracted"""

    def __init__(self, url: str, message: str):
        super().__init__(f"{url}: {message}")
        self.url = url


class AnalysisSchemaError(NewsFactsError):
    """Model output could not be coerced to the analysis contract"""


class PersistenceError(NewsFactsError):
    """The batch insert failed; nothing from the batch was written"""
