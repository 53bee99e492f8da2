import logging
import httpx
from typing import Optional
from fake_useragent import UserAgent
from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential, retry_if_exception_type

logger = logging.getLogger(__name__)

class HTTPClient:
    def __init__(self, timeout: float = 15.0, attempts: int = 1, client: Optional[httpx.AsyncClient] = None):
        """
        Shared async HTTP client for feed and article page requests.

        Args:
            timeout: Per-request timeout in seconds
            attempts: Total attempts per request; 1 means a failure is final
            client: Optional preconfigured httpx client (tests use MockTransport)
        """
        self.ua = UserAgent()
        self.timeout = timeout
        self.attempts = attempts
        self.client = client or httpx.AsyncClient(http2=False, follow_redirects=True)

    def _get_headers(self):
        return {
            "User-Agent": self.ua.random,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,application/rss+xml,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.5",
            "DNT": "1",
            "Connection": "keep-alive",
            "Upgrade-Insecure-Requests": "1",
        }

    async def fetch(self, url: str) -> str:
        """
        Fetches the body of a URL as text.
        Raises httpx errors on network failure or non-2xx status.
        """
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.attempts),
            wait=wait_exponential(multiplier=1, min=2, max=10),
            retry=retry_if_exception_type((httpx.RequestError, httpx.TimeoutException)),
            reraise=True,
        ):
            with attempt:
                try:
                    response = await self.client.get(url, headers=self._get_headers(), timeout=self.timeout)
                    response.raise_for_status()
                except Exception as e:
                    logger.debug(f"Failed to fetch {url}: {e}")
                    raise
                logger.debug(f"Fetched {url} ({response.status_code})")
                return response.text

    async def close(self):
        await self.client.aclose()
