import logging
import re
from typing import Optional

from bs4 import BeautifulSoup
from readability import Document

from newsfacts.errors import ContentFetchError
from newsfacts.http_client import HTTPClient
from newsfacts.models import CandidateItem

logger = logging.getLogger(__name__)


def extract_text(html: str) -> str:
    """
    Readability-style extraction of the main article body.
    Returns paragraphs joined by blank lines, or "" if nothing is found.
    """
    if not html or not html.strip():
        return ""

    clean_html = Document(html).summary()  # Main content HTML
    soup = BeautifulSoup(clean_html, 'lxml')

    article_body = (soup.find('article') or
                    soup.find('div', class_=lambda x: x and 'article' in x.lower()) or
                    soup)

    paragraphs = []
    for p in article_body.find_all(['p', 'h2', 'h3', 'li']):
        para_text = p.get_text(separator=" ", strip=True)
        para_text = re.sub(r'\s+', ' ', para_text)
        if para_text:
            paragraphs.append(para_text)

    if not paragraphs:
        # Bodies without block tags still carry text
        text = re.sub(r'\s+', ' ', soup.get_text(separator=" ", strip=True))
        return text.strip()

    return '\n\n'.join(paragraphs)


class ContentResolver:
    def __init__(self, http_client: HTTPClient):
        self.http_client = http_client

    async def scrape(self, url: str) -> str:
        """Fetch a page and extract its text. Raises ContentFetchError."""
        try:
            html = await self.http_client.fetch(url)
        except Exception as e:
            raise ContentFetchError(url, f"fetch failed: {e}") from e
        try:
            return extract_text(html)
        except Exception as e:
            raise ContentFetchError(url, f"extraction failed: {e}") from e

    async def resolve(self, item: CandidateItem) -> Optional[str]:
        """
        Resolve full text for a candidate, in order:
        1. content:encoded from the feed
        2. scraped text from the article link
        3. unset (None)

        The result is stored on item.raw_content and returned.
        Scrape failures raise ContentFetchError after setting content to "".
        """
        if item.encoded_content:
            item.raw_content = item.encoded_content
            return item.raw_content

        if not item.link:
            return None

        try:
            item.raw_content = await self.scrape(item.link)
        except ContentFetchError:
            item.raw_content = ""
            raise
        if not item.raw_content:
            logger.info(f"No text extracted from {item.link}")
        return item.raw_content
