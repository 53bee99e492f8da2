import unittest

import httpx

from fakes import ARTICLE_PAGE, FakeHTTPClient
from newsfacts.content import ContentResolver, extract_text
from newsfacts.errors import ContentFetchError
from newsfacts.models import CandidateItem, Source

SOURCE = Source(feed_url="https://a.example/rss", name="Source A", id="a")
LINK = "https://a.example/senate"


class TestExtractText(unittest.TestCase):
    def test_keeps_article_paragraphs(self):
        text = extract_text(ARTICLE_PAGE)
        self.assertIn("The Senate passed the annual budget bill", text)
        self.assertIn("goes to the House of Representatives", text)
        self.assertNotIn("Copyright Example News", text)

    def test_empty_html(self):
        self.assertEqual(extract_text(""), "")
        self.assertEqual(extract_text("   \n"), "")


class TestContentResolver(unittest.IsolatedAsyncioTestCase):
    async def test_encoded_content_skips_scraping(self):
        http = FakeHTTPClient()  # every URL unreachable
        item = CandidateItem(source=SOURCE, link=LINK, title="t", encoded_content="<p>Inline body</p>")

        content = await ContentResolver(http).resolve(item)

        self.assertEqual(content, "<p>Inline body</p>")
        self.assertEqual(item.raw_content, "<p>Inline body</p>")
        self.assertEqual(http.calls, [])

    async def test_scrapes_link_when_no_encoded_content(self):
        http = FakeHTTPClient({LINK: ARTICLE_PAGE})
        item = CandidateItem(source=SOURCE, link=LINK, title="t")

        content = await ContentResolver(http).resolve(item)

        self.assertIn("annual budget bill", content)
        self.assertEqual(http.calls, [LINK])

    async def test_no_link_leaves_content_unset(self):
        http = FakeHTTPClient()
        item = CandidateItem(source=SOURCE, link=None, title="t", summary="feed summary")

        content = await ContentResolver(http).resolve(item)

        self.assertIsNone(content)
        self.assertIsNone(item.raw_content)
        self.assertEqual(http.calls, [])

    async def test_fetch_failure_raises_and_empties_content(self):
        http = FakeHTTPClient({LINK: httpx.ConnectError("boom")})
        item = CandidateItem(source=SOURCE, link=LINK, title="t")

        with self.assertRaises(ContentFetchError) as ctx:
            await ContentResolver(http).resolve(item)

        self.assertEqual(ctx.exception.url, LINK)
        self.assertEqual(item.raw_content, "")

    async def test_empty_extraction_is_not_an_error(self):
        http = FakeHTTPClient({LINK: "   "})
        item = CandidateItem(source=SOURCE, link=LINK, title="t")

        content = await ContentResolver(http).resolve(item)

        self.assertEqual(content, "")


if __name__ == "__main__":
    unittest.main()
