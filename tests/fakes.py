"""Test doubles for the network, the model and storage."""

import asyncio
import json
import sqlite3

import httpx
import sqlite_utils

from newsfacts.db import Database


class FakeHTTPClient:
    """
    Serves canned responses by URL. A value may be a string body, an
    Exception instance to raise, or a (delay, body) tuple.
    Unknown URLs raise httpx.ConnectError.
    """

    def __init__(self, pages=None):
        self.pages = dict(pages or {})
        self.calls = []
        self.closed = False

    async def fetch(self, url: str) -> str:
        self.calls.append(url)
        page = self.pages.get(url)
        if page is None:
            raise httpx.ConnectError(f"unreachable: {url}")
        if isinstance(page, tuple):
            delay, page = page
            await asyncio.sleep(delay)
        if isinstance(page, Exception):
            raise page
        return page

    async def close(self):
        self.closed = True


class FakeResponse:
    def __init__(self, text):
        self.text = text


class FakeModel:
    """
    Stands in for genai.GenerativeModel. `reply` is either a string, a dict
    (serialized to JSON), an Exception, or a callable taking the prompt.
    """

    def __init__(self, reply, delay: float = 0.0):
        self.reply = reply
        self.delay = delay
        self.prompts = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def generate_content_async(self, prompt):
        self.prompts.append(prompt)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            reply = self.reply(prompt) if callable(self.reply) else self.reply
            if isinstance(reply, Exception):
                raise reply
            if isinstance(reply, dict):
                reply = json.dumps(reply)
            return FakeResponse(reply)
        finally:
            self.in_flight -= 1


def make_db() -> Database:
    conn = sqlite3.connect(":memory:", check_same_thread=False)
    return Database(":memory:", db=sqlite_utils.Database(conn))


def rss(*items) -> str:
    """Build an RSS 2.0 document from dicts with title/link/description/encoded/creator/pubDate."""
    parts = []
    for item in items:
        fields = [f"<title>{item.get('title', 'Untitled')}</title>"]
        if item.get("link"):
            fields.append(f"<link>{item['link']}</link>")
        if item.get("description"):
            fields.append(f"<description><![CDATA[{item['description']}]]></description>")
        if item.get("encoded"):
            fields.append(f"<content:encoded><![CDATA[{item['encoded']}]]></content:encoded>")
        if item.get("creator"):
            fields.append(f"<dc:creator>{item['creator']}</dc:creator>")
        if item.get("pubDate"):
            fields.append(f"<pubDate>{item['pubDate']}</pubDate>")
        parts.append("<item>" + "".join(fields) + "</item>")

    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<rss version="2.0" xmlns:content="http://purl.org/rss/1.0/modules/content/" '
        'xmlns:dc="http://purl.org/dc/elements/1.1/">'
        "<channel><title>Test feed</title><link>https://example.com/</link>"
        "<description>Test</description>"
        + "".join(parts)
        + "</channel></rss>"
    )


ARTICLE_PAGE = """<html><head><title>Senate vote</title></head><body>
<nav><a href="/">Home</a> <a href="/politics">Politics</a></nav>
<article>
<h1>Senate passes budget bill</h1>
<p>The Senate passed the annual budget bill on Tuesday by a vote of 52 to 48 after a long debate.</p>
<p>The bill now goes to the House of Representatives, which is expected to take it up next week.</p>
<p>Lawmakers from both parties spoke on the floor before the final roll call was taken in the chamber.</p>
</article>
<footer>Copyright Example News</footer>
</body></html>"""


FACTUAL_REPLY = {"headline": "H", "source": "S", "summary": "Sum"}
NOT_FACTUAL_REPLY = {"headline": "", "source": "", "summary": ""}
