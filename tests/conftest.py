"""Shared fixtures: an in-memory store and a scriptable feed source."""
import threading

import pytest

from services.collector.rss import Enclosure, FeedEntry, ParsedFeed
from services.extraction.service import FeedExtractionService
from services.store import MemoryStore

OWNER = "user-1"
OTHER_OWNER = "user-2"
FEED_URL = "https://x.test/feed.xml"


def entry(link, title="Hello", description="<p>Hi</p>", **kwargs) -> FeedEntry:
    return FeedEntry(link=link, title=title, description=description, **kwargs)


def document(*entries, title="Example Feed") -> ParsedFeed:
    return ParsedFeed(title=title, entries=list(entries))


def audio_enclosure(url="https://x.test/ep.mp3") -> Enclosure:
    return Enclosure(url=url, type="audio/mpeg")


class StubSource:
    """Feed source returning canned documents (or raising canned errors) per URL."""

    def __init__(self, feeds=None):
        self.feeds = dict(feeds or {})
        self.calls = []
        self.started = threading.Event()
        self._gate = None

    def hold(self):
        self._gate = threading.Event()

    def release(self):
        if self._gate is not None:
            self._gate.set()

    def fetch(self, url):
        self.calls.append(url)
        self.started.set()
        if self._gate is not None:
            self._gate.wait(5)
        value = self.feeds[url]
        if isinstance(value, Exception):
            raise value
        return value


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def source():
    return StubSource({FEED_URL: document(entry("https://x.test/a"))})


@pytest.fixture
def service(store, source):
    svc = FeedExtractionService(store, source=source, default_interval_minutes=60)
    yield svc
    svc.shutdown()


@pytest.fixture
def feed(store):
    return store.create_feed({"url": FEED_URL, "owner_id": OWNER, "name": "Example"})
