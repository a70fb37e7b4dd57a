import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
from urllib.parse import urlparse

import feedparser
import requests

from services.extraction.exceptions import FeedFetchError, FeedParseError
from shared.settings import settings

logger = logging.getLogger(__name__)


@dataclass
class Enclosure:
    url: str
    type: str = ""


@dataclass
class FeedEntry:
    link: Optional[str]
    title: Optional[str] = None
    author: Optional[str] = None
    published: Optional[datetime] = None
    content_encoded: Optional[str] = None
    content: Optional[str] = None
    description: Optional[str] = None
    summary: Optional[str] = None
    enclosure: Optional[Enclosure] = None    # audio/video first, else the first one
    enclosures: list[Enclosure] = field(default_factory=list)
    image_url: Optional[str] = None      # media:thumbnail / media:content image
    podcast_image: Optional[str] = None  # itunes:image

    def raw_content(self) -> str:
        for value in (self.content_encoded, self.content, self.description, self.summary):
            if value:
                return value
        return ""


@dataclass
class ParsedFeed:
    title: Optional[str]
    entries: list[FeedEntry] = field(default_factory=list)


def _to_datetime(entry) -> Optional[datetime]:
    # feedparser normalizes to UTC struct_time; stored naive like the rest of the models
    for key in ("published_parsed", "updated_parsed"):
        value = entry.get(key)
        if value:
            return datetime(*value[:6])
    return None


def _content_fields(entry) -> tuple[Optional[str], Optional[str]]:
    """(content:encoded, other content) from feedparser's content list."""
    encoded, other = None, None
    for c in entry.get("content") or []:
        value = c.get("value")
        if not value:
            continue
        if c.get("type") == "text/html" and encoded is None:
            encoded = value
        elif other is None:
            other = value
    return encoded, other


def _enclosures(entry) -> list[Enclosure]:
    found = []
    for enc in entry.get("enclosures") or []:
        href = enc.get("href") or enc.get("url")
        if href:
            found.append(Enclosure(url=href, type=(enc.get("type") or "").lower()))
    return found


def _primary_enclosure(enclosures: list[Enclosure]) -> Optional[Enclosure]:
    # an audio/video attachment says more about the entry than a cover image
    for enc in enclosures:
        if enc.type.startswith(("audio/", "video/")):
            return enc
    return enclosures[0] if enclosures else None


def _media_image(entry) -> Optional[str]:
    for thumb in entry.get("media_thumbnail") or []:
        if thumb.get("url"):
            return thumb["url"]
    for media in entry.get("media_content") or []:
        if media.get("url") and (media.get("medium") == "image" or (media.get("type") or "").startswith("image/")):
            return media["url"]
    return None


def to_feed_entry(entry) -> FeedEntry:
    encoded, other = _content_fields(entry)
    enclosures = _enclosures(entry)
    image = entry.get("image") or {}
    return FeedEntry(
        link=entry.get("link"),
        title=entry.get("title"),
        author=entry.get("author"),
        published=_to_datetime(entry),
        content_encoded=encoded,
        content=other,
        description=entry.get("description"),
        summary=entry.get("summary"),
        enclosure=_primary_enclosure(enclosures),
        enclosures=enclosures,
        image_url=_media_image(entry),
        podcast_image=image.get("href") if isinstance(image, dict) else None,
    )


def parse_feed_document(url: str, body: bytes | str) -> ParsedFeed:
    parsed = feedparser.parse(body)
    if parsed.bozo and not parsed.entries:
        raise FeedParseError(url, str(parsed.get("bozo_exception") or "malformed document"))
    if parsed.bozo:
        logger.warning("feed %s parsed with errors: %s", url, parsed.get("bozo_exception"))

    title = parsed.feed.get("title") or urlparse(url).netloc
    return ParsedFeed(title=title, entries=[to_feed_entry(e) for e in parsed.entries])


class FeedSource:
    """Downloads a syndication document and parses it with feedparser."""

    def __init__(self, timeout: float | None = None, user_agent: str | None = None,
                 session: requests.Session | None = None):
        self.timeout = timeout if timeout is not None else settings.FETCH_TIMEOUT
        self.user_agent = user_agent or settings.FETCH_USER_AGENT
        self.session = session or requests.Session()

    def fetch(self, url: str) -> ParsedFeed:
        parts = urlparse(url)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise FeedFetchError(url, "invalid feed URL")

        try:
            r = self.session.get(
                url,
                headers={"User-Agent": self.user_agent,
                         "Accept": "application/rss+xml, application/atom+xml, application/xml, text/xml, */*"},
                timeout=self.timeout,
            )
            r.raise_for_status()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            raise FeedFetchError(url, f"HTTP {status}", status_code=status) from e
        except requests.Timeout as e:
            raise FeedFetchError(url, "request timed out") from e
        except requests.RequestException as e:
            raise FeedFetchError(url, str(e)) from e

        feed = parse_feed_document(url, r.content)
        logger.debug("fetched %s: %d entries", url, len(feed.entries))
        return feed
