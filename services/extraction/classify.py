"""Per-entry heuristics: media type, lead image, word count and reading time."""
import math
import re
from typing import Optional

from services.collector.rss import FeedEntry

VIDEO = "video"
AUDIO = "audio"
TEXT = "text"

_VIDEO_PLATFORMS = ("youtube.com", "youtu.be", "youtube", "vimeo")
_IMG_SRC_RX = re.compile(r"""<img[^>]+src\s*=\s*["']([^"'>]+)["']""", re.I)


def detect_media_type(entry: FeedEntry, raw_content: str = "") -> str:
    """Classify an entry as video, audio or text.

    The enclosure MIME type wins when present; keyword matching on the
    title and body is only a fallback and can misclassify.
    """
    mime = (entry.enclosure.type if entry.enclosure else "") or ""
    if mime.startswith("video/"):
        return VIDEO
    if mime.startswith("audio/"):
        return AUDIO

    title = (entry.title or "").lower()
    body = (raw_content or "").lower()
    if "video" in title or any(p in title or p in body for p in _VIDEO_PLATFORMS):
        return VIDEO
    if "podcast" in title or "audio" in title:
        return AUDIO
    return TEXT


def extract_image(entry: FeedEntry, raw_content: str | None = None) -> Optional[str]:
    candidates = entry.enclosures or ([entry.enclosure] if entry.enclosure else [])
    for enc in candidates:
        if enc.type.startswith("image/") and enc.url:
            return enc.url
    if entry.image_url:
        return entry.image_url
    if entry.podcast_image:
        return entry.podcast_image

    html = raw_content if raw_content is not None else entry.raw_content()
    m = _IMG_SRC_RX.search(html or "")
    return m.group(1) if m else None


def count_words(text: str | None) -> int:
    return len(text.split()) if text else 0


def reading_time(word_count: int, words_per_minute: int = 200) -> str:
    if word_count <= 0:
        return "1 min"
    return f"{math.ceil(word_count / words_per_minute)} min"
