"""In-memory store used for the mock backend and in tests."""
import copy
import threading
import uuid
from typing import Any, Optional

from services.store.base import FeedStore, check_patch
from services.store.records import ContentItem, FetchError, Feed, utcnow


class MemoryStore(FeedStore):
    def __init__(self):
        self._lock = threading.RLock()
        self._feeds: dict[str, Feed] = {}
        self._items: dict[str, ContentItem] = {}

    def _owned_feed(self, feed_id: str, owner_id: str) -> Optional[Feed]:
        feed = self._feeds.get(str(feed_id))
        if feed is None or feed.owner_id != owner_id:
            return None
        return feed

    def get_feed(self, feed_id, owner_id):
        with self._lock:
            feed = self._owned_feed(feed_id, owner_id)
            return copy.deepcopy(feed) if feed else None

    def list_items_by_feed(self, feed_id, owner_id):
        with self._lock:
            return [
                copy.deepcopy(i) for i in self._items.values()
                if i.feed_id == str(feed_id) and i.owner_id == owner_id
            ]

    def create_item(self, data: dict[str, Any]) -> ContentItem:
        with self._lock:
            dup = any(
                i.url == data["url"] and i.feed_id == data["feed_id"] and i.owner_id == data["owner_id"]
                for i in self._items.values()
            )
            if dup:
                raise ValueError(f"item already stored: {data['url']}")
            item = ContentItem(id=uuid.uuid4().hex, **data)
            if item.added_date is None:
                item.added_date = utcnow()
            self._items[item.id] = item
            return copy.deepcopy(item)

    def update_feed(self, feed_id, patch, owner_id):
        check_patch(patch)
        with self._lock:
            feed = self._owned_feed(feed_id, owner_id)
            if feed is None:
                return None
            for key, value in patch.items():
                if key == "fetch_errors":
                    value = [e if isinstance(e, FetchError) else FetchError.from_dict(e) for e in value]
                setattr(feed, key, copy.deepcopy(value))
            return copy.deepcopy(feed)

    def list_active_feeds(self, owner_id):
        with self._lock:
            return [
                copy.deepcopy(f) for f in self._feeds.values()
                if f.owner_id == owner_id and f.is_active and not f.is_paused
            ]

    def list_all_active_feeds(self):
        with self._lock:
            return [copy.deepcopy(f) for f in self._feeds.values() if f.is_active and not f.is_paused]

    def create_feed(self, data: dict[str, Any]) -> Feed:
        data = dict(data)
        feed_id = str(data.pop("id", None) or uuid.uuid4().hex)
        with self._lock:
            if feed_id in self._feeds:
                raise ValueError(f"feed already exists: {feed_id}")
            feed = Feed(id=feed_id, **data)
            self._feeds[feed_id] = feed
            return copy.deepcopy(feed)
