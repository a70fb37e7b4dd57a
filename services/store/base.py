from abc import ABC, abstractmethod
from typing import Any, Optional

from services.store.records import ContentItem, Feed

# Fields update_feed() accepts. Anything else is a programming error.
FEED_PATCH_FIELDS = frozenset({
    "name", "is_active", "is_paused", "paused_at", "update_frequency",
    "last_fetched", "last_updated", "status", "error_message",
    "fetch_errors", "article_count", "default_tags",
})


class FeedStore(ABC):
    """Feed/article persistence as seen by the extraction service.

    Every lookup is scoped by owner; a feed that exists for another owner
    is reported as missing.
    """

    @abstractmethod
    def get_feed(self, feed_id: str, owner_id: str) -> Optional[Feed]:
        ...

    @abstractmethod
    def list_items_by_feed(self, feed_id: str, owner_id: str) -> list[ContentItem]:
        ...

    @abstractmethod
    def create_item(self, data: dict[str, Any]) -> ContentItem:
        ...

    @abstractmethod
    def update_feed(self, feed_id: str, patch: dict[str, Any], owner_id: str) -> Optional[Feed]:
        ...

    @abstractmethod
    def list_active_feeds(self, owner_id: str) -> list[Feed]:
        """Active, non-paused feeds of one owner."""

    @abstractmethod
    def list_all_active_feeds(self) -> list[Feed]:
        """Active, non-paused feeds across all owners."""

    @abstractmethod
    def create_feed(self, data: dict[str, Any]) -> Feed:
        ...


def check_patch(patch: dict[str, Any]) -> None:
    unknown = set(patch) - FEED_PATCH_FIELDS
    if unknown:
        raise ValueError(f"unknown feed fields: {', '.join(sorted(unknown))}")
