"""Outcomes of an extraction run.

Each outcome is its own type so callers can match on it instead of probing
optional keys; to_dict() gives the JSON payload used by the HTTP layer.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Union

from services.store.records import ContentItem


@dataclass(frozen=True)
class InProgress:
    feed_id: str
    message: str = "Feed is already being refreshed"
    success: bool = field(default=False, init=False)

    def to_dict(self) -> dict:
        return {"success": False, "feedId": self.feed_id, "message": self.message}


@dataclass(frozen=True)
class NotFound:
    feed_id: str
    message: str = "Feed not found"
    success: bool = field(default=False, init=False)

    def to_dict(self) -> dict:
        return {"success": False, "feedId": self.feed_id, "message": self.message}


@dataclass(frozen=True)
class Paused:
    feed_id: str
    message: str = "Feed is paused"
    success: bool = field(default=False, init=False)
    paused: bool = field(default=True, init=False)

    def to_dict(self) -> dict:
        return {"success": False, "feedId": self.feed_id, "message": self.message, "paused": True}


@dataclass(frozen=True)
class Failure:
    feed_id: str
    error: str
    success: bool = field(default=False, init=False)

    @property
    def message(self) -> str:
        return self.error

    def to_dict(self) -> dict:
        return {"success": False, "feedId": self.feed_id, "message": self.error, "error": self.error}


@dataclass(frozen=True)
class Success:
    feed_id: str
    feed_name: str
    feed_title: str
    articles: list[ContentItem]
    total_articles: int
    success: bool = field(default=True, init=False)

    @property
    def new_articles(self) -> int:
        return len(self.articles)

    def to_dict(self) -> dict:
        return {
            "success": True,
            "feedId": self.feed_id,
            "feedName": self.feed_name,
            "feedTitle": self.feed_title,
            "newArticles": self.new_articles,
            "totalArticles": self.total_articles,
            "articles": [a.to_dict() for a in self.articles],
        }


ExtractionResult = Union[InProgress, NotFound, Paused, Failure, Success]


def new_article_count(result: ExtractionResult) -> int:
    return result.new_articles if isinstance(result, Success) else 0


@dataclass(frozen=True)
class AggregateResult:
    success: bool
    results: list[ExtractionResult] = field(default_factory=list)
    message: Optional[str] = None

    @property
    def feeds_processed(self) -> int:
        return len(self.results)

    @property
    def total_new_articles(self) -> int:
        return sum(new_article_count(r) for r in self.results)

    def to_dict(self) -> dict:
        if not self.success:
            return {"success": False, "message": self.message}
        return {
            "success": True,
            "feedsProcessed": self.feeds_processed,
            "totalNewArticles": self.total_new_articles,
            "results": [r.to_dict() for r in self.results],
        }


@dataclass(frozen=True)
class FeedControlResult:
    success: bool
    message: str

    def to_dict(self) -> dict:
        return {"success": self.success, "message": self.message}


@dataclass(frozen=True)
class AutoRefreshStatus:
    feed_id: str
    is_refreshing: bool
    interval_minutes: float
    next_run_time: Optional[datetime] = None
    active: bool = True

    def to_dict(self) -> dict:
        return {
            "feedId": self.feed_id,
            "active": self.active,
            "isRefreshing": self.is_refreshing,
            "intervalMinutes": self.interval_minutes,
            "nextRunTime": self.next_run_time.isoformat() if self.next_run_time else None,
        }
