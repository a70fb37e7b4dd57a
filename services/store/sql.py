"""Flask-SQLAlchemy backed store.

Each call opens its own app context so the store can be used from scheduler
threads. Rows never leave this module; callers get plain records.
"""
import logging
from contextlib import contextmanager
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from apps.api.models import Article as ArticleRow
from apps.api.models import Feed as FeedRow
from services.store.base import FeedStore, check_patch
from services.store.records import ContentItem, FetchError, Feed
from shared.db import db

logger = logging.getLogger(__name__)


def _to_feed(row: FeedRow) -> Feed:
    return Feed(
        id=row.id,
        url=row.url,
        owner_id=row.owner_id,
        name=row.name or "",
        is_active=bool(row.is_active),
        is_paused=bool(row.is_paused),
        paused_at=row.paused_at,
        update_frequency=row.update_frequency or 60,
        last_fetched=row.last_fetched,
        last_updated=row.last_updated,
        status=row.status or "pending",
        error_message=row.error_message,
        fetch_errors=[FetchError.from_dict(e) for e in (row.fetch_errors or [])],
        article_count=row.article_count or 0,
        default_tags=list(row.default_tags or []),
    )


def _to_item(row: ArticleRow) -> ContentItem:
    return ContentItem(
        id=row.id,
        feed_id=row.feed_id,
        owner_id=row.owner_id,
        url=row.url,
        title=row.title or "Untitled",
        feed_name=row.feed_name or "",
        author=row.author,
        published_date=row.published_date,
        added_date=row.added_date,
        status=row.status or "inbox",
        media_type=row.media_type or "text",
        summary=row.summary or "",
        content=row.content or "",
        content_no_images=row.content_no_images or "",
        text_content=row.text_content or "",
        word_count=row.word_count or 0,
        reading_time=row.reading_time or "1 min",
        image_url=row.image_url,
        tags=list(row.tags or []),
        is_favorite=bool(row.is_favorite),
        is_hidden=bool(row.is_hidden),
        reading_progress=row.reading_progress or 0,
    )


class SqlAlchemyStore(FeedStore):
    def __init__(self, app):
        self.app = app

    @contextmanager
    def _session(self):
        with self.app.app_context():
            try:
                yield db.session
                db.session.commit()
            except SQLAlchemyError:
                db.session.rollback()
                raise

    def _feed_row(self, feed_id, owner_id):
        return FeedRow.query.filter_by(id=str(feed_id), owner_id=owner_id).first()

    def get_feed(self, feed_id, owner_id):
        with self._session():
            row = self._feed_row(feed_id, owner_id)
            return _to_feed(row) if row else None

    def list_items_by_feed(self, feed_id, owner_id):
        with self._session():
            rows = (ArticleRow.query
                    .filter_by(feed_id=str(feed_id), owner_id=owner_id)
                    .order_by(ArticleRow.added_date)
                    .all())
            return [_to_item(r) for r in rows]

    def create_item(self, data: dict[str, Any]) -> ContentItem:
        with self._session() as session:
            row = ArticleRow(**data)
            session.add(row)
            session.flush()
            return _to_item(row)

    def update_feed(self, feed_id, patch, owner_id):
        check_patch(patch)
        with self._session():
            row = self._feed_row(feed_id, owner_id)
            if row is None:
                return None
            for key, value in patch.items():
                if key == "fetch_errors":
                    value = [e.to_dict() if isinstance(e, FetchError) else e for e in value]
                setattr(row, key, value)
            return _to_feed(row)

    def list_active_feeds(self, owner_id):
        with self._session():
            rows = (FeedRow.query
                    .filter_by(owner_id=owner_id, is_active=True, is_paused=False)
                    .order_by(FeedRow.created_at)
                    .all())
            return [_to_feed(r) for r in rows]

    def list_all_active_feeds(self):
        with self._session():
            rows = (FeedRow.query
                    .filter_by(is_active=True, is_paused=False)
                    .order_by(FeedRow.created_at)
                    .all())
            return [_to_feed(r) for r in rows]

    def create_feed(self, data: dict[str, Any]) -> Feed:
        data = dict(data)
        if "fetch_errors" in data:
            data["fetch_errors"] = [e.to_dict() if isinstance(e, FetchError) else e
                                    for e in data["fetch_errors"]]
        with self._session() as session:
            row = FeedRow(**data)
            session.add(row)
            session.flush()
            logger.debug("created feed %s for %s", row.id, row.owner_id)
            return _to_feed(row)
