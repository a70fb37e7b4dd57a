import uuid

from services.store.records import utcnow
from shared.db import db


def _new_id() -> str:
    return uuid.uuid4().hex


class Feed(db.Model):
    __tablename__ = "feeds"
    id = db.Column(db.String(32), primary_key=True, default=_new_id)
    owner_id = db.Column(db.String(64), nullable=False, index=True)
    url = db.Column(db.String(500), nullable=False)
    name = db.Column(db.String(200), default="")
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    is_paused = db.Column(db.Boolean, default=False, nullable=False)
    paused_at = db.Column(db.DateTime)
    update_frequency = db.Column(db.Float, default=60)   # minutes

    # last poll outcome
    last_fetched = db.Column(db.DateTime)
    last_updated = db.Column(db.DateTime)
    status = db.Column(db.String(20), default="pending")
    error_message = db.Column(db.Text)
    fetch_errors = db.Column(db.JSON, default=list)   # [{"message", "timestamp"}], newest last

    article_count = db.Column(db.Integer, default=0)
    default_tags = db.Column(db.JSON, default=list)
    created_at = db.Column(db.DateTime, default=utcnow)

    __table_args__ = (
        db.UniqueConstraint("owner_id", "url", name="uq_feeds_owner_url"),
        db.Index("ix_feeds_owner_active", "owner_id", "is_active", "is_paused"),
    )
