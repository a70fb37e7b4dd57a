import uuid

from services.store.records import utcnow
from shared.db import db


class Article(db.Model):
    __tablename__ = "articles"
    id = db.Column(db.String(32), primary_key=True, default=lambda: uuid.uuid4().hex)
    feed_id = db.Column(db.String(32), db.ForeignKey("feeds.id", name="fk_articles_feed_id"), index=True)
    feed_name = db.Column(db.String(200))
    owner_id = db.Column(db.String(64), nullable=False, index=True)
    title = db.Column(db.String(1000), default="Untitled")
    url = db.Column(db.String(1000), nullable=False)
    author = db.Column(db.String(300))
    published_date = db.Column(db.DateTime)
    added_date = db.Column(db.DateTime, default=utcnow)
    status = db.Column(db.String(20), default="inbox")

    media_type = db.Column(db.String(10), default="text")   # text | video | audio
    summary = db.Column(db.Text)
    content = db.Column(db.Text)              # sanitized HTML, images kept
    content_no_images = db.Column(db.Text)
    text_content = db.Column(db.Text)
    word_count = db.Column(db.Integer, default=0)
    reading_time = db.Column(db.String(20), default="1 min")
    image_url = db.Column(db.String(1000))
    tags = db.Column(db.JSON, default=list)

    is_favorite = db.Column(db.Boolean, default=False)
    is_hidden = db.Column(db.Boolean, default=False)
    reading_progress = db.Column(db.Integer, default=0)

    __table_args__ = (
        db.UniqueConstraint("owner_id", "feed_id", "url", name="uq_articles_owner_feed_url"),
    )
