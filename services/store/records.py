"""Plain records exchanged between the extraction service and the stores."""
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional


def utcnow() -> datetime:
    """Naive UTC timestamp, the convention for every stored datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


@dataclass
class FetchError:
    message: str
    timestamp: datetime

    def to_dict(self) -> dict:
        return {"message": self.message, "timestamp": self.timestamp.isoformat()}

    @classmethod
    def from_dict(cls, data: dict) -> "FetchError":
        ts = data.get("timestamp")
        if isinstance(ts, str):
            ts = datetime.fromisoformat(ts)
        return cls(message=data.get("message", ""), timestamp=ts or utcnow())


@dataclass
class Feed:
    id: str
    url: str
    owner_id: str
    name: str = ""
    is_active: bool = True
    is_paused: bool = False
    paused_at: Optional[datetime] = None
    update_frequency: float = 60
    last_fetched: Optional[datetime] = None
    last_updated: Optional[datetime] = None
    status: str = "pending"
    error_message: Optional[str] = None
    fetch_errors: list[FetchError] = field(default_factory=list)
    article_count: int = 0
    default_tags: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["fetch_errors"] = [e.to_dict() for e in self.fetch_errors]
        for k in ("paused_at", "last_fetched", "last_updated"):
            if d[k] is not None:
                d[k] = d[k].isoformat()
        return d


@dataclass
class ContentItem:
    id: str
    feed_id: str
    owner_id: str
    url: str
    title: str = "Untitled"
    feed_name: str = ""
    author: Optional[str] = None
    published_date: Optional[datetime] = None
    added_date: Optional[datetime] = None
    status: str = "inbox"
    media_type: str = "text"
    summary: str = ""
    content: str = ""
    content_no_images: str = ""
    text_content: str = ""
    word_count: int = 0
    reading_time: str = "1 min"
    image_url: Optional[str] = None
    tags: list[str] = field(default_factory=list)
    is_favorite: bool = False
    is_hidden: bool = False
    reading_progress: int = 0

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        for k in ("published_date", "added_date"):
            if d[k] is not None:
                d[k] = d[k].isoformat()
        return d
