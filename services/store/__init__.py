from services.store.base import FeedStore
from services.store.memory import MemoryStore
from services.store.records import ContentItem, FetchError, Feed


def make_store(backend: str, app=None) -> FeedStore:
    """Pick the persistence backend: "memory" (mock data) or "sql"."""
    if backend == "memory":
        return MemoryStore()
    if backend == "sql":
        if app is None:
            raise ValueError("the sql backend needs a Flask app")
        from services.store.sql import SqlAlchemyStore
        return SqlAlchemyStore(app)
    raise ValueError(f"unknown data backend: {backend!r}")


__all__ = ["ContentItem", "FeedStore", "Feed", "FetchError", "MemoryStore", "make_store"]
