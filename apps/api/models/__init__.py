from apps.api.models.article import Article
from apps.api.models.feed import Feed

__all__ = ["Article", "Feed"]
