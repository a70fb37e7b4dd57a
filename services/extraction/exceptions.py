class ExtractionError(Exception):
    """Base class for failures while pulling a feed."""


class FeedFetchError(ExtractionError):
    """The syndication document could not be downloaded."""

    def __init__(self, url: str, reason: str, status_code: int | None = None):
        self.url = url
        self.status_code = status_code
        super().__init__(f"Failed to fetch {url}: {reason}")


class FeedParseError(ExtractionError):
    """The document was fetched but is not a usable RSS/Atom feed."""

    def __init__(self, url: str, reason: str):
        self.url = url
        super().__init__(f"Failed to parse feed {url}: {reason}")
