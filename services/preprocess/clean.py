import re
from bs4 import BeautifulSoup, Comment

# Elements that never survive sanitizing (players, embeds, executable content)
DROP_TAGS = ["script", "style", "noscript", "template", "iframe", "video", "audio",
             "embed", "object", "form", "input", "button", "frame", "frameset"]
IMAGE_TAGS = ["img", "picture", "source", "svg"]

# Share/ads/footer noise, matched on class/id/role/aria (plain-text only)
NOISE_PATTERNS = [
    r"advertis", r"\bad[-_]?slot\b", r"\bcookie\b", r"\bshare\b", r"follow\s+us",
    r"newsletter", r"related\s+articles", r"\bpromo\b", r"\bpaywall\b",
    r"\bsocial\b", r"\bsubscribe[- ]?now\b",
]
_noise_re = re.compile("|".join(NOISE_PATTERNS), re.I)
_ws_re = re.compile(r"\s+")
_tag_re = re.compile(r"<[^>]*>")


def _is_unsafe_url(value: str) -> bool:
    v = _ws_re.sub("", value or "").lower()
    return v.startswith("javascript:") or v.startswith("vbscript:")


def _strip_attrs(soup: BeautifulSoup) -> None:
    for tag in soup.find_all(True):
        for attr in list(tag.attrs):
            if attr.lower().startswith("on"):
                del tag[attr]
            elif attr.lower() in ("href", "src", "action", "formaction") and _is_unsafe_url(tag.get(attr)):
                del tag[attr]


def sanitize_html(raw: str | None, preserve_images: bool = True) -> str:
    """Cleaned HTML for the reader view.

    Players and embeds go, event handlers and script URLs are stripped.
    With preserve_images=False every image-ish element is removed too.
    """
    if not raw:
        return ""
    soup = BeautifulSoup(raw, "html.parser")

    for c in soup.find_all(string=lambda s: isinstance(s, Comment)):
        c.extract()
    for tag in soup(DROP_TAGS):
        tag.decompose()

    if not preserve_images:
        for tag in soup(IMAGE_TAGS):
            tag.decompose()
        # figure wrappers left with only a caption or nothing
        for fig in soup.find_all("figure"):
            if not fig.get_text(strip=True):
                fig.decompose()

    _strip_attrs(soup)
    return str(soup).strip()


def to_plain_text(raw: str | None) -> str:
    if not raw:
        return ""
    soup = BeautifulSoup(raw, "html.parser")

    for tag in soup(["script", "style", "noscript", "template"]):
        tag.decompose()

    for tag in soup.find_all(True):
        if tag.decomposed:
            continue
        role = (tag.get("role") or "").lower()
        attrs = " ".join([tag.get("id") or "", " ".join(tag.get("class") or []), role]).lower()
        if role in {"banner", "navigation", "complementary", "contentinfo"} or (
                attrs.strip() and _noise_re.search(attrs)):
            tag.decompose()

    text = soup.get_text(separator=" ", strip=True)
    return _ws_re.sub(" ", text).strip()


def make_summary(raw: str | None, max_length: int = 200) -> str:
    if not raw:
        return ""
    text = _tag_re.sub("", raw).strip()
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."


class HtmlSanitizer:
    """Default markup sanitizer handed to the extraction service."""

    def sanitize_html(self, raw, preserve_images=True):
        return sanitize_html(raw, preserve_images=preserve_images)

    def to_plain_text(self, raw):
        return to_plain_text(raw)
