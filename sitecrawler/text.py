"""Page records and the text, title and link extraction applied to pages."""

from __future__ import annotations

import unicodedata
from dataclasses import dataclass, field
from datetime import datetime, timezone
from html.parser import HTMLParser
from typing import Iterable, List, NamedTuple, Optional, Sequence, Tuple, Union
from urllib.parse import unquote, urlsplit

SKIP_TAGS = frozenset(
    {
        "script",
        "style",
        "noscript",
        "template",
        "iframe",
        "canvas",
        "svg",
        "meta",
        "link",
        "head",
        "object",
        "embed",
        "javascript",
        "nav",
        "footer",
        "form",
        "span",
        "img",
    }
)

WORD_LIMIT = 1000


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class CrawledURL:
    """A URL waiting to be fetched, or a fetched page with its raw HTML."""

    url: str
    domain: str = ""
    html_raw: bytes = b""
    crawled_at: Optional[datetime] = None


@dataclass
class PageContent:
    """The searchable text extracted from one page."""

    title: str
    body: str
    path: str
    added_at: datetime = field(default_factory=_now)


def tokenize(text: str) -> List[str]:
    """Split ``text`` into words of letters, digits and punctuation."""
    cleaned = "".join(
        ch if unicodedata.category(ch)[0] in "LNP" else " " for ch in text
    )
    return cleaned.split()


def _hostname(url: str) -> str:
    netloc = urlsplit(url).netloc
    host = netloc.rpartition("@")[2]
    if host.startswith("["):
        return host[1:].partition("]")[0]
    return host.partition(":")[0]


def is_same_domain(base: str, link: str) -> bool:
    """Whether ``link`` is on the host of ``base``, allowing a leading "www."."""
    try:
        base_host = _hostname(base)
        link_host = _hostname(link)
    except ValueError:
        return False
    if link_host.startswith("www."):
        link_host = link_host[len("www."):]
    return base_host == link_host


def get_href(
    attrs: Iterable[Tuple[str, Optional[str]]], seed_url: str
) -> str:
    """Return the first href on the seed's domain, or "" if there is none."""
    for key, value in attrs:
        if key != "href":
            continue
        value = value or ""
        if is_same_domain(seed_url, value):
            return value
    return ""


def url_path(url: str) -> str:
    """Return the decoded path of ``url``, or "" when it cannot be parsed."""
    try:
        return unquote(urlsplit(url).path)
    except ValueError:
        return ""


class _Token(NamedTuple):
    kind: str
    name: str = ""
    attrs: Sequence[Tuple[str, Optional[str]]] = ()
    data: str = ""


class _TokenCollector(HTMLParser):
    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.tokens: List[_Token] = []

    def handle_starttag(self, tag, attrs):
        self.tokens.append(_Token("start", tag, attrs))

    def handle_startendtag(self, tag, attrs):
        self.tokens.append(_Token("start", tag, attrs))

    def handle_endtag(self, tag):
        self.tokens.append(_Token("end", tag))

    def handle_data(self, data):
        self.tokens.append(_Token("text", data=data))

    def handle_comment(self, data):
        self.tokens.append(_Token("other"))

    def handle_decl(self, decl):
        self.tokens.append(_Token("other"))

    def handle_pi(self, data):
        self.tokens.append(_Token("other"))

    def unknown_decl(self, data):
        self.tokens.append(_Token("other"))


def _tokens(raw: Union[bytes, str]) -> List[_Token]:
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    collector = _TokenCollector()
    collector.feed(raw)
    collector.close()
    return collector.tokens


def extract_page(
    raw: Union[bytes, str], url: str, seed_url: str, visited
) -> Tuple[PageContent, List[str]]:
    """Extract a page's title and body words, and its unvisited same-site links.

    A skipped tag, and an anchor, also swallow the token right after them.
    """
    in_title = False
    in_body = False
    title = ""
    words: List[str] = []
    links: List[str] = []

    tokens = iter(_tokens(raw))
    for token in tokens:
        if token.kind == "start":
            if token.name in SKIP_TAGS:
                next(tokens, None)
                continue
            if token.name == "title":
                in_title = True
            if token.name == "body":
                in_body = True
            if token.name == "a":
                next(tokens, None)
                href = get_href(token.attrs, seed_url)
                if href and href not in visited:
                    links.append(href)
        elif token.kind == "end":
            if token.name == "title":
                in_title = False
            if token.name == "body":
                in_body = False
        elif token.kind == "text":
            if in_title and not title:
                title = token.data.strip()
            if in_body and len(words) < WORD_LIMIT:
                pieces = tokenize(token.data.strip())
                remaining = max(WORD_LIMIT - len(pieces), 0)
                words.extend(pieces[:remaining])

    content = PageContent(title=title, body=" ".join(words), path=url_path(url))
    return content, links