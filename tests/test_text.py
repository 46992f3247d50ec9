from datetime import datetime

import pytest

from sitecrawler.text import (
    CrawledURL,
    PageContent,
    extract_page,
    get_href,
    is_same_domain,
    tokenize,
    url_path,
)
from sitecrawler.urlqueue import VisitedSet

SEED = "https://nexford.edu/"


def test_tokenize_keeps_letters_digits_and_punctuation():
    assert tokenize("Hello, world! 42") == ["Hello,", "world!", "42"]


def test_tokenize_splits_on_symbols_and_whitespace():
    assert tokenize("a+b\tc$d") == ["a", "b", "c", "d"]


def test_tokenize_empty():
    assert tokenize("   ") == []


def test_tokenize_unicode_letters():
    assert tokenize("café naïve") == ["café", "naïve"]


@pytest.mark.parametrize(
    "link, expected",
    [
        ("https://nexford.edu/about", True),
        ("https://www.nexford.edu/about", True),
        ("http://nexford.edu:8080/x", True),
        ("https://other.example.com/", False),
        ("/relative/path", False),
        ("http://[broken", False),
    ],
)
def test_is_same_domain(link, expected):
    assert is_same_domain(SEED, link) is expected


def test_get_href_returns_first_same_domain_href():
    attrs = [
        ("class", "nav"),
        ("href", "https://other.example.com/"),
        ("href", "https://nexford.edu/programs"),
    ]
    assert get_href(attrs, SEED) == "https://nexford.edu/programs"


def test_get_href_without_match_is_empty():
    assert get_href([("href", None), ("id", "x")], SEED) == ""


def test_url_path_is_decoded():
    assert url_path("https://nexford.edu/a%20b") == "/a b"
    assert url_path("https://nexford.edu") == ""


def test_records_defaults():
    item = CrawledURL(url=SEED)
    assert (item.domain, item.html_raw, item.crawled_at) == ("", b"", None)
    page = PageContent(title="t", body="b", path="/")
    assert isinstance(page.added_at, datetime)


PAGE = (
    "<html><title>My Title</title><body><h1>Hello world</h1>"
    '<a href="https://nexford.edu/about">About us</a>'
    '<a href="https://other.example.com/">Elsewhere</a>'
    "<p>Read more</p></body></html>"
)


def test_extract_page_title_body_and_links():
    content, links = extract_page(PAGE.encode(), "https://nexford.edu/home", SEED, VisitedSet())
    assert content.title == "My Title"
    assert content.body == "Hello world Read more"
    assert content.path == "/home"
    assert links == ["https://nexford.edu/about"]


def test_extract_page_skips_visited_links():
    seen = VisitedSet()
    seen.mark("https://nexford.edu/about/")
    _, links = extract_page(PAGE, SEED, SEED, seen)
    assert links == []


def test_skip_tag_swallows_following_token():
    content, _ = extract_page("<body><span>hidden</span>shown</body>", SEED, SEED, set())
    assert content.body == "shown"


def test_head_swallows_title_start_tag():
    content, _ = extract_page(
        "<head><title>Lost</title></head><body>kept</body>", SEED, SEED, set()
    )
    assert content.title == ""
    assert content.body == "kept"


def test_text_outside_body_is_not_collected():
    content, _ = extract_page("<p>before</p><body>inside</body>after", SEED, SEED, set())
    assert content.body == "inside"


def test_long_text_run_is_capped_by_its_own_length():
    text = " ".join(["w"] * 600)
    content, _ = extract_page(f"<body><p>{text}</p></body>", SEED, SEED, set())
    assert len(content.body.split()) == 1000 - 600


def test_short_text_runs_are_kept_whole():
    content, _ = extract_page("<body><p>one two</p><p>three</p></body>", SEED, SEED, set())
    assert content.body.split() == ["one", "two", "three"]