"""The crawler: fetch pages within the seed's site and index their text."""

from __future__ import annotations

import argparse
import logging
import os
import queue as _stdqueue
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional
from urllib.parse import urlsplit
from urllib.robotparser import RobotFileParser

import requests
from dotenv import load_dotenv

from .pubsub import PubSub
from .storage import COLLECTION_CONTENT, connect_db, save_content
from .text import CrawledURL, extract_page
from .urlqueue import Queue, VisitedSet

logger = logging.getLogger(__name__)

SEED_URL = "https://nexford.edu/"
CONTENT_TOPIC = "add_content"
METADATA_TOPIC = "add_metadata"
USER_AGENT = "Mozilla/5.0 (compatible; MyCrawler/1.0)"

IDLE_INTERVAL = 0.5
IDLE_LIMIT = 3
PAGE_BUFFER = 10
CONTENT_BUFFER = 100


class RobotsError(Exception):
    """The robots.txt of a site could not be used."""


class RobotsDisallowed(RobotsError):
    """robots.txt forbids crawling the URL."""


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class CrawlStats:
    """Counters describing a crawl."""

    start_time: datetime = field(default_factory=_now)
    page_count: int = 0
    total_crawl_size: int = 0
    skipped_pages_robots: int = 0
    size: int = 0
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False, compare=False
    )

    def mark_visited(self, url: str, visited: VisitedSet) -> None:
        visited.mark(url)
        with self._lock:
            self.size += 1

    def _count_page(self) -> None:
        with self._lock:
            self.page_count += 1

    def _count_skipped(self) -> None:
        with self._lock:
            self.skipped_pages_robots += 1

    def report(self, now: datetime, queue_total: int) -> str:
        minutes = (now - self.start_time).total_seconds() / 60
        return (
            f"total queued {queue_total}\n"
            f"total crawl sized: {self.total_crawl_size}\n"
            f"total number of page crawled: {self.page_count}\n"
            f"total crawld time in min: {minutes:.2f}\n"
            f"number of page skipped due to robots.txt: {self.skipped_pages_robots}\n"
        )


def send_request(url: str) -> requests.Response:
    """GET ``url`` with the crawler's User-Agent."""
    return requests.get(url, headers={"User-Agent": USER_AGENT})


def check_robots(uri: str) -> str:
    """Return ``uri`` if the site's robots.txt lets any agent fetch it.

    Raises ValueError for an empty or malformed URL, RobotsDisallowed when
    crawling is forbidden, RobotsError for an unusable robots.txt status, and
    lets request errors propagate.
    """
    if not uri:
        raise ValueError("empty URI")
    try:
        parts = urlsplit(uri)
    except ValueError:
        raise ValueError(f"invalid URL: {uri}") from None
    if not parts.scheme or not parts.netloc:
        raise ValueError(f"invalid URL: {uri}")

    robots_url = f"{parts.scheme}://{parts.netloc}/robots.txt"
    response = send_request(robots_url)
    parser = RobotFileParser(robots_url)
    status = response.status_code
    if 200 <= status < 300:
        parser.parse(response.text.splitlines())
    elif 400 <= status < 500:
        parser.allow_all = True
    elif 500 <= status < 600:
        parser.disallow_all = True
    else:
        raise RobotsError(f"Unexpected status: {status}")

    if parser.can_fetch("*", uri):
        return uri
    raise RobotsDisallowed(f"cannot crawl url: {uri}")


def crawl_web_page(
    queue: Queue, pages: "_stdqueue.Queue", stats: CrawlStats, visited: VisitedSet
) -> None:
    """Fetch queued URLs and put fetched pages on ``pages``.

    Stops once the queue stays empty for a while, then puts None on ``pages``.
    """
    idle = 0
    while True:
        if queue.is_empty():
            time.sleep(IDLE_INTERVAL)
            idle += 1
            if idle > IDLE_LIMIT:
                pages.put(None)
                return
            continue
        idle = 0

        item = queue.dequeue()
        if item is None:
            continue
        try:
            url = check_robots(item.url)
        except RobotsDisallowed:
            continue
        except (ValueError, RobotsError, requests.RequestException):
            stats._count_skipped()
            continue

        if url in visited:
            continue

        try:
            response = send_request(url)
        except requests.RequestException as exc:
            logger.warning("%s: added url back to queue error: %s", url, exc)
            queue.enqueue(item)
            continue

        stats.mark_visited(url, visited)
        try:
            if response.status_code == 200:
                pages.put(CrawledURL(url=url, html_raw=response.content))
        finally:
            response.close()


def extract_text_data(
    pages: "_stdqueue.Queue",
    queue: Queue,
    pubsub: PubSub,
    stats: CrawlStats,
    visited: VisitedSet,
) -> None:
    """Turn fetched pages into content, queueing new links, until None arrives."""
    for page in iter(pages.get, None):
        content, links = extract_page(page.html_raw, page.url, SEED_URL, visited)
        for link in links:
            queue.enqueue(CrawledURL(url=link))
        stats._count_page()
        pubsub.publish(CONTENT_TOPIC, content)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="sitecrawler",
        description="Crawl a site from its seed URL and index page text.",
    )
    parser.parse_args(argv)

    if not load_dotenv(".env"):
        print("err: open .env: no such file or directory continuing...")

    client = None
    db_cred = os.environ.get("DBCred", "")
    if db_cred:
        client = connect_db(db_cred)
    else:
        print("no db cred provided, continuing...")

    work = Queue()
    work.enqueue(CrawledURL(url=SEED_URL))
    pages: _stdqueue.Queue = _stdqueue.Queue(maxsize=PAGE_BUFFER)
    stats = CrawlStats()
    visited = VisitedSet()
    pubsub = PubSub()
    content = pubsub.subscribe(CONTENT_TOPIC, CONTENT_BUFFER)

    def store() -> None:
        for item in content:
            if client is not None:
                save_content(client, COLLECTION_CONTENT, item)

    def extract() -> None:
        try:
            extract_text_data(pages, work, pubsub, stats, visited)
        finally:
            pubsub.shutdown()

    threads = [
        threading.Thread(target=store, name="store"),
        threading.Thread(
            target=crawl_web_page, args=(work, pages, stats, visited), name="crawl"
        ),
        threading.Thread(target=extract, name="extract"),
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    print(
        "-------------------------------> finished crawling data... "
        f"from provided seed url: {SEED_URL} <--------------------------------- "
    )
    print(stats.report(_now(), stats.size), end="")
    return 0