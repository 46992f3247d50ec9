"""MongoDB persistence for extracted page content and URL metadata."""

from __future__ import annotations

import dataclasses
import logging
from typing import Any, Dict, Mapping, Optional, Union

import pymongo
from pymongo import ASCENDING, TEXT, MongoClient
from pymongo.errors import PyMongoError

from .text import CrawledURL, PageContent

logger = logging.getLogger(__name__)

DB_NAME = "crawledContent"
COLLECTION_CONTENT = "content"
COLLECTION_METADATA = "url_metadata"

CONNECT_TIMEOUT = 2.0
INSERT_TIMEOUT = 10.0

Document = Union[PageContent, CrawledURL, Mapping[str, Any]]


def _as_document(doc: Document) -> Dict[str, Any]:
    if dataclasses.is_dataclass(doc) and not isinstance(doc, type):
        return dataclasses.asdict(doc)
    return dict(doc)


def _create_index(collection, keys, description: str, **options) -> None:
    try:
        collection.create_index(keys, **options)
    except PyMongoError as exc:
        logger.error("unable to create %s: %s", description, exc)


def _create_indexes(client) -> None:
    content = client[DB_NAME][COLLECTION_CONTENT]
    _create_index(
        content, [("title", TEXT), ("body", TEXT)], "text index on collection"
    )
    metadata = client[DB_NAME][COLLECTION_METADATA]
    _create_index(metadata, [("path", ASCENDING)], "unique index on url", unique=True)
    _create_index(metadata, [("url", ASCENDING)], "unique index on url", unique=True)


def connect_db(conn_str: str) -> Optional[MongoClient]:
    """Connect, ping and prepare indexes; return the client or None on failure."""
    try:
        client = MongoClient(
            conn_str, serverSelectionTimeoutMS=int(CONNECT_TIMEOUT * 1000)
        )
    except (PyMongoError, ValueError) as exc:
        logger.error("could not connect to mongdb: %s", exc)
        return None

    with pymongo.timeout(CONNECT_TIMEOUT):
        try:
            client.admin.command("ping")
        except PyMongoError as exc:
            logger.error("could not ping: %s", exc)
            client.close()
            return None
        _create_indexes(client)

    logger.info("database connected successfully")
    return client


def add_to_collection(client, collection_name: str, doc: Document) -> None:
    """Insert ``doc`` into ``collection_name``; insertion errors propagate."""
    collection = client[DB_NAME][collection_name]
    try:
        collection.insert_one(_as_document(doc))
    except PyMongoError as exc:
        logger.error("failed to insert data in mongo: %s", exc)
        raise


def save_content(client, collection_name: str, content: Document) -> bool:
    """Store ``content`` if a client is available; return whether it was stored."""
    if client is None:
        return False
    with pymongo.timeout(INSERT_TIMEOUT):
        try:
            add_to_collection(client, collection_name, content)
        except PyMongoError as exc:
            logger.error("inserting data error: %s", exc)
            return False
    return True