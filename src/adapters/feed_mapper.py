"""Feed-to-core book mapping adapter.

This keeps feedparser-specific details out of the core pipeline.
"""

from __future__ import annotations

import json
import logging
import time
from datetime import datetime, timezone
from typing import Any, Optional

import feedparser

from core.dedup import extract_isbn
from core.errors import FeedError
from core.models import JST, Book, BookList, UploadObject

LOGGER = logging.getLogger(__name__)


def parse_feed(feed_url: str) -> feedparser.FeedParserDict:
    """Fetch and parse the new-releases feed."""

    parsed = feedparser.parse(feed_url)
    if getattr(parsed, "bozo", False) and not parsed.get("entries"):
        bozo_exception = parsed.get("bozo_exception", "Unknown parsing error")
        raise FeedError(f"Unable to parse feed {feed_url}: {bozo_exception}")
    LOGGER.info("Fetched %s feed entries from %s", len(parsed.get("entries", [])), feed_url)
    return parsed


def _to_jst(value: Optional[time.struct_time]) -> Optional[datetime]:
    # feedparser normalizes *_parsed timestamps to UTC.
    if not value:
        return None
    return datetime(*value[:6], tzinfo=timezone.utc).astimezone(JST)


def feed_upload_date(parsed: Any) -> datetime:
    """Return the feed's publish time, falling back to its update time, then now."""

    feed = parsed.get("feed", {})
    return (
        _to_jst(feed.get("published_parsed"))
        or _to_jst(feed.get("updated_parsed"))
        or datetime.now(JST)
    )


def _categories(entry: Any) -> str:
    terms = [(tag.get("term") or "").strip() for tag in entry.get("tags", []) or []]
    return ",".join(terms)


def build_book(entry: Any, fallback_date: datetime) -> Book:
    """Build a feed-only Book from one feed entry."""

    link = entry.get("link", "")
    return Book(
        isbn=extract_isbn(link),
        title=(entry.get("title") or "").strip(),
        url=link,
        categories=_categories(entry),
        pub_date=_to_jst(entry.get("published_parsed")) or fallback_date,
    )


def build_book_list(parsed: Any) -> BookList:
    """Build the core BookList from a parsed feed."""

    upload_date = feed_upload_date(parsed)
    books = []
    for entry in parsed.get("entries", []):
        book = build_book(entry, upload_date)
        if not book.isbn:
            LOGGER.warning("Skipping feed entry without ISBN: %s", book.url)
            continue
        books.append(book)
    return BookList(upload_date=upload_date, books=books)


def _jsonable(value: Any) -> Any:
    # *_parsed keys duplicate the raw date strings as struct_time.
    if isinstance(value, dict):
        return {key: _jsonable(item) for key, item in value.items() if not key.endswith("_parsed")}
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    return value


def _archive_payload(parsed: Any) -> dict:
    return {
        "feed": _jsonable(parsed.get("feed", {})),
        "entries": _jsonable(parsed.get("entries", [])),
    }


def build_upload_object(parsed: Any) -> UploadObject:
    """Serialize the feed snapshot as a dated JSON object for archiving."""

    upload_date = feed_upload_date(parsed)
    data = json.dumps(_archive_payload(parsed), ensure_ascii=False).encode("utf-8")
    return UploadObject(
        object_name=f"feed{upload_date:%Y%m%d}.json",
        content_type="application/json",
        data=data,
    )
