"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to feedparser, openBD or warehouse-specific types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional
from zoneinfo import ZoneInfo

# Feed timestamps, openBD timestamps and partition dates are all Japan time.
JST = ZoneInfo("Asia/Tokyo")


@dataclass(frozen=True)
class Book:
    """One new release, enriched as far as the upstream lookups allowed."""

    isbn: str
    title: str
    url: str
    pub_date: datetime
    categories: str = ""
    authors: str = ""
    publisher: str = ""
    ccode: str = ""
    target: str = ""
    format: str = ""
    content: str = ""
    created_date: Optional[datetime] = None
    last_updated_date: Optional[datetime] = None


@dataclass(frozen=True)
class BookList:
    """The books announced by one feed snapshot."""

    upload_date: datetime
    books: List[Book] = field(default_factory=list)


@dataclass(frozen=True)
class DecodedSubject:
    """Labels decoded from a C-code."""

    ccode: str
    target: str
    format: str
    content: str


@dataclass(frozen=True)
class DetailedInformation:
    """Book metadata returned by the book-data API."""

    author: str
    publisher: str
    created_date: Optional[datetime]
    last_updated_date: Optional[datetime]
    ccode: str
    target: str = ""
    format: str = ""
    content: str = ""


@dataclass(frozen=True)
class UploadObject:
    """A blob to archive in the object store."""

    object_name: str
    content_type: str
    data: bytes
