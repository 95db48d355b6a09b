"""Row conversion shared by the recorder adapters."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from core.models import JST, Book

# Column order matches the warehouse schema.
COLUMNS = (
    "ISBN",
    "PubDate",
    "Title",
    "Url",
    "Authors",
    "Publisher",
    "Categories",
    "Ccode",
    "Target",
    "Format",
    "Content",
    "CreatedAt",
    "LastUpdatedAt",
    "UploadedAt",
    "UploadedDate",
)


def _timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def uploaded_date_of(upload_date: datetime) -> str:
    """Return the JST calendar date used to partition a feed snapshot."""

    if upload_date.tzinfo is not None:
        upload_date = upload_date.astimezone(JST)
    return upload_date.date().isoformat()


def book_to_row(book: Book, uploaded_at: datetime) -> Dict[str, Any]:
    """Convert a Book into a JSON-serializable row keyed by column name."""

    pub_date = book.pub_date.astimezone(JST) if book.pub_date.tzinfo else book.pub_date
    return {
        "ISBN": book.isbn,
        "PubDate": pub_date.date().isoformat(),
        "Title": book.title,
        "Url": book.url,
        "Authors": book.authors,
        "Publisher": book.publisher,
        "Categories": book.categories,
        "Ccode": book.ccode,
        "Target": book.target,
        "Format": book.format,
        "Content": book.content,
        "CreatedAt": _timestamp(book.created_date),
        "LastUpdatedAt": _timestamp(book.last_updated_date),
        "UploadedAt": uploaded_at.isoformat(),
        "UploadedDate": uploaded_date_of(uploaded_at),
    }
