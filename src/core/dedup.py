"""Deduplication helpers (core domain)."""

from __future__ import annotations

import re
from typing import Iterable, Optional
from urllib.parse import urlparse

from core.models import BookList

_ISBN13 = re.compile(r"[0-9]{13}")


def extract_isbn(link: str) -> str:
    """Return the first 13-digit run in the URL path, or an empty string."""

    match: Optional[re.Match] = _ISBN13.search(urlparse(link or "").path)
    return match.group(0) if match else ""


def filter_out(book_list: BookList, isbns: Iterable[str]) -> BookList:
    """Drop books whose ISBN was already recorded, preserving order."""

    recorded = set(isbns)
    return BookList(
        upload_date=book_list.upload_date,
        books=[book for book in book_list.books if book.isbn not in recorded],
    )
