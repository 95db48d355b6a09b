"""Ports (interfaces) used by the core pipeline.

Ports define the minimal contracts for detail lookup, persistence and
notification adapters so that the core can be reused with different backends.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Protocol

from core.models import Book, BookList, DetailedInformation


class DetailFetcherPort(Protocol):
    """Book metadata lookup. Returns None when the book is unknown."""

    def fetch_detail_info(self, isbn: str) -> Optional[DetailedInformation]:
        ...


class RecorderPort(Protocol):
    """Storage operations required by the core pipeline."""

    def get_recorded_isbns(self, upload_date: datetime) -> List[str]:
        ...

    def save_records(self, book_list: BookList) -> None:
        ...


class FilterPort(Protocol):
    def is_match(self, book: Book) -> bool:
        ...


class NotifierPort(Protocol):
    """Notification operations required by the core pipeline."""

    async def post(self, message: str) -> None:
        ...
