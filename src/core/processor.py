"""Core book processing pipeline.

This module is integration-agnostic. It only relies on ports for detail
lookup, storage and notifications, enabling other feeds or backends without
changes here.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from typing import Callable, List, Optional

from core.dedup import filter_out
from core.errors import DetailFetchError, NotificationError, RecorderError
from core.models import Book, BookList, DetailedInformation
from core.ports import DetailFetcherPort, FilterPort, NotifierPort, RecorderPort

LOGGER = logging.getLogger(__name__)


def apply_details(book: Book, details: DetailedInformation) -> Book:
    """Return a copy of ``book`` enriched with book-data API metadata."""

    return dataclasses.replace(
        book,
        authors=details.author,
        publisher=details.publisher,
        ccode=details.ccode,
        target=details.target,
        format=details.format,
        content=details.content,
        created_date=details.created_date,
        last_updated_date=details.last_updated_date,
    )


class BookProcessor:
    """Orchestrates dedup, enrichment, filtering, notification and persistence."""

    def __init__(
        self,
        fetcher: DetailFetcherPort,
        recorder: Optional[RecorderPort],
        notification_filter: FilterPort,
        notifier: NotifierPort,
        format_message: Callable[[Book], str],
    ) -> None:
        self._fetcher = fetcher
        self._recorder = recorder
        self._filter = notification_filter
        self._notifier = notifier
        self._format_message = format_message

    async def run(self, book_list: BookList) -> int:
        """Process one feed snapshot and return the number of new books."""

        new_book_list = self._drop_recorded(book_list)

        # One task per book; the filter is immutable and shared by all of them.
        enriched: List[Book] = list(
            await asyncio.gather(*(self._handle_safely(book) for book in new_book_list.books))
        )

        # Persist only after every book has had its chance to be enriched.
        if self._recorder is not None:
            try:
                self._recorder.save_records(BookList(upload_date=new_book_list.upload_date, books=enriched))
            except RecorderError:
                LOGGER.exception("Cannot save newly arrived book records")

        return len(enriched)

    def _drop_recorded(self, book_list: BookList) -> BookList:
        if self._recorder is None:
            return book_list
        try:
            recorded = self._recorder.get_recorded_isbns(book_list.upload_date)
        except RecorderError:
            # Treat as "nothing recorded yet"; a duplicate notification beats a missed one.
            LOGGER.exception("Cannot fetch ISBNs of recorded books")
            recorded = []
        return filter_out(book_list, recorded)

    async def _handle_safely(self, book: Book) -> Book:
        # One broken book must not cost the rest of the batch its record.
        try:
            return await self._handle(book)
        except Exception:
            LOGGER.exception("Error while processing %s (%s)", book.isbn, book.title)
            return book

    async def _handle(self, book: Book) -> Book:
        """Enrich, filter and notify for a single book."""

        try:
            details = await asyncio.to_thread(self._fetcher.fetch_detail_info, book.isbn)
        except DetailFetchError as exc:
            LOGGER.warning("Cannot fetch details (%s, %s): %s", book.isbn, book.title, exc)
            details = None
        else:
            if details is None:
                LOGGER.info("No details found (%s, %s)", book.isbn, book.title)

        if details is not None:
            book = apply_details(book, details)

        if self._filter.is_match(book):
            try:
                await self._notifier.post(self._format_message(book))
            except NotificationError as exc:
                LOGGER.error("Error in notifying %s (%s): %s", book.isbn, book.title, exc)
            else:
                LOGGER.info("Notified %s (%s)", book.isbn, book.title)

        return book
