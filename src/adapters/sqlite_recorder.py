"""SQLite recorder adapter.

Implements the core RecorderPort using a simple SQLite database, for local
runs without a warehouse.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import List

from adapters.record_rows import COLUMNS, book_to_row, uploaded_date_of
from core.errors import RecorderError
from core.models import BookList


class SQLiteRecorder:
    """Thin SQLite wrapper that satisfies the RecorderPort contract."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        """Create the books table if it does not exist.

        One row per (book, feed snapshot). Columns mirror the warehouse
        schema; timestamps are ISO-8601 strings and dates are YYYY-MM-DD.
        """

        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS books (
                        ISBN TEXT NOT NULL,
                        PubDate TEXT NOT NULL,
                        Title TEXT NOT NULL,
                        Url TEXT NOT NULL,
                        Authors TEXT,
                        Publisher TEXT,
                        Categories TEXT,
                        Ccode TEXT,
                        Target TEXT,
                        Format TEXT,
                        Content TEXT,
                        CreatedAt TIMESTAMP,
                        LastUpdatedAt TIMESTAMP,
                        UploadedAt TIMESTAMP NOT NULL,
                        UploadedDate TEXT NOT NULL
                    )
                    """
                )
                conn.execute(
                    "CREATE INDEX IF NOT EXISTS books_uploaded_date ON books (UploadedDate)"
                )
        except sqlite3.Error as exc:
            raise RecorderError(f"Cannot initialize {self._db_path}: {exc}") from exc

    def get_recorded_isbns(self, upload_date: datetime) -> List[str]:
        """Return the distinct ISBNs recorded for the snapshot date."""

        try:
            with self._connect() as conn:
                rows = conn.execute(
                    "SELECT DISTINCT ISBN FROM books WHERE UploadedDate = ? ORDER BY ISBN",
                    (uploaded_date_of(upload_date),),
                ).fetchall()
        except sqlite3.Error as exc:
            raise RecorderError(f"Query execution failed: {exc}") from exc
        return [row["ISBN"] for row in rows]

    def save_records(self, book_list: BookList) -> None:
        """Append one row per book."""

        if not book_list.books:
            return
        rows = [book_to_row(book, book_list.upload_date) for book in book_list.books]
        placeholders = ", ".join("?" for _ in COLUMNS)
        try:
            with self._connect() as conn:
                conn.executemany(
                    f"INSERT INTO books ({', '.join(COLUMNS)}) VALUES ({placeholders})",
                    [tuple(row[column] for column in COLUMNS) for row in rows],
                )
        except sqlite3.Error as exc:
            raise RecorderError(f"Upload book records failed: {exc}") from exc
