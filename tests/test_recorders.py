from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, List

import pytest
from google.api_core import exceptions

from adapters.bigquery_recorder import BigQueryRecorder
from adapters.record_rows import book_to_row
from adapters.sqlite_recorder import SQLiteRecorder
from core.config import BigQuerySettings
from core.errors import RecorderError
from core.models import JST, Book, BookList

DATE1 = datetime(2024, 8, 31, 12, 13, 24, tzinfo=JST)
UPLOADED_AT = datetime(2022, 8, 1, 12, 30, tzinfo=JST)


def _book(isbn: str = "1111111111111", **overrides) -> Book:
    values = dict(
        isbn=isbn,
        title="ご冗談でしょう、tatamiyaさん - tatamiya tamiya(著 / 文) | 畳屋書店",
        url=f"http://example.com/bd/isbn/{isbn}",
        pub_date=DATE1,
        authors="tatamiya tamiya",
        publisher="畳屋書店",
        categories="自然科学",
        ccode="1042",
        target="教養",
        format="単行本",
        content="物理学",
        created_date=DATE1,
        last_updated_date=DATE1,
    )
    values.update(overrides)
    return Book(**values)


def test_convert_book_into_row() -> None:
    assert book_to_row(_book(), UPLOADED_AT) == {
        "ISBN": "1111111111111",
        "PubDate": "2024-08-31",
        "Title": "ご冗談でしょう、tatamiyaさん - tatamiya tamiya(著 / 文) | 畳屋書店",
        "Url": "http://example.com/bd/isbn/1111111111111",
        "Authors": "tatamiya tamiya",
        "Publisher": "畳屋書店",
        "Categories": "自然科学",
        "Ccode": "1042",
        "Target": "教養",
        "Format": "単行本",
        "Content": "物理学",
        "CreatedAt": "2024-08-31T12:13:24+09:00",
        "LastUpdatedAt": "2024-08-31T12:13:24+09:00",
        "UploadedAt": "2022-08-01T12:30:00+09:00",
        "UploadedDate": "2022-08-01",
    }


def test_uploaded_date_uses_japan_time() -> None:
    # 2022-07-31 16:00 UTC is already 2022-08-01 in Japan.
    row = book_to_row(_book(created_date=None), datetime(2022, 7, 31, 16, 0, tzinfo=timezone.utc))

    assert row["UploadedDate"] == "2022-08-01"
    assert row["CreatedAt"] is None


def test_sqlite_save_and_get_recorded_isbns(tmp_path) -> None:
    recorder = SQLiteRecorder(str(tmp_path / "shinkan.db"))
    recorder.init_db()

    recorder.save_records(
        BookList(
            upload_date=UPLOADED_AT,
            books=[_book("9999999999999", categories="", ccode=""), _book("1111111111111")],
        )
    )

    assert recorder.get_recorded_isbns(datetime(2022, 8, 1, 0, 0, tzinfo=JST)) == [
        "1111111111111",
        "9999999999999",
    ]


def test_sqlite_get_empty_when_nothing_recorded(tmp_path) -> None:
    recorder = SQLiteRecorder(str(tmp_path / "shinkan.db"))
    recorder.init_db()
    recorder.save_records(BookList(upload_date=UPLOADED_AT, books=[_book()]))

    assert recorder.get_recorded_isbns(datetime(2122, 8, 1, tzinfo=JST)) == []


def test_sqlite_errors_are_wrapped(tmp_path) -> None:
    recorder = SQLiteRecorder(str(tmp_path / "shinkan.db"))

    # Table was never created.
    with pytest.raises(RecorderError):
        recorder.get_recorded_isbns(UPLOADED_AT)


class _FakeQueryJob:
    def __init__(self, rows: List[dict]) -> None:
        self._rows = rows

    def result(self) -> List[dict]:
        return self._rows


class FakeBigQueryClient:
    def __init__(self, table_exists: bool = True, insert_errors: Any = None) -> None:
        self.table_exists = table_exists
        self.insert_errors = insert_errors or []
        self.created: List[Any] = []
        self.inserted: List[dict] = []
        self.queries: List[tuple] = []

    def get_table(self, table_id: str) -> object:
        if not self.table_exists:
            raise exceptions.NotFound(f"Table {table_id} not found")
        return object()

    def create_table(self, table: Any) -> Any:
        self.created.append(table)
        return table

    def insert_rows_json(self, table_id: str, rows: List[dict]) -> Any:
        self.inserted.extend(rows)
        return self.insert_errors

    def query(self, query: str, job_config: Any) -> _FakeQueryJob:
        self.queries.append((query, job_config))
        return _FakeQueryJob([{"ISBN": "1111111111111"}, {"ISBN": "9999999999999"}])


SETTINGS = BigQuerySettings(project_id="proj", dataset_name="books", table_name="new_books")


def test_bigquery_creates_missing_table_partitioned_by_uploaded_date() -> None:
    client = FakeBigQueryClient(table_exists=False)

    BigQueryRecorder(SETTINGS, client=client).ensure_table()

    assert len(client.created) == 1
    table = client.created[0]
    assert table.time_partitioning.field == "UploadedDate"
    assert [field.name for field in table.schema][0] == "ISBN"


def test_bigquery_keeps_existing_table() -> None:
    client = FakeBigQueryClient(table_exists=True)

    BigQueryRecorder(SETTINGS, client=client).ensure_table()

    assert client.created == []


def test_bigquery_get_recorded_isbns_uses_date_parameter() -> None:
    client = FakeBigQueryClient()

    isbns = BigQueryRecorder(SETTINGS, client=client).get_recorded_isbns(UPLOADED_AT)

    assert isbns == ["1111111111111", "9999999999999"]
    query, job_config = client.queries[0]
    assert "`proj.books.new_books`" in query
    parameter = job_config.query_parameters[0]
    assert parameter.name == "uploaded_date"
    assert parameter.value == date(2022, 8, 1)


def test_bigquery_save_records() -> None:
    client = FakeBigQueryClient()

    BigQueryRecorder(SETTINGS, client=client).save_records(
        BookList(upload_date=UPLOADED_AT, books=[_book(), _book("9999999999999")])
    )

    assert [row["ISBN"] for row in client.inserted] == ["1111111111111", "9999999999999"]


def test_bigquery_insert_errors_raise() -> None:
    client = FakeBigQueryClient(insert_errors=[{"index": 0, "errors": ["bad row"]}])

    with pytest.raises(RecorderError):
        BigQueryRecorder(SETTINGS, client=client).save_records(
            BookList(upload_date=UPLOADED_AT, books=[_book()])
        )
