from __future__ import annotations

from datetime import datetime

from core.dedup import extract_isbn, filter_out
from core.models import JST, Book, BookList

PUB_DATE = datetime(2024, 9, 1, 22, 42, tzinfo=JST)


def _book(isbn: str, title: str) -> Book:
    return Book(isbn=isbn, title=title, url=f"http://example.com/bd/isbn/{isbn}", pub_date=PUB_DATE)


def test_filter_out_book_list_by_isbn() -> None:
    upload_date = datetime(2024, 8, 1, 22, 42, tzinfo=JST)
    book_list = BookList(
        upload_date=upload_date,
        books=[
            _book("1111111111111", "Book1"),
            _book("2222222222222", "Book2"),
            _book("3333333333333", "Book3"),
        ],
    )

    filtered = filter_out(book_list, ["1111111111111", "3333333333333", "4444444444444"])

    assert filtered == BookList(upload_date=upload_date, books=[_book("2222222222222", "Book2")])
    # The input is left untouched.
    assert len(book_list.books) == 3


def test_filter_out_nothing_recorded() -> None:
    book_list = BookList(upload_date=PUB_DATE, books=[_book("1111111111111", "Book1")])

    assert filter_out(book_list, []) == book_list


def test_extract_isbn() -> None:
    assert extract_isbn("http://example.com/bd/isbn/9999999999999") == "9999999999999"
    assert extract_isbn("https://example.com/bd/isbn/9784000000000?ref=9780000000001") == "9784000000000"
    assert extract_isbn("http://example.com/bd/isbn/") == ""
    assert extract_isbn("") == ""
