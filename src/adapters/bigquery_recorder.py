"""BigQuery recorder adapter.

Implements the core RecorderPort on a day-partitioned BigQuery table so that
reruns on the same day skip books that were already delivered.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import List, Optional

from google.api_core import exceptions
from google.cloud import bigquery

from adapters.record_rows import book_to_row, uploaded_date_of
from core.config import BigQuerySettings
from core.errors import RecorderError
from core.models import BookList

LOGGER = logging.getLogger(__name__)

SCHEMA = [
    bigquery.SchemaField("ISBN", "STRING", mode="REQUIRED"),
    bigquery.SchemaField("PubDate", "DATE", mode="REQUIRED"),
    bigquery.SchemaField("Title", "STRING", mode="REQUIRED"),
    bigquery.SchemaField("Url", "STRING", mode="REQUIRED"),
    bigquery.SchemaField("Authors", "STRING"),
    bigquery.SchemaField("Publisher", "STRING"),
    bigquery.SchemaField("Categories", "STRING"),
    bigquery.SchemaField("Ccode", "STRING"),
    bigquery.SchemaField("Target", "STRING"),
    bigquery.SchemaField("Format", "STRING"),
    bigquery.SchemaField("Content", "STRING"),
    bigquery.SchemaField("CreatedAt", "TIMESTAMP"),
    bigquery.SchemaField("LastUpdatedAt", "TIMESTAMP"),
    bigquery.SchemaField("UploadedAt", "TIMESTAMP", mode="REQUIRED"),
    bigquery.SchemaField("UploadedDate", "DATE", mode="REQUIRED"),
]


class BigQueryRecorder:
    """Thin BigQuery wrapper that satisfies the RecorderPort contract."""

    def __init__(self, settings: BigQuerySettings, client: Optional[bigquery.Client] = None) -> None:
        self._settings = settings
        self._client = client or bigquery.Client(project=settings.project_id)

    @property
    def table_id(self) -> str:
        return self._settings.table_id

    def ensure_table(self) -> None:
        """Create the table, partitioned by UploadedDate, if it is missing."""

        try:
            self._client.get_table(self.table_id)
            return
        except exceptions.NotFound:
            LOGGER.info("Cannot find the table %s, creating it", self.table_id)
        except exceptions.GoogleAPIError as exc:
            raise RecorderError(f"Cannot connect to BigQuery: {exc}") from exc

        table = bigquery.Table(self.table_id, schema=SCHEMA)
        table.time_partitioning = bigquery.TimePartitioning(
            type_=bigquery.TimePartitioningType.DAY,
            field="UploadedDate",
        )
        try:
            self._client.create_table(table)
        except exceptions.GoogleAPIError as exc:
            raise RecorderError(f"Cannot create table {self.table_id}: {exc}") from exc
        LOGGER.info("Successfully created the table %s", self.table_id)

    def get_recorded_isbns(self, upload_date: datetime) -> List[str]:
        """Return the distinct ISBNs recorded for the snapshot date."""

        query = f"SELECT DISTINCT ISBN FROM `{self.table_id}` WHERE UploadedDate = @uploaded_date"
        job_config = bigquery.QueryJobConfig(
            query_parameters=[
                bigquery.ScalarQueryParameter(
                    "uploaded_date", "DATE", date.fromisoformat(uploaded_date_of(upload_date))
                ),
            ]
        )
        try:
            rows = self._client.query(query, job_config=job_config).result()
        except exceptions.GoogleAPIError as exc:
            raise RecorderError(f"Query execution failed: {exc}") from exc
        return [row["ISBN"] for row in rows]

    def save_records(self, book_list: BookList) -> None:
        """Stream one row per book into the table."""

        if not book_list.books:
            return
        rows = [book_to_row(book, book_list.upload_date) for book in book_list.books]
        try:
            errors = self._client.insert_rows_json(self.table_id, rows)
        except exceptions.GoogleAPIError as exc:
            raise RecorderError(f"Upload book records failed: {exc}") from exc
        if errors:
            raise RecorderError(f"Upload book records failed: {errors}")
