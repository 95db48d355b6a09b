"""Google Cloud Storage adapter for archiving raw feed snapshots."""

from __future__ import annotations

import logging
import posixpath
from typing import Optional

from google.api_core import exceptions
from google.cloud import storage

from core.config import ArchiveSettings
from core.errors import UploadError
from core.models import UploadObject

LOGGER = logging.getLogger(__name__)


class GCSUploader:
    """Upload archive objects to ``gs://<bucket>/<prefix>/<object_name>``."""

    def __init__(self, settings: ArchiveSettings, client: Optional[storage.Client] = None) -> None:
        self._settings = settings
        self._client = client
        self._bucket = None

    @property
    def client(self) -> storage.Client:
        """Lazy-load GCS client"""
        if self._client is None:
            self._client = storage.Client()
        return self._client

    @property
    def bucket(self) -> storage.Bucket:
        """Lazy-load GCS bucket"""
        if self._bucket is None:
            self._bucket = self.client.bucket(self._settings.bucket_name)
        return self._bucket

    def object_path(self, object_name: str) -> str:
        if not self._settings.prefix:
            return object_name
        return posixpath.join(self._settings.prefix, object_name)

    def upload(self, upload_object: UploadObject) -> None:
        blob_name = self.object_path(upload_object.object_name)
        LOGGER.info("Uploading feed archive to gs://%s/%s", self._settings.bucket_name, blob_name)
        try:
            blob = self.bucket.blob(blob_name)
            blob.upload_from_string(upload_object.data, content_type=upload_object.content_type)
        except exceptions.GoogleAPIError as exc:
            raise UploadError(f"Cannot upload {upload_object.object_name}: {exc}") from exc
