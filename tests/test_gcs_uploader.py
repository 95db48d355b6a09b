from __future__ import annotations

from typing import Any, List

import pytest
from google.api_core import exceptions

from adapters.gcs_uploader import GCSUploader
from core.config import ArchiveSettings
from core.errors import UploadError
from core.models import UploadObject


class FakeBlob:
    def __init__(self, name: str, uploads: List[tuple], fail: bool) -> None:
        self.name = name
        self._uploads = uploads
        self._fail = fail

    def upload_from_string(self, data: Any, content_type: str) -> None:
        if self._fail:
            raise exceptions.Forbidden("no access")
        self._uploads.append((self.name, data, content_type))


class FakeBucket:
    def __init__(self, fail: bool = False) -> None:
        self.uploads: List[tuple] = []
        self._fail = fail

    def blob(self, name: str) -> FakeBlob:
        return FakeBlob(name, self.uploads, self._fail)


class FakeStorageClient:
    def __init__(self, bucket: FakeBucket) -> None:
        self._bucket = bucket
        self.requested: List[str] = []

    def bucket(self, name: str) -> FakeBucket:
        self.requested.append(name)
        return self._bucket


UPLOAD = UploadObject(object_name="feed20220701.json", content_type="application/json", data=b"{}")


def test_upload_to_prefixed_path() -> None:
    bucket = FakeBucket()
    client = FakeStorageClient(bucket)

    GCSUploader(ArchiveSettings(bucket_name="archive", prefix="feeds"), client=client).upload(UPLOAD)

    assert client.requested == ["archive"]
    assert bucket.uploads == [("feeds/feed20220701.json", b"{}", "application/json")]


def test_upload_without_prefix() -> None:
    bucket = FakeBucket()

    GCSUploader(ArchiveSettings(bucket_name="archive"), client=FakeStorageClient(bucket)).upload(UPLOAD)

    assert bucket.uploads[0][0] == "feed20220701.json"


def test_upload_errors_are_wrapped() -> None:
    uploader = GCSUploader(ArchiveSettings(bucket_name="archive"), client=FakeStorageClient(FakeBucket(fail=True)))

    with pytest.raises(UploadError):
        uploader.upload(UPLOAD)
