"""openBD book-data API adapter.

Fetches bibliographic details for an ISBN and maps them, together with the
decoded C-code, onto the core DetailedInformation model.
"""

from __future__ import annotations

import http.client
import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from datetime import datetime
from typing import Any, Optional, Protocol

from core.errors import DetailFetchError, InvalidCode
from core.models import JST, DetailedInformation
from core.subject import SubjectDecoder

LOGGER = logging.getLogger(__name__)

OPENBD_ENDPOINT = "https://api.openbd.jp/v1/get"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class OpenBDClientProtocol(Protocol):
    def get(self, isbn: str) -> Optional[dict]:
        ...


class OpenBDClient:
    """Blocking openBD client; the processor runs it in a worker thread."""

    def __init__(self, endpoint: str = OPENBD_ENDPOINT, timeout: float = 10) -> None:
        self._endpoint = endpoint
        self._timeout = timeout

    def get(self, isbn: str) -> Optional[dict]:
        """Return the openBD record for ``isbn``, or None if openBD has none."""

        url = f"{self._endpoint}?{urllib.parse.urlencode({'isbn': isbn})}"
        request = urllib.request.Request(url, method="GET")
        request.add_header("Accept", "application/json")
        try:
            with urllib.request.urlopen(request, timeout=self._timeout) as response:
                body = json.load(response)
        except urllib.error.HTTPError as e:
            raise DetailFetchError(f"openBD request failed with {e.code} for {isbn}") from e
        except (urllib.error.URLError, http.client.HTTPException, OSError) as e:
            raise DetailFetchError(f"openBD request failed for {isbn}: {e}") from e
        except ValueError as e:
            raise DetailFetchError(f"Error in decoding openBD JSON response for {isbn}: {e}") from e

        # openBD answers with one element per requested ISBN, null when unknown.
        if not isinstance(body, list) or not body:
            raise DetailFetchError(f"Unexpected openBD response for {isbn}: {body!r}")
        return body[0]


def _parse_timestamp(raw: Any) -> Optional[datetime]:
    if not raw:
        return None
    try:
        return datetime.strptime(str(raw), TIMESTAMP_FORMAT).replace(tzinfo=JST)
    except ValueError:
        LOGGER.warning("Error in parsing timestamp: %s", raw)
        return None


def _first_subject_code(response: dict) -> str:
    descriptive = (response.get("onix") or {}).get("DescriptiveDetail") or {}
    subjects = descriptive.get("Subject") or []
    if not subjects:
        return ""
    return str(subjects[0].get("SubjectCode") or "")


def parse_openbd_response(response: dict, decoder: SubjectDecoder) -> DetailedInformation:
    """Map an openBD record onto DetailedInformation.

    A C-code that cannot be decoded leaves the classification labels empty.
    """

    summary = response.get("summary") or {}
    hanmoto = response.get("hanmoto") or {}
    ccode = _first_subject_code(response)

    target = format_label = content = ""
    try:
        decoded = decoder.decode(ccode)
    except InvalidCode as exc:
        LOGGER.warning("Failed in decoding Ccode for %s: %s", summary.get("isbn", ""), exc)
    else:
        target, format_label, content = decoded.target, decoded.format, decoded.content

    return DetailedInformation(
        author=summary.get("author") or "",
        publisher=summary.get("publisher") or "",
        created_date=_parse_timestamp(hanmoto.get("datecreated")),
        last_updated_date=_parse_timestamp(hanmoto.get("datemodified")),
        ccode=ccode,
        target=target,
        format=format_label,
        content=content,
    )


class OpenBDDetailsFetcher:
    """DetailFetcherPort implementation backed by openBD."""

    def __init__(self, client: OpenBDClientProtocol, decoder: SubjectDecoder) -> None:
        self._client = client
        self._decoder = decoder

    def fetch_detail_info(self, isbn: str) -> Optional[DetailedInformation]:
        response = self._client.get(isbn)
        if response is None:
            return None
        return parse_openbd_response(response, self._decoder)
