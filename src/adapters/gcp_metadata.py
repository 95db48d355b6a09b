"""GCP metadata server lookup for the project id."""

from __future__ import annotations

import logging
import os
import urllib.error
import urllib.request
from typing import Optional

LOGGER = logging.getLogger(__name__)

PROJECT_ID_URL = "http://metadata.google.internal/computeMetadata/v1/project/project-id"


def fetch_project_id(timeout: float = 2) -> Optional[str]:
    """Ask the metadata server for the project id; None when not on GCP."""

    request = urllib.request.Request(PROJECT_ID_URL, method="GET")
    request.add_header("Metadata-Flavor", "Google")
    try:
        with urllib.request.urlopen(request, timeout=timeout) as response:
            project_id = response.read().decode("utf-8").strip()
    except (urllib.error.URLError, OSError) as exc:
        LOGGER.info("Cannot get project id from metadata server: %s", exc)
        return None
    return project_id or None


def get_project_id() -> str:
    """Return the project id from the metadata server, else GCP_PROJECT_ID."""

    return fetch_project_id() or os.getenv("GCP_PROJECT_ID", "")
