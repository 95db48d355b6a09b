"""Static configuration for shinkan.

User-editable settings (feed, file locations, notifications, recorder,
archive, logging) live in a single JSON file for quick edits without touching
Python. Secrets and GCP identifiers come from the environment (or a .env file).
"""

import json
import os

from dotenv import load_dotenv

from core.errors import ConfigParseError, ConfigReadError

load_dotenv()

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

CONFIG_PATH = os.getenv("SHINKAN_CONFIG", os.path.join(PROJECT_ROOT, "config.json"))


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    try:
        with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
            config = json.load(handle)
    except OSError as exc:
        raise ConfigReadError(f"Config file not readable: {CONFIG_PATH}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigParseError(f"Config file is not valid JSON: {CONFIG_PATH}: {exc}") from exc
    if not isinstance(config, dict):
        raise ConfigParseError(f"Config file must hold a JSON object: {CONFIG_PATH}")
    return config


def _project_path(path: str) -> str:
    if os.path.isabs(path):
        return path
    return os.path.join(PROJECT_ROOT, path)


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# New-releases RSS feed.
FEED_URL = _CONFIG.get("feed", {}).get("url", "")

# C-code lookup tables and notification rules are separate files so they can
# be shared or versioned independently of deployment settings.
CODE_TABLE_PATH = _project_path(_CONFIG.get("code_table_path", "ccode.json"))
FILTER_PATH = _project_path(_CONFIG.get("filter_path", "filter.json"))

# Notification method switches adapters without changing core logic.
# - "slack": SLACK_WEBHOOK_URL incoming webhook
# - "telegram_bot": BOT_API token + notifications.bot_chat_id
_notifications = _CONFIG.get("notifications", {})
NOTIFICATION_METHOD = _notifications.get("notification_method", "slack")
BOT_CHAT_ID = _notifications.get("bot_chat_id")
SLACK_WEBHOOK_URL = os.getenv("SLACK_WEBHOOK_URL", "")
BOT_API = os.getenv("BOT_API", "")

# Recorder backend used for cross-run deduplication and persistence.
# - "bigquery": GCP_BIGQUERY_DATASET / GCP_BIGQUERY_TABLE (project from metadata or GCP_PROJECT_ID)
# - "sqlite": recorder.sqlite_path
# - "off": no dedup, nothing persisted
_recorder = _CONFIG.get("recorder", {})
RECORDER_BACKEND = _recorder.get("backend", "bigquery")
SQLITE_PATH = _project_path(_recorder.get("sqlite_path", "shinkan.db"))
BIGQUERY_DATASET = os.getenv("GCP_BIGQUERY_DATASET", _recorder.get("dataset", ""))
BIGQUERY_TABLE = os.getenv("GCP_BIGQUERY_TABLE", _recorder.get("table", ""))

# Raw feed archive in Cloud Storage.
_archive = _CONFIG.get("archive", {})
ARCHIVE_ENABLED = bool(_archive.get("enabled", True))
ARCHIVE_PREFIX = _archive.get("prefix", "")
GCS_BUCKET_NAME = os.getenv("GCS_BUCKET_NAME", _archive.get("bucket", ""))

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
