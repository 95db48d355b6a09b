"""Application entry point for the shinkan new-releases notifier."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

from art import tprint

from adapters.feed_mapper import build_book_list, build_upload_object, parse_feed
from adapters.notification_formatting import format_notification
from adapters.openbd import OpenBDClient, OpenBDDetailsFetcher
from core.config import ArchiveSettings, BigQuerySettings
from core.errors import ShinkanError, UploadError
from core.ports import NotifierPort, RecorderPort
from core.processor import BookProcessor
from core.rules_engine import describe_filter, load_filter
from core.subject import load_subject_decoder

# settings loads config.json on import; it is imported inside the functions
# below so that main() can report a broken config file like any other error.

NAME = "SHINKAN"
FONT = "tarty-1"

DEFAULT_REDACT_PATTERNS = ["SLACK_WEBHOOK_URL", "BOT_API"]


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values(config: dict) -> list[str]:
    redact_cfg = config.get("redact", {}) if config else {}
    if not redact_cfg.get("enabled", True):
        return []
    values = []
    for name in redact_cfg.get("patterns", DEFAULT_REDACT_PATTERNS):
        value = os.getenv(name)
        if value:
            values.append(value)
    return sorted(set(values), key=len, reverse=True)


def _configure_logging() -> None:
    import settings

    config = settings.LOGGING or {}
    if not config.get("enabled", True):
        return

    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    secrets = _collect_redaction_values(config)
    formatter = _RedactingFormatter(secrets, fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    if config.get("console", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/shinkan.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        max_bytes = int(file_cfg.get("max_bytes", 5 * 1024 * 1024))
        backup_count = int(file_cfg.get("backup_count", 5))
        file_handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers)


def _build_notifier() -> tuple[NotifierPort, str]:
    """Return the configured notifier and the message format it expects."""

    import settings

    if settings.NOTIFICATION_METHOD == "slack":
        from adapters.slack_notifier import SlackWebhookNotifier

        if not settings.SLACK_WEBHOOK_URL:
            raise RuntimeError("SLACK_WEBHOOK_URL is required when notification_method=slack")
        return SlackWebhookNotifier(settings.SLACK_WEBHOOK_URL), "slack"

    if settings.NOTIFICATION_METHOD == "telegram_bot":
        from adapters.telegram_bot_notifier import TelegramBotNotifier

        if not settings.BOT_API:
            raise RuntimeError("BOT_API is required when notification_method=telegram_bot")
        if not settings.BOT_CHAT_ID:
            raise RuntimeError("notifications.bot_chat_id is required for bot notifications")
        return TelegramBotNotifier(bot_token=settings.BOT_API, chat_id=str(settings.BOT_CHAT_ID)), "html"

    raise RuntimeError("notification_method must be 'slack' or 'telegram_bot'")


def _build_recorder() -> Optional[RecorderPort]:
    import settings

    if settings.RECORDER_BACKEND == "off":
        return None

    if settings.RECORDER_BACKEND == "sqlite":
        from adapters.sqlite_recorder import SQLiteRecorder

        recorder = SQLiteRecorder(settings.SQLITE_PATH)
        recorder.init_db()
        return recorder

    if settings.RECORDER_BACKEND == "bigquery":
        from adapters.bigquery_recorder import BigQueryRecorder
        from adapters.gcp_metadata import get_project_id

        project_id = get_project_id()
        if not project_id or not settings.BIGQUERY_DATASET or not settings.BIGQUERY_TABLE:
            raise RuntimeError(
                "GCP project, GCP_BIGQUERY_DATASET and GCP_BIGQUERY_TABLE are required for recorder=bigquery"
            )
        recorder = BigQueryRecorder(
            BigQuerySettings(
                project_id=project_id,
                dataset_name=settings.BIGQUERY_DATASET,
                table_name=settings.BIGQUERY_TABLE,
            )
        )
        recorder.ensure_table()
        return recorder

    raise RuntimeError("recorder.backend must be 'bigquery', 'sqlite' or 'off'")


def _archive_feed(parsed) -> None:
    import settings

    logger = logging.getLogger(__name__)
    if not settings.ARCHIVE_ENABLED:
        return
    if not settings.GCS_BUCKET_NAME:
        logger.warning("Feed archive skipped: GCS_BUCKET_NAME is not set")
        return

    from adapters.gcs_uploader import GCSUploader

    uploader = GCSUploader(ArchiveSettings(bucket_name=settings.GCS_BUCKET_NAME, prefix=settings.ARCHIVE_PREFIX))
    try:
        uploader.upload(build_upload_object(parsed))
    except UploadError:
        logger.exception("Feed upload failed")


def _run() -> None:
    import settings

    _print_banner()
    _configure_logging()
    logger = logging.getLogger(__name__)

    logger.info("Starting shinkan")

    # Rules and code tables are loaded before any I/O so a broken config
    # aborts the run instead of silently notifying nothing.
    decoder = load_subject_decoder(settings.CODE_TABLE_PATH)
    notification_filter = load_filter(settings.FILTER_PATH)
    logger.info(
        "%s filter blocks (%s conditions) are loaded",
        len(notification_filter.blocks),
        notification_filter.condition_count,
    )

    notifier, message_format = _build_notifier()
    logger.info("Selected notification method - %s", settings.NOTIFICATION_METHOD)
    recorder = _build_recorder()
    logger.info("Selected recorder backend - %s", settings.RECORDER_BACKEND)

    parsed = parse_feed(settings.FEED_URL)
    book_list = build_book_list(parsed)
    logger.info("Feed uploaded at %s with %s books", book_list.upload_date.isoformat(), len(book_list.books))

    processor = BookProcessor(
        fetcher=OpenBDDetailsFetcher(OpenBDClient(), decoder),
        recorder=recorder,
        notification_filter=notification_filter,
        notifier=notifier,
        format_message=lambda book: format_notification(book, mode=message_format),
    )
    num_new = asyncio.run(processor.run(book_list))
    logger.info("Reported %s new book(s)", num_new)

    _archive_feed(parsed)


def _check() -> None:
    import settings

    _configure_logging()
    logger = logging.getLogger(__name__)

    decoder = load_subject_decoder(settings.CODE_TABLE_PATH)
    logger.info(
        "Code table loaded: %s targets, %s formats, %s contents",
        len(decoder.taishou),
        len(decoder.keitai),
        len(decoder.naiyou),
    )
    notification_filter = load_filter(settings.FILTER_PATH)
    logger.info(
        "%s filter blocks (%s conditions) are loaded",
        len(notification_filter.blocks),
        notification_filter.condition_count,
    )
    for line in describe_filter(notification_filter):
        print(line)
    if not notification_filter.blocks:
        logger.warning("The filter has no usable blocks; no book will be notified")


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="shinkan")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Fetch the feed, notify matching books and record them")
    subparsers.add_parser("check", help="Validate the code table and notification rules")

    args = parser.parse_args(argv)
    try:
        if args.command == "check":
            _check()
            return
        _run()
    except ShinkanError as exc:
        logging.getLogger(__name__).critical("Aborting: %s", exc)
        sys.exit(1)


if __name__ == "__main__":
    main()
