"""Shared notification formatting helpers.

Keeping formatting here prevents drift between adapters and keeps messages
consistent regardless of delivery channel.
"""

from __future__ import annotations

import html

from core.models import Book

PUB_DATE_FORMAT = "%Y/%m/%d"


def _format_slack(book: Book) -> str:
    """Create the Slack mrkdwn body used by the webhook adapter."""

    # Slack link syntax breaks on these characters, so escape them in the label.
    title = book.title.strip().replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")
    lines = [
        f"<{book.url}|{title}>",
        f"発売日: {book.pub_date.strftime(PUB_DATE_FORMAT)}",
        f"カテゴリー: {book.categories}",
        f"内容: {book.content}",
    ]
    return "\n".join(lines)


def _format_html(book: Book) -> str:
    """Create the HTML notification body used by the Bot API adapter."""

    safe_link = html.escape(book.url)
    parts = [
        f"<a href=\"{safe_link}\">{html.escape(book.title.strip())}</a>",
        f"発売日: {html.escape(book.pub_date.strftime(PUB_DATE_FORMAT))}",
        f"カテゴリー: {html.escape(book.categories)}",
        f"内容: {html.escape(book.content)}",
    ]
    return "\n".join(parts)


def format_notification(book: Book, mode: str) -> str:
    """Return the notification formatted for the requested mode."""

    if mode == "slack":
        return _format_slack(book)
    if mode == "html":
        return _format_html(book)
    raise ValueError(f"Unsupported notification format: {mode}")
