"""Telegram Bot API notification adapter.

Uses the Bot API for delivery so notifications can be routed via a bot chat
instead of Slack.
"""

from __future__ import annotations

import asyncio
import http.client
import json
import urllib.error
import urllib.request

from core.errors import NotificationError


class TelegramBotNotifier:
    """Notifier adapter that sends HTML messages via the Telegram Bot API."""

    def __init__(self, bot_token: str, chat_id: str, timeout: float = 10) -> None:
        self._bot_token = bot_token
        self._chat_id = chat_id
        self._timeout = timeout

    def _endpoint(self) -> str:
        # The Bot API endpoint is deterministic and derived from the token.
        return f"https://api.telegram.org/bot{self._bot_token}/sendMessage"

    def _send_blocking(self, message: str) -> None:
        payload = {
            "chat_id": self._chat_id,
            "text": message,
            "parse_mode": "HTML",
            "disable_web_page_preview": True,
        }
        data = json.dumps(payload).encode("utf-8")
        request = urllib.request.Request(self._endpoint(), data=data, method="POST")
        request.add_header("Content-Type", "application/json")
        try:
            with urllib.request.urlopen(request, timeout=self._timeout):
                pass
        except urllib.error.HTTPError as e:
            body = e.read().decode("utf-8", errors="replace")
            raise NotificationError(f"Bot API error {e.code}: {body}") from e
        except (urllib.error.URLError, http.client.HTTPException, OSError) as e:
            raise NotificationError(f"Bot API request failed: {e}") from e

    async def post(self, message: str) -> None:
        """Send the formatted notification via the Bot API."""

        await asyncio.to_thread(self._send_blocking, message)
