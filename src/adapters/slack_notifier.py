"""Slack incoming-webhook notification adapter."""

from __future__ import annotations

import asyncio
import http.client
import json
import urllib.error
import urllib.request

from core.errors import NotificationError


class SlackWebhookNotifier:
    """Notifier adapter that posts plain mrkdwn messages to a Slack webhook."""

    def __init__(self, webhook_url: str, timeout: float = 10) -> None:
        self._webhook_url = webhook_url
        self._timeout = timeout

    def _post_blocking(self, message: str) -> None:
        data = json.dumps({"text": message}).encode("utf-8")
        request = urllib.request.Request(self._webhook_url, data=data, method="POST")
        request.add_header("Content-Type", "application/json")
        # Single attempt; the caller decides what a failed delivery means.
        try:
            with urllib.request.urlopen(request, timeout=self._timeout):
                pass
        except urllib.error.HTTPError as e:
            body = e.read().decode("utf-8", errors="replace")
            raise NotificationError(f"Slack webhook error {e.code}: {body}") from e
        except (urllib.error.URLError, http.client.HTTPException, OSError) as e:
            raise NotificationError(f"Slack webhook request failed: {e}") from e

    async def post(self, message: str) -> None:
        """Send one message to the webhook."""

        await asyncio.to_thread(self._post_blocking, message)
