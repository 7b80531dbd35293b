"""Telegram Bot API notification adapter.

Uses the Bot API for delivery so reminders can be routed to every chat that
started the bot.
"""

from __future__ import annotations

import asyncio
import json
import urllib.error
import urllib.request


class TelegramBotNotifier:
    """Notifier adapter that sends messages via the Telegram Bot API."""

    def __init__(self, bot_token: str, request_timeout: float = 10) -> None:
        self._bot_token = bot_token
        self._request_timeout = request_timeout

    def _endpoint(self) -> str:
        # The Bot API endpoint is deterministic and derived from the token.
        return f"https://api.telegram.org/bot{self._bot_token}/sendMessage"

    def _post(self, payload: dict) -> None:
        data = json.dumps(payload).encode("utf-8")
        request = urllib.request.Request(self._endpoint(), data=data, method="POST")
        request.add_header("Content-Type", "application/json")
        try:
            with urllib.request.urlopen(request, timeout=self._request_timeout):
                pass
        except urllib.error.HTTPError as e:
            body = e.read().decode("utf-8", errors="replace")
            raise RuntimeError(f"Bot API error {e.code}: {body}") from e

    async def send(self, address: str, text: str) -> None:
        """Send plain text to one chat via the Bot API."""

        payload = {
            "chat_id": address,
            "text": text,
            "disable_web_page_preview": True,
        }
        # The HTTP call blocks, so it runs in a worker thread to let the
        # dispatcher fan out across addresses.
        await asyncio.to_thread(self._post, payload)
