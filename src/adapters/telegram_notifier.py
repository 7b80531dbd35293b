"""Telegram client notification adapter.

Sends reminders through the same Telethon session that listens for /start,
so no second connection to Telegram is needed.
"""

from __future__ import annotations

from typing import Union


def resolve_peer(address: str) -> Union[int, str]:
    """Numeric chat ids become ints; usernames are passed through."""

    text = str(address).strip()
    if text.lstrip("-").isdigit():
        return int(text)
    return text


class TelegramClientNotifier:
    """Notifier adapter that sends messages with a connected Telethon client."""

    def __init__(self, client) -> None:
        self._client = client

    async def send(self, address: str, text: str) -> None:
        """Send plain text to one chat."""

        await self._client.send_message(resolve_peer(address), text, link_preview=False)
