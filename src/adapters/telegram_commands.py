"""Telegram command listener.

Turns an incoming /start into a subscriber registration. Telethon specifics
stay here; the registry only ever sees a chat id as text.
"""

from __future__ import annotations

import logging
import re

from telethon import events

from core.errors import RegistryWriteError
from core.messages import ALREADY_SUBSCRIBED_TEXT, SUBSCRIBE_FAILED_TEXT, WELCOME_TEXT
from core.ports import SubscriberRegistryPort

LOGGER = logging.getLogger(__name__)

START_PATTERN = re.compile(r"^/start(?:@\w+)?(?:\s.*)?$")


class SubscribeCommandHandler:
    """Register the sender's chat and build the reply text."""

    def __init__(self, registry: SubscriberRegistryPort) -> None:
        self._registry = registry

    def subscribe(self, chat_id: int) -> str:
        address = str(chat_id)
        try:
            added = self._registry.register(address)
        except RegistryWriteError:
            LOGGER.exception("Failed to register subscriber %s", address)
            return SUBSCRIBE_FAILED_TEXT

        if added:
            LOGGER.info("New subscriber registered: %s", address)
            return WELCOME_TEXT
        LOGGER.info("Subscriber %s sent /start again", address)
        return ALREADY_SUBSCRIBED_TEXT


def register_handlers(client, handler: SubscribeCommandHandler) -> None:
    """Wire the /start command on a Telethon client."""

    @client.on(events.NewMessage(incoming=True, pattern=START_PATTERN))
    async def on_start(event) -> None:
        try:
            reply = handler.subscribe(event.chat_id)
            await event.respond(reply)
        except Exception:
            LOGGER.exception("Error while handling /start")
