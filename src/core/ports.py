"""Ports (interfaces) used by the reminder engine.

Ports define the minimal contracts for storage and notification adapters so
that the core can be reused with different backends.
"""

from __future__ import annotations

from typing import List, Protocol

from core.models import TenantSnapshot


class TenantStorePort(Protocol):
    """Read access to tenants required by the reminder pass."""

    def list_tenants(self) -> TenantSnapshot:
        ...


class SubscriberRegistryPort(Protocol):
    """Subscriber operations required by the dispatcher and the listener."""

    def register(self, address: str) -> bool:
        ...

    def list_all(self) -> List[str]:
        ...


class NotifierPort(Protocol):
    """Deliver one text to one address, raising on failure."""

    async def send(self, address: str, text: str) -> None:
        ...
