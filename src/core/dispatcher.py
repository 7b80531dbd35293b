"""Notification fan-out to every registered subscriber.

Each address gets its own send attempt bounded by a timeout. Attempts run
concurrently and the dispatcher always waits for all of them, so a failing or
hung address never hides the outcome of the others.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List

from core.config import DispatchConfig
from core.messages import render_event
from core.models import DeliveryOutcome, DispatchReport, ReminderEvent
from core.ports import NotifierPort, SubscriberRegistryPort

LOGGER = logging.getLogger(__name__)


class NotificationDispatcher:
    """Renders reminder events and delivers them to all subscribers."""

    def __init__(
        self,
        registry: SubscriberRegistryPort,
        notifier: NotifierPort,
        config: DispatchConfig,
    ) -> None:
        self._registry = registry
        self._notifier = notifier
        self._config = config

    async def dispatch(self, event: ReminderEvent) -> DispatchReport:
        """Send the rendered notice for one event to every subscriber."""

        label = f"{event.kind.value} notice for tenant {event.tenant.tenant_id} ({event.tenant.name})"
        return await self.broadcast(render_event(event), label=label)

    async def broadcast(self, text: str, label: str = "broadcast") -> DispatchReport:
        """Deliver ``text`` to the current registry snapshot and collect outcomes."""

        # Snapshot is taken per call; registrations that land mid-run may miss it.
        addresses = self._registry.list_all()
        if not addresses:
            LOGGER.info("No subscribers registered, %s not delivered", label)
            return DispatchReport(label=label)

        semaphore = asyncio.Semaphore(self._config.max_parallel_deliveries)

        async def _bounded(address: str) -> DeliveryOutcome:
            async with semaphore:
                return await self._deliver(address, text)

        outcomes: List[DeliveryOutcome] = list(
            await asyncio.gather(*(_bounded(address) for address in addresses))
        )
        report = DispatchReport(label=label, outcomes=outcomes)
        LOGGER.info(
            "Dispatched %s: delivered=%s failed=%s",
            label,
            report.succeeded,
            report.failed,
        )
        return report

    async def _deliver(self, address: str, text: str) -> DeliveryOutcome:
        timeout = self._config.delivery_timeout_seconds
        try:
            await asyncio.wait_for(self._notifier.send(address, text), timeout=timeout)
        except asyncio.TimeoutError:
            detail = f"timed out after {timeout:g}s"
            LOGGER.warning("Delivery to %s failed: %s", address, detail)
            return DeliveryOutcome(address=address, success=False, detail=detail)
        except Exception as exc:
            detail = str(exc) or exc.__class__.__name__
            LOGGER.warning("Delivery to %s failed: %s", address, detail)
            return DeliveryOutcome(address=address, success=False, detail=detail)
        return DeliveryOutcome(address=address, success=True)
