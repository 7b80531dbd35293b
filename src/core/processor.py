"""Core reminder pass.

This module is integration-agnostic. It only relies on ports for storage and
notifications, enabling other frontends or adapters without changes here.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import List

from core.date_matcher import match_tenants
from core.dispatcher import NotificationDispatcher
from core.models import DispatchReport, RunSummary
from core.ports import TenantStorePort

LOGGER = logging.getLogger(__name__)


class ReminderProcessor:
    """Reads tenants, classifies due dates, and dispatches lead notices."""

    def __init__(self, tenants: TenantStorePort, dispatcher: NotificationDispatcher) -> None:
        self._tenants = tenants
        self._dispatcher = dispatcher

    async def run(self, today: date) -> RunSummary:
        """Run one full pass for ``today``."""

        LOGGER.info("Checking payment dates for %s", today.isoformat())

        # Full re-read on every pass; nothing is cached between days.
        snapshot = self._tenants.list_tenants()
        for error in snapshot.errors:
            LOGGER.warning(
                "Skipping tenant %s: cannot read %r (%s)",
                error.tenant_id,
                error.raw_value,
                error.detail,
            )

        events = match_tenants(today, snapshot.tenants)
        reports: List[DispatchReport] = []
        for event in events:
            try:
                reports.append(await self._dispatcher.dispatch(event))
            except Exception:
                LOGGER.exception(
                    "Dispatch failed for tenant %s (%s)",
                    event.tenant.tenant_id,
                    event.kind.value,
                )

        summary = RunSummary(
            day=today,
            tenants_checked=len(snapshot.tenants),
            read_errors=list(snapshot.errors),
            events=events,
            reports=reports,
        )
        LOGGER.info(
            "Reminder pass for %s complete: tenants=%s, read_errors=%s, notices=%s, delivered=%s, failed=%s",
            today.isoformat(),
            summary.tenants_checked,
            len(summary.read_errors),
            len(summary.events),
            summary.delivered,
            summary.failed,
        )
        return summary
