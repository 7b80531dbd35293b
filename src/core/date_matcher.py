"""Due date classification (core domain)."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Union

from core.models import NoticeKind, ReminderEvent, Tenant

THREE_DAY_LEAD = timedelta(days=3)
ONE_DAY_LEAD = timedelta(days=1)


def as_calendar_day(value: Union[date, datetime]) -> date:
    """Drop any time-of-day component so subtraction is day-exact."""

    if isinstance(value, datetime):
        return value.date()
    return value


def classify(today: Union[date, datetime], due_date: Union[date, datetime]) -> Optional[NoticeKind]:
    """Return the lead notice due for ``due_date`` on ``today``, if any.

    Only exact matches count: a due date two days out gets nothing, so each
    tenant receives at most one 3-day and one 1-day notice per cycle.
    """

    today = as_calendar_day(today)
    due_date = as_calendar_day(due_date)

    if due_date == today + THREE_DAY_LEAD:
        return NoticeKind.THREE_DAY
    if due_date == today + ONE_DAY_LEAD:
        return NoticeKind.ONE_DAY
    return None


def match_tenants(today: Union[date, datetime], tenants: Iterable[Tenant]) -> List[ReminderEvent]:
    """Return one event per tenant flagged for a notice, in input order."""

    events: List[ReminderEvent] = []
    for tenant in tenants:
        kind = classify(today, tenant.due_date)
        if kind is not None:
            events.append(ReminderEvent(tenant=tenant, kind=kind))
    return events
