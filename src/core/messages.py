"""Notification text rendering.

Keeping the templates here prevents drift between adapters and keeps messages
consistent regardless of delivery channel. Everything is plain text so no
adapter needs a parse mode.
"""

from __future__ import annotations

from datetime import date

from core.models import NoticeKind, ReminderEvent, Tenant

_NOTICE_TEMPLATES = {
    NoticeKind.THREE_DAY: "Hello, {name}! Rent for apartment {unit} is due in 3 days ({due}).",
    NoticeKind.ONE_DAY: "Hello, {name}! Rent for apartment {unit} is due tomorrow ({due}).",
}

WELCOME_TEXT = "Bot activated. You will receive rent payment reminders."
ALREADY_SUBSCRIBED_TEXT = "You are already subscribed to rent payment reminders."
SUBSCRIBE_FAILED_TEXT = "Could not save your subscription, please try /start again later."


def format_due_date(value: date) -> str:
    return value.isoformat()


def render_notice(name: str, unit: str, due_date: date, kind: NoticeKind) -> str:
    """Render the lead notice for one tenant."""

    return _NOTICE_TEMPLATES[kind].format(name=name, unit=unit, due=format_due_date(due_date))


def render_event(event: ReminderEvent) -> str:
    tenant = event.tenant
    return render_notice(tenant.name, tenant.unit, tenant.due_date, event.kind)


def render_new_tenant(tenant: Tenant) -> str:
    """Announcement sent to subscribers when a tenant is added."""

    lines = [
        "New tenant added:",
        f"Name: {tenant.name}",
        f"Apartment: {tenant.unit}",
        f"Payment date: {format_due_date(tenant.due_date)}",
    ]
    return "\n".join(lines)
