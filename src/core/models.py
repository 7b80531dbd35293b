"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any storage or Telegram-specific types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import List, Optional


class NoticeKind(str, Enum):
    """Lead notice categories produced by the date matcher."""

    THREE_DAY = "three_day"
    ONE_DAY = "one_day"


@dataclass(frozen=True)
class Tenant:
    """A tenant record as seen by the reminder engine."""

    tenant_id: int
    name: str
    unit: str
    due_date: date

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("Tenant name must not be empty")
        if not self.unit.strip():
            raise ValueError("Tenant unit must not be empty")


@dataclass(frozen=True)
class TenantReadError:
    """A stored tenant row that could not be turned into a Tenant."""

    tenant_id: Optional[int]
    raw_value: str
    detail: str


@dataclass(frozen=True)
class TenantSnapshot:
    """Full read of the tenant store: valid tenants plus per-row errors."""

    tenants: List[Tenant] = field(default_factory=list)
    errors: List[TenantReadError] = field(default_factory=list)


@dataclass(frozen=True)
class ReminderEvent:
    """One tenant flagged for a lead notice on one run."""

    tenant: Tenant
    kind: NoticeKind

    @property
    def due_date(self) -> date:
        return self.tenant.due_date


@dataclass(frozen=True)
class DeliveryOutcome:
    """Result of a single send attempt to one address."""

    address: str
    success: bool
    detail: Optional[str] = None


@dataclass(frozen=True)
class DispatchReport:
    """All delivery outcomes for one event or broadcast."""

    label: str
    outcomes: List[DeliveryOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.success)

    @property
    def failed(self) -> int:
        return sum(1 for outcome in self.outcomes if not outcome.success)

    @property
    def failures(self) -> List[DeliveryOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.success]


@dataclass(frozen=True)
class RunSummary:
    """Outcome of one reminder pass, surfaced through logs only."""

    day: date
    tenants_checked: int
    read_errors: List[TenantReadError]
    events: List[ReminderEvent]
    reports: List[DispatchReport]

    @property
    def delivered(self) -> int:
        return sum(report.succeeded for report in self.reports)

    @property
    def failed(self) -> int:
        return sum(report.failed for report in self.reports)
