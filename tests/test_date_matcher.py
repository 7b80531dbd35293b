from __future__ import annotations

from datetime import date, datetime, timedelta

from core.date_matcher import classify, match_tenants
from core.models import NoticeKind, Tenant


def _tenant(tenant_id: int, due: date) -> Tenant:
    return Tenant(tenant_id=tenant_id, name=f"Tenant {tenant_id}", unit=f"{tenant_id}A", due_date=due)


def test_exact_three_and_one_day_leads() -> None:
    today = date(2024, 3, 7)
    assert classify(today, date(2024, 3, 10)) is NoticeKind.THREE_DAY
    assert classify(today, date(2024, 3, 8)) is NoticeKind.ONE_DAY


def test_outcomes_partition_all_offsets() -> None:
    for today in (date(2024, 2, 27), date(2024, 12, 30), date(2023, 2, 26)):
        for offset in range(-10, 11):
            kind = classify(today, today + timedelta(days=offset))
            if offset == 3:
                assert kind is NoticeKind.THREE_DAY
            elif offset == 1:
                assert kind is NoticeKind.ONE_DAY
            else:
                assert kind is None


def test_leads_cross_month_and_leap_day() -> None:
    assert classify(date(2024, 2, 27), date(2024, 3, 1)) is NoticeKind.THREE_DAY
    assert classify(date(2024, 2, 28), date(2024, 2, 29)) is NoticeKind.ONE_DAY
    assert classify(date(2024, 12, 31), date(2025, 1, 1)) is NoticeKind.ONE_DAY


def test_time_of_day_is_ignored() -> None:
    # A run delayed to late evening still compares calendar days.
    late_run = datetime(2024, 3, 7, 23, 59, 59)
    assert classify(late_run, date(2024, 3, 10)) is NoticeKind.THREE_DAY
    assert classify(date(2024, 3, 7), datetime(2024, 3, 8, 0, 0, 1)) is NoticeKind.ONE_DAY


def test_match_tenants_scenario() -> None:
    tenant = _tenant(1, date(2024, 3, 10))

    events = match_tenants(date(2024, 3, 7), [tenant])
    assert len(events) == 1
    assert events[0].kind is NoticeKind.THREE_DAY
    assert events[0].due_date == date(2024, 3, 10)

    events = match_tenants(date(2024, 3, 9), [tenant])
    assert [event.kind for event in events] == [NoticeKind.ONE_DAY]

    assert match_tenants(date(2024, 3, 8), [tenant]) == []
    assert match_tenants(date(2024, 3, 10), [tenant]) == []


def test_match_tenants_keeps_input_order() -> None:
    today = date(2024, 3, 7)
    tenants = [
        _tenant(1, date(2024, 3, 8)),
        _tenant(2, date(2024, 3, 9)),
        _tenant(3, date(2024, 3, 10)),
    ]
    events = match_tenants(today, tenants)
    assert [(event.tenant.tenant_id, event.kind) for event in events] == [
        (1, NoticeKind.ONE_DAY),
        (3, NoticeKind.THREE_DAY),
    ]
