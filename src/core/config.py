"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely. The
builders validate eagerly so a bad schedule fails at startup instead of
silently never firing.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import tzinfo
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from tzlocal import get_localzone

from core.errors import ScheduleConfigError

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


@dataclass(frozen=True)
class ScheduleConfig:
    """Daily trigger settings for the reminder scheduler."""

    hour: int
    minute: int
    timezone: tzinfo
    misfire_grace_seconds: int


@dataclass(frozen=True)
class DispatchConfig:
    """Fan-out settings for the notification dispatcher."""

    delivery_timeout_seconds: float
    max_parallel_deliveries: int


def parse_trigger_time(value: str) -> tuple[int, int]:
    """Parse ``HH:MM`` into (hour, minute)."""

    match = _TIME_RE.match(str(value).strip())
    if not match:
        raise ScheduleConfigError(f"Invalid schedule time {value!r}, expected HH:MM")
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise ScheduleConfigError(f"Schedule time out of range: {value!r}")
    return hour, minute


def resolve_timezone(name: Optional[str]) -> tzinfo:
    """Return the named zone, or the system local zone when unset."""

    if not name:
        return get_localzone()
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ScheduleConfigError(f"Unknown timezone: {name!r}") from exc


def build_schedule_config(
    time_of_day: str,
    timezone_name: Optional[str],
    misfire_grace_seconds: int,
) -> ScheduleConfig:
    hour, minute = parse_trigger_time(time_of_day)
    if int(misfire_grace_seconds) <= 0:
        raise ScheduleConfigError("misfire_grace_seconds must be positive")
    return ScheduleConfig(
        hour=hour,
        minute=minute,
        timezone=resolve_timezone(timezone_name),
        misfire_grace_seconds=int(misfire_grace_seconds),
    )


def build_dispatch_config(delivery_timeout_seconds: float, max_parallel_deliveries: int) -> DispatchConfig:
    if float(delivery_timeout_seconds) <= 0:
        raise ValueError("delivery_timeout_seconds must be positive")
    if int(max_parallel_deliveries) < 1:
        raise ValueError("max_parallel_deliveries must be at least 1")
    return DispatchConfig(
        delivery_timeout_seconds=float(delivery_timeout_seconds),
        max_parallel_deliveries=int(max_parallel_deliveries),
    )
