"""Domain exceptions raised by the core."""

from __future__ import annotations


class ScheduleConfigError(ValueError):
    """Raised when the daily trigger cannot be built from configuration."""


class RegistryWriteError(RuntimeError):
    """Raised when a subscriber registration could not be persisted."""
