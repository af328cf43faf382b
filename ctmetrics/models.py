"""
Domain models for commercetools metric runs.

Provides the report-mode enum and the half-open time window every
query is scoped to.
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import List

from ctmetrics.exceptions import UnsupportedModeError, ValidationError


# ═══════════════════════════════════════════════════════════════════════════════
# ENUMS
# ═══════════════════════════════════════════════════════════════════════════════

class MetricMode(str, Enum):
    """Report types the job can compute."""
    # Interval-splittable
    CART_TOTAL = "CART_TOTAL"
    ANONYMOUS_CART = "ANONYMOUS_CART"
    LOGGED_IN_CART = "LOGGED_IN_CART"
    FIRST_TIME_BUYERS = "FIRST_TIME_BUYERS"
    # Full-range-only
    LOGGED_IN_ORDERS = "LOGGED_IN_ORDERS"
    ANONYMOUS_ORDERS = "ANONYMOUS_ORDERS"
    REPEATED_ORDERS = "REPEATED_ORDERS"
    TOTAL_ORDERS = "TOTAL_ORDERS"
    TOTAL_CUSTOMERS = "TOTAL_CUSTOMERS"

    @classmethod
    def interval_modes(cls) -> List["MetricMode"]:
        """Modes evaluated per sub-interval with adaptive splitting."""
        return [cls.CART_TOTAL, cls.ANONYMOUS_CART, cls.LOGGED_IN_CART, cls.FIRST_TIME_BUYERS]

    @classmethod
    def parse(cls, value) -> "MetricMode":
        """Resolve a mode from its name, case-insensitively."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().upper())
            except ValueError:
                pass
        raise UnsupportedModeError(value)

    @property
    def is_interval_splittable(self) -> bool:
        return self in self.interval_modes()

    @property
    def interval_hours(self) -> int:
        """Step size for the interval generator."""
        return 4 if self is MetricMode.FIRST_TIME_BUYERS else 1


# ═══════════════════════════════════════════════════════════════════════════════
# TIMESTAMPS
# ═══════════════════════════════════════════════════════════════════════════════

def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes, convert aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Render as YYYY-MM-DDTHH:MM:SS.mmmZ, the format query predicates use."""
    value = as_utc(value)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


@dataclass(frozen=True)
class TimeRange:
    """Half-open window [start, end) in UTC."""
    start: datetime
    end: datetime
    # False only for the upper split half, which may be empty or inverted
    checked: bool = field(default=True, compare=False, repr=False)

    def __post_init__(self):
        object.__setattr__(self, "start", as_utc(self.start))
        object.__setattr__(self, "end", as_utc(self.end))
        if self.checked and self.is_empty:
            raise ValidationError(
                "time_range",
                "start must be before end",
                f"{format_timestamp(self.start)} -> {format_timestamp(self.end)}",
            )

    @property
    def is_empty(self) -> bool:
        return self.start >= self.end

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def from_iso(self) -> str:
        return format_timestamp(self.start)

    @property
    def to_iso(self) -> str:
        return format_timestamp(self.end)

    def __str__(self) -> str:
        return f"[{self.from_iso} → {self.to_iso}]"
