"""
Input validation functions for job parameters.

All validators raise ValidationError on invalid input.
"""

from datetime import datetime, timezone
from typing import Tuple, Union

from ctmetrics.exceptions import ValidationError
from ctmetrics.models import as_utc


def validate_timestamp(value: Union[str, datetime], field: str = "timestamp") -> datetime:
    """
    Validate and parse a timestamp.

    Accepts ISO-8601 strings with a 'Z' or numeric offset, bare YYYY-MM-DD
    dates (midnight UTC), and datetime objects. Naive values are UTC.

    Args:
        value: Timestamp string or datetime
        field: Field name for error messages

    Returns:
        Timezone-aware UTC datetime

    Raises:
        ValidationError: If the timestamp is missing or unparseable
    """
    if isinstance(value, datetime):
        return as_utc(value)

    if not value:
        raise ValidationError(field, "Timestamp is required", value)

    if not isinstance(value, str):
        raise ValidationError(field, "Must be a string or datetime", value)

    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise ValidationError(
            field,
            "Invalid timestamp. Expected ISO-8601 (e.g. 2026-02-02T00:00:00.000Z)",
            value
        )

    return as_utc(parsed)


def validate_time_range(
    start: Union[str, datetime],
    end: Union[str, datetime],
) -> Tuple[datetime, datetime]:
    """
    Validate an overall report range.

    Returns:
        Tuple of (start, end) as UTC datetimes

    Raises:
        ValidationError: If either bound is invalid or start is not before end
    """
    start_dt = validate_timestamp(start, "start")
    end_dt = validate_timestamp(end, "end")

    if start_dt >= end_dt:
        raise ValidationError(
            "time_range",
            "Start must be before end",
            f"{start} to {end}"
        )

    return start_dt, end_dt


def validate_step_hours(value: Union[int, float], field: str = "step_hours") -> float:
    """
    Validate an interval step size.

    Raises:
        ValidationError: If the step is not a positive number
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(field, "Must be a number", value)

    if value <= 0:
        raise ValidationError(field, "Must be positive", value)

    return value


def utc_midnight(value: datetime) -> datetime:
    """Truncate to 00:00 UTC of the same day."""
    value = as_utc(value)
    return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
