"""
Fixed-step interval generation for per-interval metric runs.
"""
from datetime import datetime, timedelta
from typing import List, Union

from ctmetrics.models import TimeRange
from ctmetrics.validators import validate_step_hours, validate_time_range


def generate_intervals(
    start: Union[str, datetime],
    end: Union[str, datetime],
    step_hours: Union[int, float] = 1,
) -> List[TimeRange]:
    """
    Split [start, end) into contiguous windows of step_hours each.

    The last window is not clamped to end: it may run past end by less
    than one step.

    Args:
        start: Range start (ISO string or datetime)
        end: Range end (ISO string or datetime)
        step_hours: Window length in hours

    Returns:
        Ordered list of TimeRange covering the whole span

    Raises:
        ValidationError: If start >= end or step_hours <= 0
    """
    cursor, end_dt = validate_time_range(start, end)
    step = timedelta(hours=validate_step_hours(step_hours))

    intervals = []
    while cursor < end_dt:
        upper = cursor + step
        intervals.append(TimeRange(cursor, upper))
        cursor = upper

    return intervals
