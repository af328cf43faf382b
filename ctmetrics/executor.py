"""
Adaptive metric execution.

The upstream query system caps result counts, so a window whose total
reaches SPLIT_THRESHOLD is re-queried as two halves split at
start + SPLIT_OFFSET, fetched concurrently and summed.

The split is single-level: each half is evaluated once and its value is
used as-is, even if that half is itself over the threshold.

The offset is fixed whatever the window length. For a window of 30
minutes or less the lower half runs past the window end and the upper
half is empty or inverted.
"""
import asyncio
from datetime import timedelta

from ctmetrics.models import MetricMode, TimeRange
from ctmetrics.strategies import QueryContext, get_strategy

SPLIT_THRESHOLD = 10_000
SPLIT_OFFSET = timedelta(minutes=30)


async def execute_metric(ctx: QueryContext, mode: MetricMode, time_range: TimeRange) -> int:
    """
    Evaluate a mode over one window, splitting once if the count is too large.

    Args:
        ctx: Query context (executor, store, logger)
        mode: Metric mode to evaluate
        time_range: Window to evaluate

    Returns:
        Total count for the window

    Raises:
        UnsupportedModeError: No strategy for mode
        QueryExecutionError: Any strategy call failed (no partial sum)
    """
    strategy = get_strategy(mode)

    total = await strategy(ctx, time_range)

    if total < SPLIT_THRESHOLD:
        return total

    midpoint = time_range.start + SPLIT_OFFSET
    first = TimeRange(time_range.start, midpoint)
    second = TimeRange(midpoint, time_range.end, checked=False)

    ctx.logger.info(f"Total {total} exceeds {SPLIT_THRESHOLD}, splitting into 30-min intervals")
    if second.is_empty:
        # first runs past the window's end; second matches nothing
        ctx.logger.warning(f"{time_range} spans 30 minutes or less, second half {second} is empty")

    first_half, second_half = await asyncio.gather(
        strategy(ctx, first),
        strategy(ctx, second),
    )

    combined = first_half + second_half
    ctx.logger.info(f"30-min intervals: {first_half} + {second_half} = {combined}")

    return combined
