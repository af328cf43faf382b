"""
Run orchestration: one report mode over an overall date range.

Interval-splittable modes are evaluated window by window, in order, through
the adaptive executor. Full-range-only modes get exactly one strategy call
over the whole span.
"""
from datetime import datetime
from typing import Dict, Iterable, Optional, Union

from ctmetrics import intervals
from ctmetrics.executor import execute_metric
from ctmetrics.models import MetricMode, TimeRange
from ctmetrics.observability import log_fields
from ctmetrics.strategies import QueryContext, get_strategy
from ctmetrics.validators import validate_time_range

Timestamp = Union[str, datetime]


async def run_metric(
    ctx: QueryContext,
    mode: Union[MetricMode, str],
    start: Timestamp,
    end: Timestamp,
) -> int:
    """
    Compute the grand total of one mode over [start, end).

    Args:
        ctx: Query context
        mode: Metric mode (enum or name)
        start: Range start
        end: Range end

    Returns:
        Grand total

    Raises:
        UnsupportedModeError: Unknown mode
        ValidationError: Invalid range
        CommercetoolsError: First query failure; remaining work is abandoned
    """
    mode = MetricMode.parse(mode)
    start_dt, end_dt = validate_time_range(start, end)

    full_range = TimeRange(start_dt, end_dt)

    with log_fields(mode=mode.value, range=str(full_range)):
        if mode.is_interval_splittable:
            return await _run_by_interval(ctx, mode, start_dt, end_dt)

        strategy = get_strategy(mode)
        total = await strategy(ctx, full_range)
        ctx.logger.info(f"Full range total: {total}")
        return total


async def _run_by_interval(ctx: QueryContext, mode: MetricMode, start: datetime, end: datetime) -> int:
    total = 0
    for window in intervals.generate_intervals(start, end, mode.interval_hours):
        with log_fields(interval=str(window)):
            try:
                window_total = await execute_metric(ctx, mode, window)
            except Exception as e:
                ctx.logger.error(f"Failed to fetch total: {e}")
                raise

            total += window_total
            ctx.logger.info(f"{window} total: {window_total}")

    return total


async def run_all_metrics(
    ctx: QueryContext,
    start: Timestamp,
    end: Timestamp,
    modes: Optional[Iterable[Union[MetricMode, str]]] = None,
) -> Dict[MetricMode, int]:
    """
    Run several modes one after another.

    Args:
        modes: Modes to run (defaults to every mode, in declaration order)

    Returns:
        {mode: total} in run order

    Raises:
        Whatever the first failing run raises
    """
    selected = [MetricMode.parse(m) for m in (modes if modes is not None else MetricMode)]

    results: Dict[MetricMode, int] = {}
    for mode in selected:
        ctx.logger.info(f"Running {mode.value}")
        results[mode] = await run_metric(ctx, mode, start, end)
    return results
