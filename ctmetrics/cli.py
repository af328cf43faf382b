"""
Command-line entry point for the commercetools metrics job.

Usage:
    ctmetrics --mode CART_TOTAL --start 2026-02-02T00:00:00.000Z --end 2026-02-08T23:59:00.000Z
    ctmetrics --all --start 2026-02-02 --end 2026-02-09
    MODE=TOTAL_ORDERS python -m ctmetrics
"""
import argparse
import asyncio
import sys
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from ctmetrics.client import CommercetoolsClient
from ctmetrics.config import AppConfig, load_config, validate_config
from ctmetrics.exceptions import (
    CommercetoolsError,
    ConfigurationError,
    UnsupportedModeError,
    ValidationError,
)
from ctmetrics.models import MetricMode, format_timestamp
from ctmetrics.observability import correlation_context, get_logger, setup_logging
from ctmetrics.runner import run_all_metrics
from ctmetrics.strategies import QueryContext
from ctmetrics.validators import utc_midnight, validate_time_range

logger = get_logger("ctmetrics")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ctmetrics",
        description="Aggregate cart, order and customer counts from commercetools",
    )
    selection = parser.add_mutually_exclusive_group()
    selection.add_argument("--mode", help=f"Report mode ({', '.join(m.value for m in MetricMode)})")
    selection.add_argument("--all", action="store_true", help="Run every mode in turn")
    parser.add_argument("--start", help="Range start, ISO-8601 (default: yesterday 00:00 UTC)")
    parser.add_argument("--end", help="Range end, ISO-8601 (default: today 00:00 UTC)")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING, ERROR")
    parser.add_argument("--json-logs", action="store_true", help="Emit JSON log lines")
    return parser


def resolve_range(args: argparse.Namespace, cfg: AppConfig, now: Optional[datetime] = None):
    """Flags, then env, then yesterday-to-today."""
    today = utc_midnight(now or datetime.now(timezone.utc))
    start = args.start or cfg.job.start_date or (today - timedelta(days=1))
    end = args.end or cfg.job.end_date or today
    return validate_time_range(start, end)


def resolve_modes(args: argparse.Namespace, cfg: AppConfig) -> List[MetricMode]:
    if args.all:
        return list(MetricMode)
    value = args.mode or cfg.job.mode
    if not value:
        raise ValidationError("mode", "Pass --mode, --all, or set MODE")
    return [MetricMode.parse(value)]


def format_summary(results: Dict[MetricMode, int], start: datetime, end: datetime) -> List[str]:
    span = f"{start.date().isoformat()} To {end.date().isoformat()} days"
    if len(results) == 1:
        (total,) = results.values()
        return ["================================", f"TOTAL ( {span}): {total}"]

    lines = ["================================", f"TOTALS ( {span})"]
    for mode, total in results.items():
        lines.append(f"  {mode.value}: {total}")
    return lines


async def run_job(cfg: AppConfig, modes: List[MetricMode], start: datetime, end: datetime) -> Dict[MetricMode, int]:
    async with CommercetoolsClient(cfg.commercetools) as client:
        ctx = QueryContext(
            execute=client.execute,
            store_key=cfg.commercetools.store_key,
            page_size=cfg.job.page_size,
            logger=get_logger("ctmetrics.metrics"),
        )
        return await run_all_metrics(ctx, start, end, modes)


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)
    cfg = load_config()

    setup_logging(
        level=args.log_level or cfg.logging.level,
        json_format=args.json_logs or cfg.logging.json_format,
    )

    try:
        validate_config(cfg)
        modes = resolve_modes(args, cfg)
        start, end = resolve_range(args, cfg)
    except (ConfigurationError, ValidationError, UnsupportedModeError) as e:
        logger.error(str(e))
        return 1

    with correlation_context() as run_id:
        logger.info(
            f"Starting run {run_id}: {', '.join(m.value for m in modes)} "
            f"from {format_timestamp(start)} to {format_timestamp(end)}"
        )
        try:
            results = asyncio.run(run_job(cfg, modes, start, end))
        except (CommercetoolsError, UnsupportedModeError, ValidationError) as e:
            logger.error(f"Run failed: {e}", exc_info=True)
            return 1

    for line in format_summary(results, start, end):
        print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
