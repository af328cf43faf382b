"""
Per-mode metric strategies.

Each strategy computes one exact count for a TimeRange. Missing count
fields in a successful response count as 0 (the API omits them when a
range has no matches); query failures propagate unchanged.
"""
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, List, Optional, Set

from ctmetrics.exceptions import UnsupportedModeError
from ctmetrics.models import MetricMode, TimeRange
from ctmetrics.observability import get_logger
from ctmetrics.pagination import OffsetPaginator, QueryExecutor
from ctmetrics import queries


@dataclass
class QueryContext:
    """Collaborators shared by every strategy in one run."""
    execute: QueryExecutor
    store_key: str = "kwh"
    page_size: int = 500
    logger: logging.Logger = field(default_factory=lambda: get_logger("ctmetrics.metrics"))


Strategy = Callable[[QueryContext, TimeRange], Awaitable[int]]


# ═══════════════════════════════════════════════════════════════════════════════
# CART TOTALS
# ═══════════════════════════════════════════════════════════════════════════════

async def _cart_total(ctx: QueryContext, time_range: TimeRange, customer: Optional[str]) -> int:
    where = queries.cart_predicate(ctx.store_key, time_range, customer)
    result = await ctx.execute(queries.CART_TOTAL_QUERY, {"where": where})
    return queries.read_total(result, "carts")


async def fetch_cart_total(ctx: QueryContext, time_range: TimeRange) -> int:
    return await _cart_total(ctx, time_range, None)


async def fetch_anonymous_cart_total(ctx: QueryContext, time_range: TimeRange) -> int:
    return await _cart_total(ctx, time_range, queries.CUSTOMER_NOT_DEFINED)


async def fetch_logged_in_cart_total(ctx: QueryContext, time_range: TimeRange) -> int:
    return await _cart_total(ctx, time_range, queries.CUSTOMER_DEFINED)


# ═══════════════════════════════════════════════════════════════════════════════
# ORDER TOTALS
# ═══════════════════════════════════════════════════════════════════════════════

async def _order_total(ctx: QueryContext, time_range: TimeRange, customer: Optional[str]) -> int:
    where = queries.order_predicate(ctx.store_key, time_range, customer)
    result = await ctx.execute(queries.ORDER_TOTAL_QUERY, {"where": where})
    return queries.read_total(result, "orders")


async def fetch_order_total(ctx: QueryContext, time_range: TimeRange) -> int:
    return await _order_total(ctx, time_range, None)


async def fetch_anonymous_order_total(ctx: QueryContext, time_range: TimeRange) -> int:
    return await _order_total(ctx, time_range, queries.CUSTOMER_NOT_DEFINED)


async def fetch_logged_in_order_total(ctx: QueryContext, time_range: TimeRange) -> int:
    return await _order_total(ctx, time_range, queries.CUSTOMER_DEFINED)


async def fetch_repeated_customer_total(ctx: QueryContext, time_range: TimeRange) -> int:
    """
    Count customers with more than one order in the range.

    Pages through every order (createdAt ascending) and tracks emails:
    an email seen a second time joins the repeated set.

    Returns:
        Number of distinct repeated emails
    """
    paginator = OffsetPaginator(ctx.execute, "orders", page_size=ctx.page_size, logger=ctx.logger)
    variables = {
        "where": queries.order_predicate(ctx.store_key, time_range),
        "sort": queries.CREATED_AT_ASC,
    }

    seen: Set[str] = set()
    repeated: Set[str] = set()

    async for batch in paginator.paginate(queries.ORDER_EMAIL_PAGE_QUERY, variables):
        for order in batch:
            email = (order or {}).get("customerEmail")
            if not email:
                continue
            if email in seen:
                if email not in repeated:
                    ctx.logger.debug(
                        f"Repeated email found: {email} => {len(repeated) + 1} repeated so far"
                    )
                repeated.add(email)
            else:
                seen.add(email)

    ctx.logger.info(f"Repeated customers found: {len(repeated)}")
    return len(repeated)


# ═══════════════════════════════════════════════════════════════════════════════
# CUSTOMERS
# ═══════════════════════════════════════════════════════════════════════════════

async def fetch_customers_created_total(ctx: QueryContext, time_range: TimeRange) -> int:
    where = queries.customer_predicate(ctx.store_key, time_range)
    result = await ctx.execute(queries.CUSTOMER_TOTAL_QUERY, {"where": where})
    return queries.read_total(result, "customers")


# ═══════════════════════════════════════════════════════════════════════════════
# FIRST-TIME BUYERS
# ═══════════════════════════════════════════════════════════════════════════════

async def fetch_first_time_buyer_candidates(ctx: QueryContext, time_range: TimeRange) -> List[str]:
    """
    Customer emails of orders created in the range.

    One page only, at the server's default limit. Duplicates are kept and
    orders without an email are skipped.
    """
    where = queries.order_predicate(ctx.store_key, time_range)
    result = await ctx.execute(queries.ORDER_EMAILS_QUERY, {"where": where})
    orders = queries.read_root(result, "orders").get("results") or []

    emails = []
    for order in orders:
        email = (order or {}).get("customerEmail")
        if email:
            emails.append(email)
        else:
            ctx.logger.debug("Skipping order without customerEmail")
    return emails


async def count_single_order_customers(ctx: QueryContext, emails: List[str]) -> int:
    """
    Count emails whose lifetime order count in the store is exactly 1.

    Issues one query per entry, sequentially; a duplicated email is
    queried (and counted) once per occurrence.
    """
    count = 0
    for email in emails:
        where = queries.lifetime_orders_predicate(ctx.store_key, email)
        result = await ctx.execute(queries.ORDER_TOTAL_QUERY, {"where": where})
        total = queries.read_total(result, "orders")
        ctx.logger.debug(f"{email} => {total}")
        if total == 1:
            count += 1
    return count


async def fetch_first_time_buyers_total(ctx: QueryContext, time_range: TimeRange) -> int:
    emails = await fetch_first_time_buyer_candidates(ctx, time_range)
    return await count_single_order_customers(ctx, emails)


# ═══════════════════════════════════════════════════════════════════════════════
# REGISTRY
# ═══════════════════════════════════════════════════════════════════════════════

STRATEGIES: Dict[MetricMode, Strategy] = {
    MetricMode.CART_TOTAL: fetch_cart_total,
    MetricMode.ANONYMOUS_CART: fetch_anonymous_cart_total,
    MetricMode.LOGGED_IN_CART: fetch_logged_in_cart_total,
    MetricMode.FIRST_TIME_BUYERS: fetch_first_time_buyers_total,
    MetricMode.LOGGED_IN_ORDERS: fetch_logged_in_order_total,
    MetricMode.ANONYMOUS_ORDERS: fetch_anonymous_order_total,
    MetricMode.REPEATED_ORDERS: fetch_repeated_customer_total,
    MetricMode.TOTAL_ORDERS: fetch_order_total,
    MetricMode.TOTAL_CUSTOMERS: fetch_customers_created_total,
}


def get_strategy(mode) -> Strategy:
    """
    Look up the strategy for a mode.

    Raises:
        UnsupportedModeError: If mode is unknown or has no strategy
    """
    try:
        return STRATEGIES[mode]
    except (KeyError, TypeError):
        raise UnsupportedModeError(mode) from None
