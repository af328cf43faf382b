"""
GraphQL documents and query-predicate helpers.

Filters are passed as the `where` variable, written in the commercetools
query predicate language.
"""
from typing import Optional

from ctmetrics.models import TimeRange

CART_TOTAL_QUERY = """
query CartTotal($where: String) {
    carts(where: $where) {
        total
    }
}
"""

ORDER_TOTAL_QUERY = """
query OrderTotal($where: String) {
    orders(where: $where) {
        total
    }
}
"""

# Paginated; used by the repeated-customer count.
ORDER_EMAIL_PAGE_QUERY = """
query OrderEmailPage($where: String, $limit: Int, $offset: Int, $sort: [String!]) {
    orders(where: $where, limit: $limit, offset: $offset, sort: $sort) {
        total
        results {
            customerEmail
        }
    }
}
"""

# Single page at the server's default limit; used by first-time buyers.
ORDER_EMAILS_QUERY = """
query OrderEmails($where: String) {
    orders(where: $where) {
        total
        results {
            customerEmail
        }
    }
}
"""

CUSTOMER_TOTAL_QUERY = """
query CustomerTotal($where: String) {
    customers(where: $where) {
        total
    }
}
"""

CREATED_AT_ASC = ["createdAt asc"]

CUSTOMER_DEFINED = "customerId is defined"
CUSTOMER_NOT_DEFINED = "customerId is not defined"
HAS_LINE_ITEMS = "lineItems is defined"


def quote(value: str) -> str:
    """Render a predicate string literal."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def within(field: str, time_range: TimeRange) -> str:
    """Half-open window predicate on a timestamp field."""
    return f"{field} >= {quote(time_range.from_iso)} AND {field} < {quote(time_range.to_iso)}"


def in_store(store_key: str) -> str:
    """Store scope for carts and orders."""
    return f"store(key={quote(store_key)})"


def in_stores(store_key: str) -> str:
    """Store scope for customers, which can belong to several stores."""
    return f"stores(key={quote(store_key)})"


def customer_email_is(email: str) -> str:
    return f"customerEmail={quote(email)}"


def all_of(*predicates: Optional[str]) -> str:
    """AND together the non-empty predicates, parenthesising each."""
    return " AND ".join(f"({p})" for p in predicates if p)


def cart_predicate(store_key: str, time_range: TimeRange, customer: Optional[str] = None) -> str:
    """Carts last modified in range that have line items, optionally by login state."""
    return all_of(customer, within("lastModifiedAt", time_range), in_store(store_key), HAS_LINE_ITEMS)


def order_predicate(store_key: str, time_range: TimeRange, customer: Optional[str] = None) -> str:
    """Orders created in range, optionally by login state."""
    return all_of(customer, within("createdAt", time_range), in_store(store_key))


def customer_predicate(store_key: str, time_range: TimeRange) -> str:
    """Customers created in range."""
    return all_of(in_stores(store_key), within("createdAt", time_range))


def lifetime_orders_predicate(store_key: str, email: str) -> str:
    """Every order the customer ever placed in the store."""
    return all_of(in_store(store_key), customer_email_is(email))


def read_root(result, root: str) -> dict:
    """The `data.<root>` object of a response, or {} when absent."""
    data = (result or {}).get("data") or {}
    return data.get(root) or {}


def read_total(result, root: str) -> int:
    """`data.<root>.total`, defaulting to 0 when the API omits it."""
    return read_root(result, root).get("total") or 0
