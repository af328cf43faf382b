"""
Aggregate cart, order and customer counts from the commercetools GraphQL API.

This package contains:
- exceptions: Custom exception hierarchy
- config: Environment-driven configuration
- client / auth: Async GraphQL query executor with cached OAuth token
- strategies: One counting strategy per report mode
- executor / runner: Adaptive window splitting and run orchestration
"""

# Import in dependency order
from ctmetrics.exceptions import (
    CommercetoolsError,
    AuthenticationError,
    QueryExecutionError,
    ApiReportedError,
    ConfigurationError,
    UnsupportedModeError,
    ValidationError,
)

from ctmetrics.models import MetricMode, TimeRange

from ctmetrics.intervals import generate_intervals

from ctmetrics.strategies import QueryContext, STRATEGIES, get_strategy

from ctmetrics.executor import SPLIT_THRESHOLD, execute_metric

from ctmetrics.runner import run_metric, run_all_metrics

__all__ = [
    # Exceptions
    "CommercetoolsError",
    "AuthenticationError",
    "QueryExecutionError",
    "ApiReportedError",
    "ConfigurationError",
    "UnsupportedModeError",
    "ValidationError",
    # Models
    "MetricMode",
    "TimeRange",
    # Core
    "generate_intervals",
    "QueryContext",
    "STRATEGIES",
    "get_strategy",
    "SPLIT_THRESHOLD",
    "execute_metric",
    "run_metric",
    "run_all_metrics",
]
