"""
Pytest configuration and shared fixtures.
"""
import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock

import pytest

from ctmetrics.config import CommercetoolsConfig
from ctmetrics.strategies import QueryContext


TEST_ENV = {
    "CT_PROJECT_KEY": "test-project",
    "CT_CLIENT_ID": "test-client-id",
    "CT_CLIENT_SECRET": "test-client-secret",
    "CT_AUTH_URL": "https://auth.test.commercetools.com",
    "CT_API_URL": "https://api.test.commercetools.com",
}


@pytest.fixture(autouse=True)
def commercetools_env(monkeypatch):
    """Required connection parameters for every test."""
    for key, value in TEST_ENV.items():
        monkeypatch.setenv(key, value)
    for key in ("CT_STORE_KEY", "MODE", "START_DATE", "END_DATE", "LOG_LEVEL", "LOG_JSON"):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def ct_settings() -> CommercetoolsConfig:
    """Explicit connection settings, independent of the environment."""
    return CommercetoolsConfig(
        project_key="test-project",
        client_id="test-client-id",
        client_secret="test-client-secret",
        auth_url="https://auth.test.commercetools.com",
        api_url="https://api.test.commercetools.com",
        store_key="kwh",
    )


def utc(*args) -> datetime:
    """Shorthand for an aware UTC datetime."""
    return datetime(*args, tzinfo=timezone.utc)


def total_response(root: str, total: Optional[int]) -> Dict[str, Any]:
    """GraphQL body with data.<root>.total."""
    node = {} if total is None else {"total": total}
    return {"data": {root: node}}


def results_response(root: str, emails: List[Optional[str]], total: int) -> Dict[str, Any]:
    """GraphQL body with data.<root>.{total, results[customerEmail]}."""
    return {
        "data": {
            root: {
                "total": total,
                "results": [{"customerEmail": email} for email in emails],
            }
        }
    }


@pytest.fixture
def make_context():
    """Build a QueryContext around an AsyncMock executor."""
    def _make(side_effect=None, return_value=None, page_size: int = 500) -> QueryContext:
        execute = AsyncMock(side_effect=side_effect, return_value=return_value)
        return QueryContext(execute=execute, store_key="kwh", page_size=page_size)
    return _make
