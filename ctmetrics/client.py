"""
Async GraphQL client for the commercetools API.

Wraps one pooled httpx.AsyncClient, authenticates through
ClientCredentialsAuth and turns every failure into a
QueryExecutionError (or ApiReportedError). Nothing is retried.
"""
from typing import Any, Dict, Optional

import httpx

from ctmetrics.auth import ClientCredentialsAuth
from ctmetrics.config import CommercetoolsConfig
from ctmetrics.exceptions import ApiReportedError, QueryExecutionError
from ctmetrics.observability import get_correlation_id, get_logger, Timer

logger = get_logger(__name__)


class CommercetoolsClient:
    """
    Async GraphQL client for one commercetools project.

    Usage:
        async with CommercetoolsClient(cfg.commercetools) as client:
            result = await client.execute(query, {"where": predicate})

        # Or with manual lifecycle:
        client = CommercetoolsClient(cfg.commercetools)
        await client.connect()
        try:
            result = await client.execute(query)
        finally:
            await client.close()
    """

    def __init__(
        self,
        settings: CommercetoolsConfig,
        auth: Optional[ClientCredentialsAuth] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize client.

        Args:
            settings: Connection parameters
            auth: Credential holder (a new one is built from settings if omitted)
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.graphql_url = settings.graphql_url
        self.timeout = settings.request_timeout
        self.auth = auth or ClientCredentialsAuth(settings)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def connect(self) -> None:
        """Create HTTP client with connection pooling."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
                limits=httpx.Limits(
                    max_keepalive_connections=10,
                    max_connections=20,
                )
            )

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "CommercetoolsClient":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def execute(
        self,
        query: str,
        variables: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Execute a GraphQL document and return the parsed response body.

        Args:
            query: GraphQL query string
            variables: Optional query variables

        Returns:
            Response JSON (with a "data" key)

        Raises:
            AuthenticationError: Token could not be obtained
            QueryExecutionError: Network/timeout error or non-2xx status
            ApiReportedError: Response body contains "errors"
        """
        if not self._client:
            await self.connect()

        token = await self.auth.acquire(self._client)

        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }
        correlation_id = get_correlation_id()
        if correlation_id:
            headers["X-Correlation-ID"] = correlation_id

        payload: Dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables

        try:
            with Timer("graphql_query", logger):
                response = await self._client.post(self.graphql_url, json=payload, headers=headers)
        except httpx.TimeoutException as e:
            logger.error("GraphQL request timed out", extra={"timeout": self.timeout})
            raise QueryExecutionError(f"GraphQL request timed out after {self.timeout}s") from e
        except httpx.RequestError as e:
            logger.error(f"GraphQL request failed: {e}")
            raise QueryExecutionError("GraphQL request failed", str(e)) from e

        if response.status_code >= 400:
            error_text = response.text[:500]
            logger.error(
                f"GraphQL request failed: {response.status_code}",
                extra={"status_code": response.status_code}
            )
            raise QueryExecutionError(
                f"GraphQL request failed: {response.status_code}",
                details=error_text,
                status_code=response.status_code,
            )

        try:
            result = response.json()
        except ValueError as e:
            raise QueryExecutionError(
                "GraphQL response is not valid JSON",
                details=response.text[:500],
                status_code=response.status_code,
            ) from e

        if isinstance(result, dict) and result.get("errors"):
            raise ApiReportedError(
                "GraphQL errors",
                errors=result["errors"],
                status_code=response.status_code,
            )

        return result
