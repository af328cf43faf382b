"""
OAuth client-credentials token handling for the commercetools API.

One ClientCredentialsAuth is created per job and handed to the client;
it is the only writer of the cached token.
"""
import time
from dataclasses import dataclass
from typing import Callable, Optional

import httpx

from ctmetrics.config import CommercetoolsConfig
from ctmetrics.exceptions import AuthenticationError
from ctmetrics.observability import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class AccessToken:
    """Bearer token with its absolute expiry (epoch seconds, margin applied)."""
    value: str
    expires_at: float


class ClientCredentialsAuth:
    """
    Lazily acquired, cached client-credentials token.

    Usage:
        auth = ClientCredentialsAuth(cfg.commercetools)
        token = await auth.acquire(http)
    """

    def __init__(
        self,
        settings: CommercetoolsConfig,
        clock: Callable[[], float] = time.time,
    ):
        self.token_url = settings.token_url
        self.client_id = settings.client_id
        self.client_secret = settings.client_secret
        self.expiry_margin = settings.token_expiry_margin_seconds
        self._clock = clock
        self._token: Optional[AccessToken] = None

    def is_expired(self) -> bool:
        """True when no token is cached or the cached one is past expiry."""
        return self._token is None or self._token.expires_at <= self._clock()

    def invalidate(self) -> None:
        """Drop the cached token; the next acquire() fetches a new one."""
        self._token = None

    async def acquire(self, http: httpx.AsyncClient) -> str:
        """
        Return a valid bearer token, exchanging credentials if needed.

        Raises:
            AuthenticationError: Exchange failed (non-2xx, transport, or bad body)
        """
        if not self.is_expired():
            return self._token.value

        try:
            response = await http.post(
                self.token_url,
                auth=(self.client_id, self.client_secret),
                data={"grant_type": "client_credentials"},
            )
        except httpx.RequestError as e:
            raise AuthenticationError("Failed to get access token", str(e)) from e

        if not response.is_success:
            raise AuthenticationError(
                "Failed to get access token",
                f"{response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
            value = data["access_token"]
            expires_in = int(data["expires_in"])
        except (ValueError, KeyError, TypeError) as e:
            raise AuthenticationError("Malformed token response", str(e)) from e

        self._token = AccessToken(
            value=value,
            expires_at=self._clock() + expires_in - self.expiry_margin,
        )
        logger.info("Access token obtained", extra={"expires_in": expires_in})
        return value
