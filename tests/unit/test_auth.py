"""
Tests for ctmetrics.auth module.
"""
import base64

import httpx
import pytest

from ctmetrics.auth import ClientCredentialsAuth
from ctmetrics.exceptions import AuthenticationError


class FakeClock:
    def __init__(self, now: float = 1_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def token_transport(requests, status_code=200, body=None):
    """MockTransport answering every request with a token body."""
    if body is None:
        body = {"access_token": "tok-1", "expires_in": 172800, "token_type": "Bearer"}

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if isinstance(body, (bytes, str)):
            return httpx.Response(status_code, content=body)
        return httpx.Response(status_code, json=body)

    return httpx.MockTransport(handler)


class TestClientCredentialsAuth:
    """Tests for ClientCredentialsAuth class."""

    @pytest.mark.asyncio
    async def test_acquire_exchanges_credentials(self, ct_settings):
        requests = []
        auth = ClientCredentialsAuth(ct_settings, clock=FakeClock())

        async with httpx.AsyncClient(transport=token_transport(requests)) as http:
            token = await auth.acquire(http)

        assert token == "tok-1"
        assert len(requests) == 1
        request = requests[0]
        assert request.method == "POST"
        assert str(request.url) == "https://auth.test.commercetools.com/oauth/token"
        expected = base64.b64encode(b"test-client-id:test-client-secret").decode()
        assert request.headers["Authorization"] == f"Basic {expected}"
        assert request.content == b"grant_type=client_credentials"

    @pytest.mark.asyncio
    async def test_token_cached(self, ct_settings):
        requests = []
        auth = ClientCredentialsAuth(ct_settings, clock=FakeClock())

        async with httpx.AsyncClient(transport=token_transport(requests)) as http:
            await auth.acquire(http)
            await auth.acquire(http)

        assert len(requests) == 1
        assert not auth.is_expired()

    @pytest.mark.asyncio
    async def test_expiry_applies_margin(self, ct_settings):
        """A 120s token with a 60s margin is refreshed after 60s."""
        requests = []
        clock = FakeClock(1_000.0)
        auth = ClientCredentialsAuth(ct_settings, clock=clock)
        transport = token_transport(requests, body={"access_token": "tok", "expires_in": 120})

        async with httpx.AsyncClient(transport=transport) as http:
            await auth.acquire(http)
            clock.now = 1_059.0
            assert not auth.is_expired()
            clock.now = 1_060.0
            assert auth.is_expired()
            await auth.acquire(http)

        assert len(requests) == 2

    @pytest.mark.asyncio
    async def test_invalidate(self, ct_settings):
        requests = []
        auth = ClientCredentialsAuth(ct_settings, clock=FakeClock())

        async with httpx.AsyncClient(transport=token_transport(requests)) as http:
            await auth.acquire(http)
            auth.invalidate()
            assert auth.is_expired()
            await auth.acquire(http)

        assert len(requests) == 2

    def test_expired_before_first_acquire(self, ct_settings):
        assert ClientCredentialsAuth(ct_settings).is_expired()

    @pytest.mark.asyncio
    async def test_rejected_credentials(self, ct_settings):
        requests = []
        transport = token_transport(requests, status_code=401, body={"error": "invalid_client"})
        auth = ClientCredentialsAuth(ct_settings)

        async with httpx.AsyncClient(transport=transport) as http:
            with pytest.raises(AuthenticationError) as exc_info:
                await auth.acquire(http)

        assert exc_info.value.status_code == 401
        assert exc_info.value.message == "Failed to get access token"
        assert auth.is_expired()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [
        b"not json",
        {"expires_in": 3600},
        {"access_token": "tok"},
        {"access_token": "tok", "expires_in": "soon"},
    ])
    async def test_malformed_body(self, ct_settings, body):
        transport = token_transport([], body=body)
        auth = ClientCredentialsAuth(ct_settings)

        async with httpx.AsyncClient(transport=transport) as http:
            with pytest.raises(AuthenticationError, match="Malformed token response"):
                await auth.acquire(http)

    @pytest.mark.asyncio
    async def test_network_error(self, ct_settings):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        auth = ClientCredentialsAuth(ct_settings)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            with pytest.raises(AuthenticationError) as exc_info:
                await auth.acquire(http)

        assert exc_info.value.status_code is None
        assert "connection refused" in str(exc_info.value)
