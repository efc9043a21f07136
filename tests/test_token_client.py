import asyncio
from urllib.parse import parse_qs

import httpx
import pytest
from jose import jwt

from catalog_auth.adapters.outbound.http.token_client import AccessTokenClient, cache_key
from catalog_auth.domain.exceptions import TokenAcquisitionError

TOKEN_SERVICE_URL = "http://token.test"
NOW = 1_700_000_000.0


class FakeClock:
    def __init__(self, now: float = NOW):
        self.now = now

    def __call__(self) -> float:
        return self.now


def _access_token(exp: float, counter: int) -> str:
    return jwt.encode({"exp": int(exp), "n": counter}, "not-verified-here", algorithm="HS256")


class FakeTokenService:
    """Answers /token like the real endpoint and records every request."""

    def __init__(self, clock: FakeClock, lifetime: int = 3600, delay: float = 0.0):
        self.clock = clock
        self.lifetime = lifetime
        self.delay = delay
        self.requests = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        form = {k: v[0] for k, v in parse_qs(request.content.decode()).items()}
        self.requests.append(form)
        if self.delay:
            await asyncio.sleep(self.delay)
        token = _access_token(self.clock() + self.lifetime, len(self.requests))
        return httpx.Response(200, json={
            "access_token": token,
            "token_type": "Bearer",
            "expires_in": self.lifetime,
            "scope": form.get("scope", ""),
        })


def _client(handler, clock) -> AccessTokenClient:
    return AccessTokenClient(
        TOKEN_SERVICE_URL, "svc-a", "secret-a", transport=httpx.MockTransport(handler), clock=clock
    )


def test_cache_key_ignores_scope_order():
    assert cache_key("svc-a", "aud", ["b", "a", "b"]) == cache_key("svc-a", "aud", ["a", "b"]) == "svc-a:aud:a,b"


async def test_posts_client_credentials_form():
    clock = FakeClock()
    service = FakeTokenService(clock)
    client = _client(service, clock)

    await client.get_token("https://api.example", ["write", "read"])

    assert service.requests == [{
        "grant_type": "client_credentials",
        "client_id": "svc-a",
        "client_secret": "secret-a",
        "audience": "https://api.example",
        "scope": "read write",
    }]
    await client.aclose()


async def test_token_is_reused_until_expiry_margin():
    clock = FakeClock()
    service = FakeTokenService(clock, lifetime=1800)
    client = _client(service, clock)

    first = await client.get_token("aud", ["read"])
    clock.now += 1000
    assert await client.get_token("aud", ["read"]) == first
    assert len(service.requests) == 1

    # Inside the 60 second margin before exp
    clock.now = NOW + 1800 - 59
    second = await client.get_token("aud", ["read"])
    assert second != first
    assert len(service.requests) == 2
    await client.aclose()


async def test_cache_is_capped_at_fifty_minutes():
    clock = FakeClock()
    service = FakeTokenService(clock, lifetime=24 * 3600)
    client = _client(service, clock)

    await client.get_token("aud")
    clock.now += 50 * 60 + 1
    await client.get_token("aud")

    assert len(service.requests) == 2
    await client.aclose()


async def test_distinct_audiences_and_scopes_are_cached_separately():
    clock = FakeClock()
    service = FakeTokenService(clock)
    client = _client(service, clock)

    await client.get_token("aud-1", ["read"])
    await client.get_token("aud-2", ["read"])
    await client.get_token("aud-1", ["write"])
    await client.get_token("aud-1", ["read", "read"])

    assert len(service.requests) == 3
    await client.aclose()


async def test_concurrent_requests_share_one_call():
    clock = FakeClock()
    service = FakeTokenService(clock, delay=0.05)
    client = _client(service, clock)

    tokens = await asyncio.gather(*[client.get_token("aud", ["b", "a"]) for _ in range(5)])

    assert len(service.requests) == 1
    assert len(set(tokens)) == 1
    assert client._inflight == {}
    await client.aclose()


async def test_force_refresh_bypasses_cache():
    clock = FakeClock()
    service = FakeTokenService(clock)
    client = _client(service, clock)

    await client.get_token("aud")
    await client.get_token("aud", force_refresh=True)
    assert len(service.requests) == 2

    client.clear_cache()
    await client.get_token("aud")
    assert len(service.requests) == 3
    await client.aclose()


async def test_error_response_raises_with_oauth_details():
    def handler(request):
        return httpx.Response(400, json={"error": "invalid_scope", "error_description": "Requested scopes are not authorized"})

    client = _client(handler, FakeClock())
    with pytest.raises(TokenAcquisitionError) as exc_info:
        await client.get_token("aud", ["admin.write"])

    assert exc_info.value.status_code == 400
    assert "invalid_scope" in exc_info.value.detail
    assert client._inflight == {}
    await client.aclose()


async def test_response_without_token_raises():
    client = _client(lambda request: httpx.Response(200, json={"token_type": "Bearer"}), FakeClock())
    with pytest.raises(TokenAcquisitionError, match="No access token"):
        await client.get_token("aud")
    await client.aclose()


async def test_unreachable_service_raises():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = _client(handler, FakeClock())
    with pytest.raises(TokenAcquisitionError, match="unreachable"):
        await client.get_token("aud")
    await client.aclose()


async def test_authorization_header():
    clock = FakeClock()
    client = _client(FakeTokenService(clock), clock)

    header = await client.authorization_header("aud")
    assert header["Authorization"].startswith("Bearer ")
    await client.aclose()


def test_from_settings_requires_credentials(settings):
    assert AccessTokenClient.from_settings(settings) is None

    settings.TOKEN_SERVICE_URL = TOKEN_SERVICE_URL + "/"
    settings.CLIENT_ID = "svc-a"
    settings.CLIENT_SECRET = "secret-a"
    client = AccessTokenClient.from_settings(settings)
    assert client.token_url == "http://token.test/token"
