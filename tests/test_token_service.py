from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from jose import jwt

from catalog_auth.adapters.outbound.security.key_manager import KeyManager
from catalog_auth.application.use_cases import AsyncTokenService
from catalog_auth.domain.exceptions import (
    DatabaseOperationException,
    InvalidClient,
    InvalidRequest,
    InvalidScope,
    ServerError,
    UnsupportedGrantType,
)
from tests.conftest import ADMIN_CLIENT_ID, ADMIN_CLIENT_SECRET, ISSUER, KEY_ID

API_AUDIENCE = "https://api.example"
NOW = 1_700_000_000


@pytest.fixture
async def secret(client_service):
    return (await client_service.register("svc-a", "Service A", ["read", "write"])).client_secret


@pytest.fixture
def fixed_clock_service(client_service, scope_resolver, key_manager):
    return AsyncTokenService(client_service, scope_resolver, key_manager, issuer=ISSUER, clock=lambda: NOW)


async def test_issues_signed_token(fixed_clock_service, secret, key_manager):
    issued = await fixed_clock_service.issue("client_credentials", "svc-a", secret, API_AUDIENCE, "read")

    assert issued.token_type == "Bearer"
    assert issued.expires_in == 3600
    assert issued.scope == "read"

    header = jwt.get_unverified_header(issued.access_token)
    assert header["kid"] == KEY_ID
    assert header["alg"] == "RS256"

    claims = jwt.get_unverified_claims(issued.access_token)
    assert claims["sub"] == claims["client_id"] == "svc-a"
    assert claims["aud"] == API_AUDIENCE
    assert claims["iss"] == ISSUER
    assert claims["scopes"] == ["read"]
    assert claims["iat"] == NOW
    assert claims["exp"] == NOW + 3600
    assert len(claims["jti"]) == 32


async def test_jti_is_unique(token_service, secret):
    first = await token_service.issue("client_credentials", "svc-a", secret, API_AUDIENCE)
    second = await token_service.issue("client_credentials", "svc-a", secret, API_AUDIENCE)

    assert jwt.get_unverified_claims(first.access_token)["jti"] != jwt.get_unverified_claims(second.access_token)["jti"]


async def test_partial_request_is_narrowed(token_service, secret):
    issued = await token_service.issue("client_credentials", "svc-a", secret, API_AUDIENCE, "read delete")
    assert issued.scopes == ["read"]


async def test_no_scope_requested_yields_empty_scopes(token_service, secret):
    issued = await token_service.issue("client_credentials", "svc-a", secret, API_AUDIENCE)

    assert issued.scopes == []
    assert issued.scope == ""


async def test_unheld_scopes_are_rejected(token_service, secret):
    with pytest.raises(InvalidScope, match="not authorized"):
        await token_service.issue("client_credentials", "svc-a", secret, API_AUDIENCE, "admin.write")


async def test_application_grants_are_not_issuable(token_service, application_service, secret):
    application = await application_service.create_application("app1", "App 1")
    await application_service.grant(application.id, "svc-a", ["doc.search"])

    with pytest.raises(InvalidScope):
        await token_service.issue("client_credentials", "svc-a", secret, API_AUDIENCE, "doc.search")


async def test_admin_override_token(token_service):
    issued = await token_service.issue(
        "client_credentials", ADMIN_CLIENT_ID, ADMIN_CLIENT_SECRET, API_AUDIENCE, "client.write tool.read"
    )
    assert issued.scopes == ["client.write", "tool.read"]


@pytest.mark.parametrize(
    "grant_type, client_id, client_secret, audience, error",
    [
        # Each row is invalid on every later check too; the earliest one wins
        ("password", None, None, None, UnsupportedGrantType),
        (None, "svc-a", "x", API_AUDIENCE, UnsupportedGrantType),
        ("client_credentials", None, None, None, InvalidClient),
        ("client_credentials", "svc-a", "", None, InvalidClient),
        ("client_credentials", "svc-a", "wrong", None, InvalidRequest),
        ("client_credentials", "svc-a", "wrong", API_AUDIENCE, InvalidClient),
    ],
)
async def test_validation_order(token_service, secret, grant_type, client_id, client_secret, audience, error):
    with pytest.raises(error):
        await token_service.issue(grant_type, client_id, client_secret, audience, "admin.write")


async def test_missing_key_fails_at_signing(client_service, scope_resolver, secret):
    service = AsyncTokenService(client_service, scope_resolver, KeyManager(load_error="missing"), issuer=ISSUER)

    with pytest.raises(InvalidClient):
        await service.issue("client_credentials", "svc-a", "wrong", API_AUDIENCE)
    with pytest.raises(InvalidScope):
        await service.issue("client_credentials", "svc-a", secret, API_AUDIENCE, "admin.write")
    with pytest.raises(ServerError, match="Token service not configured"):
        await service.issue("client_credentials", "svc-a", secret, API_AUDIENCE, "read")


async def test_database_failure_is_server_error(scope_resolver, key_manager):
    client_service = SimpleNamespace(
        authenticate=AsyncMock(side_effect=DatabaseOperationException("Error fetching client"))
    )
    service = AsyncTokenService(client_service, scope_resolver, key_manager, issuer=ISSUER)

    with pytest.raises(ServerError, match="Unable to authenticate client"):
        await service.issue("client_credentials", "svc-a", "secret", API_AUDIENCE)
