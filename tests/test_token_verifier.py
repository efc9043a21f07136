import time
import uuid

import httpx
import pytest

from catalog_auth.adapters.outbound.security.jwks_provider import RemoteJWKSProvider, StaticJWKSProvider
from catalog_auth.adapters.outbound.security.key_manager import KeyManager, SigningKey, generate_private_key_pem
from catalog_auth.adapters.outbound.security.token_verifier import ReplayCache, TokenVerifier, extract_bearer_token
from catalog_auth.container import ServiceContainer
from catalog_auth.domain.exceptions import InsufficientPermissions, MissingBearerToken, TokenVerificationError
from tests.conftest import ISSUER, KEY_ID, SERVICE_AUDIENCE

JWKS_URL = "https://token.example/.well-known/jwks.json"


def _claims(**overrides):
    now = int(time.time())
    claims = {
        "iss": ISSUER,
        "sub": "svc-a",
        "aud": SERVICE_AUDIENCE,
        "client_id": "svc-a",
        "scopes": ["client.read"],
        "iat": now,
        "exp": now + 3600,
        "jti": "0123456789abcdef",
    }
    claims.update(overrides)
    return claims


@pytest.fixture
def verifier(key_manager):
    return TokenVerifier(StaticJWKSProvider(key_manager), SERVICE_AUDIENCE, issuer=ISSUER)


def _bearer(key_manager, **overrides):
    return f"Bearer {key_manager.sign(_claims(**overrides))}"


@pytest.mark.parametrize("header", [None, "", "Basic abc", "Bearer ", "Bearer    ", "bearer abc"])
def test_extract_bearer_token_rejects(header):
    with pytest.raises(MissingBearerToken):
        extract_bearer_token(header)


def test_extract_bearer_token():
    assert extract_bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"


def test_audience_is_mandatory(key_manager):
    with pytest.raises(ValueError):
        TokenVerifier(StaticJWKSProvider(key_manager), "")


async def test_verify_access_token(verifier, key_manager):
    identity = await verifier.verify_access_token(_bearer(key_manager))

    assert identity.client_id == "svc-a"
    assert identity.scopes == ["client.read"]
    assert identity.kid == KEY_ID
    assert identity.claims["aud"] == SERVICE_AUDIENCE


async def test_wrong_audience_is_rejected(verifier, key_manager):
    with pytest.raises(TokenVerificationError, match="Invalid token claims"):
        await verifier.verify_access_token(_bearer(key_manager, aud="https://api.example"))


async def test_missing_audience_is_rejected(verifier, key_manager):
    claims = _claims()
    del claims["aud"]
    with pytest.raises(TokenVerificationError):
        await verifier.verify_access_token(f"Bearer {key_manager.sign(claims)}")


async def test_expired_token_is_rejected(verifier, key_manager):
    past = int(time.time()) - 7200
    with pytest.raises(TokenVerificationError, match="expired"):
        await verifier.verify_access_token(_bearer(key_manager, iat=past, exp=past + 3600))


async def test_wrong_issuer_is_rejected(verifier, key_manager):
    with pytest.raises(TokenVerificationError):
        await verifier.verify_access_token(_bearer(key_manager, iss="https://elsewhere.example"))


async def test_foreign_key_is_rejected(verifier):
    foreign = KeyManager(SigningKey.load(generate_private_key_pem("RS256"), "RS256", kid=KEY_ID))
    with pytest.raises(TokenVerificationError):
        await verifier.verify_access_token(_bearer(foreign))


async def test_unknown_kid_is_rejected(verifier):
    other = KeyManager(SigningKey.load(generate_private_key_pem("RS256"), "RS256", kid="other-key"))
    with pytest.raises(TokenVerificationError, match="Key not found"):
        await verifier.verify_access_token(_bearer(other))


async def test_malformed_token(verifier):
    with pytest.raises(TokenVerificationError):
        await verifier.verify_access_token("Bearer not-a-jwt")


@pytest.mark.parametrize("scopes", [None, "client.read", [1, 2]])
async def test_scopes_claim_must_be_string_list(verifier, key_manager, scopes):
    with pytest.raises(TokenVerificationError, match="scopes"):
        await verifier.verify_access_token(_bearer(key_manager, scopes=scopes))


async def test_client_id_claim_is_required(verifier, key_manager):
    with pytest.raises(TokenVerificationError, match="client_id"):
        await verifier.verify_access_token(_bearer(key_manager, client_id=""))


async def test_verify_token_requires_scope(verifier, key_manager):
    authorization = _bearer(key_manager, scopes=["client.read"])

    identity = await verifier.verify_token(authorization, "client.read")
    assert identity.client_id == "svc-a"

    with pytest.raises(InsufficientPermissions) as exc_info:
        await verifier.verify_token(authorization, "client.write")
    assert exc_info.value.required_scope == "client.write"


async def test_verify_scopes_fails_closed(verifier, key_manager):
    authorization = _bearer(key_manager)

    with pytest.raises(InsufficientPermissions):
        await verifier.verify_scopes(authorization, [])
    with pytest.raises(InsufficientPermissions):
        await verifier.verify_token(authorization, "")


# ─── Client assertions ───────────────────────────────────────────────────────

def _assertion(key_manager, **overrides):
    claims = {"iss": "agent-1", "sub": "agent-1", "jti": uuid.uuid4().hex}
    claims.update(overrides)
    return _bearer(key_manager, scopes=None, client_id=None, **claims)


async def test_verify_assertion_accepts_self_issued_assertion(verifier, key_manager):
    # Issued by the agent itself, not by the token service
    claims = await verifier.verify_assertion(_assertion(key_manager))

    assert claims["iss"] == claims["sub"] == "agent-1"
    assert claims["aud"] == SERVICE_AUDIENCE


@pytest.mark.parametrize(
    "overrides",
    [
        {"sub": "agent-2"},
        {"iss": ISSUER, "sub": "svc-a"},
        {"iss": ""},
    ],
)
async def test_verify_assertion_requires_iss_equal_to_sub(verifier, key_manager, overrides):
    with pytest.raises(TokenVerificationError, match="Invalid iss/sub"):
        await verifier.verify_assertion(_assertion(key_manager, **overrides))


async def test_verify_assertion_requires_jti(verifier, key_manager):
    claims = _claims(iss="agent-1", sub="agent-1")
    del claims["jti"]
    with pytest.raises(TokenVerificationError, match="Missing exp/jti"):
        await verifier.verify_assertion(f"Bearer {key_manager.sign(claims)}")


async def test_verify_assertion_requires_exp(verifier, key_manager):
    claims = _claims(iss="agent-1", sub="agent-1")
    del claims["exp"]
    with pytest.raises(TokenVerificationError):
        await verifier.verify_assertion(f"Bearer {key_manager.sign(claims)}")


async def test_verify_assertion_rejects_replay(verifier, key_manager):
    authorization = _assertion(key_manager)
    await verifier.verify_assertion(authorization)

    with pytest.raises(TokenVerificationError, match="Replay detected"):
        await verifier.verify_assertion(authorization)

    # Another assertion from the same agent is fine
    await verifier.verify_assertion(_assertion(key_manager))


async def test_container_verifier_accepts_assertions(settings, key_manager, database):
    container = ServiceContainer.build(settings, database=database, key_manager=key_manager)

    claims = await container.verifier.verify_assertion(_assertion(key_manager))
    assert claims["sub"] == "agent-1"


async def test_verify_assertion_checks_audience(verifier, key_manager):
    with pytest.raises(TokenVerificationError, match="Invalid token claims"):
        await verifier.verify_assertion(_assertion(key_manager, aud="https://api.example"))


async def test_access_tokens_still_check_issuer(verifier, key_manager):
    with pytest.raises(TokenVerificationError, match="Invalid token claims"):
        await verifier.verify_access_token(_bearer(key_manager, iss="agent-1"))


def test_replay_cache_evicts_expired_entries():
    now = [1000.0]
    cache = ReplayCache(clock=lambda: now[0])

    assert cache.add("a", 1060)
    assert cache.add("b", 1300)
    assert not cache.add("a", 1060)
    assert "a" in cache

    now[0] = 1060.0
    assert "a" not in cache
    assert cache.add("c", 1400)
    assert len(cache) == 2

    # An expired id may be seen again
    assert cache.add("a", 1120)


# ─── Remote key set ──────────────────────────────────────────────────────────

def _jwks_transport(key_manager, calls):
    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(str(request.url))
        return httpx.Response(200, json=key_manager.jwks())

    return httpx.MockTransport(handler)


async def test_remote_provider_caches_keys(key_manager):
    calls = []
    provider = RemoteJWKSProvider(JWKS_URL, ttl=300, transport=_jwks_transport(key_manager, calls))
    verifier = TokenVerifier(provider, SERVICE_AUDIENCE)

    await verifier.verify_access_token(_bearer(key_manager))
    await verifier.verify_access_token(_bearer(key_manager))
    assert calls == [JWKS_URL]

    provider.clear_cache()
    await verifier.verify_access_token(_bearer(key_manager))
    assert len(calls) == 2


async def test_remote_provider_refreshes_once_on_unknown_kid(key_manager):
    now = [0.0]
    calls = []
    provider = RemoteJWKSProvider(
        JWKS_URL, ttl=300, cooldown=30, transport=_jwks_transport(key_manager, calls), clock=lambda: now[0]
    )
    await provider.get_keys()

    now[0] = 60.0
    with pytest.raises(TokenVerificationError, match="Key not found"):
        await provider.find_key("rotated-away")
    assert len(calls) == 2


async def test_unknown_kids_do_not_refetch_during_cooldown(key_manager):
    now = [0.0]
    calls = []
    provider = RemoteJWKSProvider(
        JWKS_URL, ttl=300, cooldown=30, transport=_jwks_transport(key_manager, calls), clock=lambda: now[0]
    )

    for i in range(10):
        with pytest.raises(TokenVerificationError, match="Key not found"):
            await provider.find_key(f"bogus-{i}")
    assert len(calls) == 1

    # Known keys keep verifying from cache
    assert (await provider.find_key(KEY_ID))["kid"] == KEY_ID

    now[0] = 31.0
    with pytest.raises(TokenVerificationError):
        await provider.find_key("bogus-late")
    assert len(calls) == 2


async def test_remote_provider_fetch_failure():
    transport = httpx.MockTransport(lambda request: httpx.Response(503))
    provider = RemoteJWKSProvider(JWKS_URL, transport=transport)

    with pytest.raises(TokenVerificationError, match="Unable to fetch signing keys"):
        await provider.get_keys()


async def test_remote_provider_malformed_key_set():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"keys": "nope"}))
    provider = RemoteJWKSProvider(JWKS_URL, transport=transport)

    with pytest.raises(TokenVerificationError, match="Malformed key set"):
        await provider.get_keys()
