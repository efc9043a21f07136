import json

import pytest
from cryptography.hazmat.primitives import serialization
from jose import jwk, jwt

from catalog_auth.adapters.outbound.security.key_manager import (
    KeyManager,
    SigningKey,
    generate_private_key_pem,
    jwk_thumbprint,
)
from catalog_auth.domain.exceptions import ServerError
from tests.conftest import KEY_ID


def _public_pem(private_pem: str) -> str:
    private_key = serialization.load_pem_private_key(private_pem.encode("ascii"), password=None)
    return private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("ascii")


def test_load_from_settings_publishes_single_key(key_manager):
    assert key_manager.is_configured
    assert key_manager.kid == KEY_ID
    assert key_manager.algorithm == "RS256"

    keys = key_manager.jwks()["keys"]
    assert len(keys) == 1
    assert keys[0]["kid"] == KEY_ID
    assert keys[0]["alg"] == "RS256"
    assert keys[0]["use"] == "sig"
    assert keys[0]["kty"] == "RSA"
    assert "d" not in keys[0]


def test_kid_defaults_to_thumbprint(private_key_pem):
    key = SigningKey.load(private_key_pem, "RS256")
    assert key.kid == jwk_thumbprint(key.public_jwk)


def test_escaped_newlines_are_accepted(private_key_pem):
    key = SigningKey.load(private_key_pem.replace("\n", "\\n"), "RS256", kid="inline")
    assert key.kid == "inline"


def test_sign_sets_kid_header(key_manager):
    token = key_manager.sign({"sub": "svc-a", "aud": "x"})

    assert jwt.get_unverified_header(token)["kid"] == KEY_ID
    assert jwt.get_unverified_claims(token)["sub"] == "svc-a"


def test_signature_verifies_with_published_key(key_manager):
    token = key_manager.sign({"sub": "svc-a", "aud": "x"})
    public = key_manager.jwks()["keys"][0]

    claims = jwt.decode(token, public, algorithms=["RS256"], audience="x")
    assert claims["sub"] == "svc-a"


def test_missing_key_disables_signing_only():
    manager = KeyManager(load_error="No signing key configured")

    assert not manager.is_configured
    assert manager.kid is None
    assert manager.jwks() == {"keys": []}
    with pytest.raises(ServerError, match="Token service not configured"):
        manager.sign({"sub": "svc-a"})


def test_public_key_is_rejected(private_key_pem):
    with pytest.raises(ValueError):
        SigningKey.load(_public_pem(private_key_pem), "RS256")


def test_from_settings_records_load_error(settings, private_key_pem):
    settings.TOKEN_SERVICE_PRIVATE_KEY = _public_pem(private_key_pem)
    manager = KeyManager.from_settings(settings)

    assert not manager.is_configured
    assert manager.load_error.startswith("Failed to load signing key")


def test_from_settings_without_material(settings):
    settings.TOKEN_SERVICE_PRIVATE_KEY = None
    manager = KeyManager.from_settings(settings)

    assert not manager.is_configured
    assert manager.load_error == "No signing key configured"


def test_key_file_is_read(settings, private_key_pem, tmp_path):
    key_file = tmp_path / "signing.pem"
    key_file.write_text(private_key_pem)
    settings.TOKEN_SERVICE_PRIVATE_KEY = None
    settings.TOKEN_SERVICE_PRIVATE_KEY_FILE = str(key_file)

    assert KeyManager.from_settings(settings).kid == KEY_ID


def test_private_jwk_json(private_key_pem):
    private_jwk = jwk.construct(private_key_pem, "RS256").to_dict()
    private_jwk["kid"] = "from-jwk"

    key = SigningKey.load(json.dumps({"keys": [private_jwk]}), "RS256")
    assert key.kid == "from-jwk"
    assert "d" not in key.public_jwk


def test_jwk_without_private_part_is_rejected(key_manager):
    with pytest.raises(ValueError, match="no private part"):
        SigningKey.load(json.dumps(key_manager.jwks()["keys"][0]), "RS256")


def test_ec_key():
    key = SigningKey.load(generate_private_key_pem("ES256"), "ES256")
    manager = KeyManager(key)

    token = manager.sign({"sub": "svc-a", "aud": "x"})
    assert jwt.get_unverified_header(token)["alg"] == "ES256"
    assert key.public_jwk["kty"] == "EC"
