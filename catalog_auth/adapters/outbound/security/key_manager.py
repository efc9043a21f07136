# catalog_auth/adapters/outbound/security/key_manager.py

"""
Signing key management.

Exactly one asymmetric key pair is loaded per process. Its public half is
published as a JSON Web Key Set; its private half signs every access token.
The key never changes while the process is running.
"""

import base64
import hashlib
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from jose import jwk, jwt
from jose.backends.base import Key
from jose.exceptions import JOSEError

from catalog_auth.adapters.configuration.config import Settings
from catalog_auth.domain.exceptions import ServerError

logger = logging.getLogger(__name__)

# RFC 7638 required members per key type
_THUMBPRINT_MEMBERS = {
    "RSA": ("e", "kty", "n"),
    "EC": ("crv", "kty", "x", "y"),
}

_EC_CURVES = {
    "ES256": ec.SECP256R1,
    "ES384": ec.SECP384R1,
    "ES512": ec.SECP521R1,
}


def jwk_thumbprint(public_jwk: Dict[str, Any]) -> str:
    """Base64url SHA-256 thumbprint of a public JWK."""
    members = _THUMBPRINT_MEMBERS.get(public_jwk.get("kty"))
    if members is None:
        raise ValueError(f"Unsupported key type: {public_jwk.get('kty')!r}")
    canonical = json.dumps({m: public_jwk[m] for m in members}, separators=(",", ":"), sort_keys=True)
    digest = hashlib.sha256(canonical.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


@dataclass(frozen=True)
class SigningKey:
    """The active key pair."""
    kid: str
    algorithm: str
    private_key: Key
    public_jwk: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def load(cls, material: str, algorithm: str, kid: Optional[str] = None) -> "SigningKey":
        """
        Build a signing key from a PEM private key or a private JWK (JSON).

        Args:
            material: PEM text or JSON text of a private JWK (a JWKS holding
                one key is accepted too)
            algorithm: JWS algorithm, e.g. RS256
            kid: Explicit key id; defaults to the JWK's kid, then to the
                key thumbprint

        Raises:
            ValueError: If the material is empty, public-only or unreadable
        """
        material = (material or "").strip()
        if not material:
            raise ValueError("Empty key material")
        if "\\n" in material and "\n" not in material:
            # PEM pasted into a single-line env var
            material = material.replace("\\n", "\n")

        key_data: Any = material
        if material.startswith("{"):
            key_data = json.loads(material)
            if "keys" in key_data:
                if not key_data["keys"]:
                    raise ValueError("Key set is empty")
                key_data = key_data["keys"][0]
            if "d" not in key_data:
                raise ValueError("JWK has no private part")
            kid = kid or key_data.get("kid")
            key_data = {k: v for k, v in key_data.items() if k != "alg"}

        private_key = jwk.construct(key_data, algorithm)
        if private_key.is_public():
            raise ValueError("A private key is required to sign tokens")

        public_jwk = private_key.public_key().to_dict()
        public_jwk["alg"] = algorithm
        public_jwk["use"] = "sig"
        public_jwk["kid"] = kid or jwk_thumbprint(public_jwk)

        return cls(kid=public_jwk["kid"], algorithm=algorithm, private_key=private_key, public_jwk=public_jwk)


class KeyManager:
    """
    Holds the single active signing key.

    A KeyManager without a key is valid: the service still starts, and only
    token issuance fails (see sign).
    """

    def __init__(self, signing_key: Optional[SigningKey] = None, load_error: Optional[str] = None):
        self._signing_key = signing_key
        self.load_error = load_error

    @classmethod
    def from_settings(cls, settings: Settings) -> "KeyManager":
        """Load the key configured in settings. Never raises."""
        material = settings.TOKEN_SERVICE_PRIVATE_KEY
        try:
            if not material and settings.TOKEN_SERVICE_PRIVATE_KEY_FILE:
                material = Path(settings.TOKEN_SERVICE_PRIVATE_KEY_FILE).read_text(encoding="utf-8")

            if not material:
                logger.warning("No signing key configured; token issuance is disabled")
                return cls(load_error="No signing key configured")

            signing_key = SigningKey.load(
                material, settings.TOKEN_SIGNING_ALGORITHM, kid=settings.TOKEN_SERVICE_KEY_ID
            )
        except (OSError, ValueError, TypeError, AttributeError, JOSEError) as e:
            logger.error(f"Failed to load signing key: {str(e)}")
            return cls(load_error=f"Failed to load signing key: {e}")

        logger.info(f"Signing key loaded (kid={signing_key.kid}, alg={signing_key.algorithm})")
        return cls(signing_key)

    @property
    def is_configured(self) -> bool:
        return self._signing_key is not None

    @property
    def kid(self) -> Optional[str]:
        return self._signing_key.kid if self._signing_key else None

    @property
    def algorithm(self) -> Optional[str]:
        return self._signing_key.algorithm if self._signing_key else None

    def jwks(self) -> Dict[str, Any]:
        """Public key set. Empty when no key is loaded."""
        if self._signing_key is None:
            return {"keys": []}
        return {"keys": [dict(self._signing_key.public_jwk)]}

    def sign(self, claims: Dict[str, Any]) -> str:
        """
        Sign claims as a compact JWS with the active key.

        Raises:
            ServerError: If no key is loaded or signing fails
        """
        if self._signing_key is None:
            raise ServerError("Token service not configured")

        try:
            return jwt.encode(
                claims,
                self._signing_key.private_key,
                algorithm=self._signing_key.algorithm,
                headers={"kid": self._signing_key.kid},
            )
        except (JOSEError, ValueError, TypeError) as e:
            logger.error(f"Token signing failed: {str(e)}")
            raise ServerError("Failed to sign token") from e


def generate_private_key_pem(algorithm: str = "RS256") -> str:
    """Create a fresh unencrypted PKCS#8 private key for the given algorithm."""
    algorithm = algorithm.upper()
    if algorithm.startswith("RS"):
        private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    elif algorithm in _EC_CURVES:
        private_key = ec.generate_private_key(_EC_CURVES[algorithm]())
    else:
        raise ValueError(f"Unsupported signing algorithm: {algorithm!r}")

    return private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")


if __name__ == "__main__":
    import sys

    alg = sys.argv[1] if len(sys.argv) > 1 else "RS256"
    pem = generate_private_key_pem(alg)
    key = SigningKey.load(pem, alg.upper())

    print("# TOKEN_SERVICE_PRIVATE_KEY")
    print(pem)
    print(f"# TOKEN_SERVICE_KEY_ID={key.kid}")
    print("# Public key set")
    print(json.dumps({"keys": [key.public_jwk]}, indent=2))

# How to use:
# python -m catalog_auth.adapters.outbound.security.key_manager [RS256|ES256]
