# catalog_auth/adapters/outbound/security/token_verifier.py

"""
Bearer token verification.

All flavors share one algorithm: pick the published key by kid, check the
signature, check that aud equals the expected audience and that exp has not
elapsed. Anything missing is a rejection.
"""

import logging
import time
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from jose import jwt
from jose.exceptions import ExpiredSignatureError, JWTClaimsError, JWTError

from catalog_auth.adapters.outbound.security.jwks_provider import JWKSProvider
from catalog_auth.domain.exceptions import (
    InsufficientPermissions,
    MissingBearerToken,
    TokenVerificationError,
)
from catalog_auth.domain.models.token_domain_model import AccessTokenIdentity

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "
ASYMMETRIC_ALGORITHMS = ("RS256", "RS384", "RS512", "ES256", "ES384", "ES512")


def extract_bearer_token(authorization: Optional[str]) -> str:
    """
    Return the token of a "Bearer <token>" header value.

    Raises:
        MissingBearerToken: If the header is absent, empty or uses another scheme
    """
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        raise MissingBearerToken()
    token = authorization[len(BEARER_PREFIX):].strip()
    if not token:
        raise MissingBearerToken()
    return token


class ReplayCache:
    """
    Assertion ids seen so far, each kept until its exp.

    Expired entries are evicted on every add.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._seen: Dict[str, float] = {}

    def __contains__(self, jti: str) -> bool:
        exp = self._seen.get(jti)
        return exp is not None and exp > self._clock()

    def __len__(self) -> int:
        return len(self._seen)

    def evict_expired(self) -> None:
        now = self._clock()
        for jti in [jti for jti, exp in self._seen.items() if exp <= now]:
            del self._seen[jti]

    def add(self, jti: str, exp: float) -> bool:
        """Record jti until exp. Returns False if it is already recorded."""
        self.evict_expired()
        if jti in self._seen:
            return False
        self._seen[jti] = float(exp)
        return True


class TokenVerifier:
    """
    Verifies tokens minted for one audience.

    Args:
        key_provider: Source of the public key set
        audience: Expected aud claim; tokens for any other audience are rejected
        issuer: Expected iss claim of access tokens, checked only when set
        replay_cache: Seen assertion ids; a fresh one per verifier by default
    """

    def __init__(
            self, key_provider: JWKSProvider, audience: str, *,
            issuer: Optional[str] = None,
            algorithms: Sequence[str] = ASYMMETRIC_ALGORITHMS,
            replay_cache: Optional[ReplayCache] = None,
    ):
        if not audience:
            raise ValueError("An expected audience is required")
        self.key_provider = key_provider
        self.audience = audience
        self.issuer = issuer
        self.algorithms = list(algorithms)
        self.replay_cache = replay_cache if replay_cache is not None else ReplayCache()

    async def decode(self, token: str, *, check_issuer: bool = True) -> Dict[str, Any]:
        """
        Verify a compact JWS and return its claims.

        The expected issuer is only checked when check_issuer is set.

        Raises:
            TokenVerificationError: On any signature, key, audience, issuer or expiry failure
        """
        try:
            header = jwt.get_unverified_header(token)
        except JWTError as e:
            raise TokenVerificationError("Malformed token") from e

        key = await self.key_provider.find_key(header.get("kid"))
        algorithm = key.get("alg")
        if algorithm and algorithm not in self.algorithms:
            raise TokenVerificationError(f"Algorithm not allowed: {algorithm}")

        try:
            return jwt.decode(
                token,
                key,
                algorithms=[algorithm] if algorithm else self.algorithms,
                audience=self.audience,
                issuer=self.issuer if check_issuer else None,
                options={"require_aud": True, "require_exp": True},
            )
        except ExpiredSignatureError as e:
            raise TokenVerificationError("Token has expired") from e
        except JWTClaimsError as e:
            raise TokenVerificationError(f"Invalid token claims: {str(e)}") from e
        except JWTError as e:
            raise TokenVerificationError(f"Invalid token: {str(e)}") from e

    async def verify_assertion(self, authorization: Optional[str]) -> Dict[str, Any]:
        """
        Verify a self-signed client assertion and return its claims.

        Assertions are issued by the caller itself, so iss must equal sub
        instead of matching the token service issuer. exp and jti are
        required and each jti is accepted once until it expires.

        Raises:
            MissingBearerToken: If there is no bearer token
            TokenVerificationError: If verification fails or the assertion was already used
        """
        token = extract_bearer_token(authorization)
        claims = await self.decode(token, check_issuer=False)

        issuer = claims.get("iss")
        if not isinstance(issuer, str) or not issuer or issuer != claims.get("sub"):
            raise TokenVerificationError("Invalid iss/sub")
        jti = claims.get("jti")
        if not claims.get("exp") or not isinstance(jti, str) or not jti:
            raise TokenVerificationError("Missing exp/jti")
        if not self.replay_cache.add(jti, claims["exp"]):
            logger.warning(f"Replayed assertion {jti} from {issuer}")
            raise TokenVerificationError("Replay detected")
        return claims

    async def verify_access_token(self, authorization: Optional[str]) -> AccessTokenIdentity:
        """
        Verify an access token and extract its client and scopes.

        Raises:
            MissingBearerToken: If there is no bearer token
            TokenVerificationError: If verification fails or scopes/client_id are malformed
        """
        token = extract_bearer_token(authorization)
        claims = await self.decode(token)

        scopes = claims.get("scopes")
        if not isinstance(scopes, list) or not all(isinstance(s, str) for s in scopes):
            raise TokenVerificationError("Token has no valid scopes claim")

        client_id = claims.get("client_id")
        if not isinstance(client_id, str) or not client_id:
            raise TokenVerificationError("Token has no valid client_id claim")

        kid = jwt.get_unverified_header(token).get("kid") or ""
        return AccessTokenIdentity(client_id=client_id, scopes=scopes, kid=kid, claims=claims)

    async def verify_scopes(
            self, authorization: Optional[str], required_scopes: Iterable[str]
    ) -> AccessTokenIdentity:
        """Verify an access token that must carry every scope in required_scopes."""
        required: List[str] = list(required_scopes)
        identity = await self.verify_access_token(authorization)

        if not required:
            raise InsufficientPermissions(detail="No required scope given")
        for scope in required:
            if not scope or scope not in identity.scopes:
                logger.warning(f"Client {identity.client_id} denied: missing scope {scope}")
                raise InsufficientPermissions(required_scope=scope)
        return identity

    async def verify_token(self, authorization: Optional[str], required_scope: str) -> AccessTokenIdentity:
        return await self.verify_scopes(authorization, [required_scope])
