# catalog_auth/domain/models/token_domain_model.py

from dataclasses import dataclass, field
from typing import Any, Dict, List

# Not configurable
ACCESS_TOKEN_TTL_SECONDS = 3600


@dataclass
class IssuedTokenClaims:
    """Claims of an access token. Never persisted."""
    sub: str
    aud: str
    iss: str
    scopes: List[str]
    client_id: str
    iat: int
    exp: int
    jti: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "iss": self.iss,
            "sub": self.sub,
            "aud": self.aud,
            "scopes": list(self.scopes),
            "client_id": self.client_id,
            "iat": self.iat,
            "exp": self.exp,
            "jti": self.jti,
        }


@dataclass
class IssuedToken:
    """Successful outcome of the client-credentials grant."""
    access_token: str
    scopes: List[str]
    expires_in: int = ACCESS_TOKEN_TTL_SECONDS
    token_type: str = "Bearer"

    @property
    def scope(self) -> str:
        return " ".join(self.scopes)


@dataclass
class AccessTokenIdentity:
    """What a verified access token says about its bearer."""
    client_id: str
    scopes: List[str] = field(default_factory=list)
    kid: str = ""
    claims: Dict[str, Any] = field(default_factory=dict)
