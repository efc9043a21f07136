# catalog_auth/application/dtos/token_dto.py

from typing import Any, Dict, List, Optional

from pydantic import Field

from catalog_auth.application.dtos.base_dto import CustomBaseModel


class TokenResponse(CustomBaseModel):
    """
    Successful client-credentials response (RFC 6749 section 5.1).
    """
    access_token: str = Field(..., description="Signed JWT")
    token_type: str = Field("Bearer", description="Token type")
    expires_in: int = Field(..., description="Lifetime in seconds")
    scope: str = Field("", description="Space separated granted scopes")


class JWKSResponse(CustomBaseModel):
    keys: List[Dict[str, Any]]


class ScopeCheck(CustomBaseModel):
    application: str
    scope: str
    allowed: bool


class ScopesResponse(CustomBaseModel):
    client_id: str
    token_scopes: List[str]
    legacy_scopes: List[str]
    application_scopes: Dict[str, List[str]]
    all_scopes: List[str]
    check: Optional[ScopeCheck] = None


class HealthResponse(CustomBaseModel):
    status: str
    key_loaded: bool
    kid: Optional[str] = None
    key_error: Optional[str] = None
    registered_clients: Optional[int] = None
    database: str


class ReloadResponse(CustomBaseModel):
    message: str
    reloaded_by: str
