# catalog_auth/application/dtos/client_dto.py

"""
Schemas for client registry requests and responses.

Wire names are camelCase (serverId, clientId, ...).
"""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from catalog_auth.application.dtos.base_dto import CamelModel


class ClientRegisterRequest(CamelModel):
    server_id: str = Field(..., min_length=1, max_length=255, description="Client identifier chosen by the caller")
    name: str = Field(..., min_length=1, max_length=255)
    scopes: List[str] = Field(default_factory=list, description="Legacy (global) scopes")


class ClientRegisterResponse(CamelModel):
    """
    Returned once, on creation. client_secret is never shown again.
    """
    server_id: str
    client_id: str
    client_secret: str
    scopes: List[str]


class ClientRegistrationStatus(CamelModel):
    """Re-registration of an existing client (updated or unchanged)."""
    message: Optional[str] = None
    error: Optional[str] = None
    client_id: str
    scopes: List[str]


class ClientOutput(CamelModel):
    server_id: str
    name: str
    scopes: List[str]
    created_at: Optional[datetime] = None
    registered_by: Optional[str] = None


class ClientListResponse(CamelModel):
    servers: List[ClientOutput]


class ClientUpdateRequest(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    global_scopes: List[str] = Field(..., description="Replacement legacy scopes")


class ClientScopesOutput(CamelModel):
    client_id: str
    scopes: List[str]


class ClientUpdateResponse(CamelModel):
    message: str = "Client updated successfully"
    client: ClientScopesOutput


class ClientSecretInfo(CamelModel):
    """Secrets are stored hashed; only the hint can be shown back."""
    client_id: str
    secret_hint: Optional[str] = None
    updated_at: Optional[datetime] = None


class ClientSecretResetResponse(CamelModel):
    client_id: str
    secret: str
