# catalog_auth/domain/models/client_domain_model.py

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from catalog_auth.domain.services.scope_service import DisplayScopes


@dataclass
class Client:
    """Domain model for a registered machine client."""
    client_id: str  # Caller-chosen public identifier
    name: str
    legacy_scopes: List[str] = field(default_factory=list)
    registered_by: Optional[str] = None
    secret_hint: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class RegisteredClient:
    """Result of an idempotent registration."""
    client: Client
    is_new: bool
    # Plaintext secret, only present when the client was just created
    client_secret: Optional[str] = None


@dataclass
class AuthenticatedClient:
    """
    Identity returned by a successful client authentication.

    legacy_scopes are the only scopes that may gate token issuance.
    display_scopes adds every application grant and is informational only.
    """
    client_id: str
    name: str
    legacy_scopes: List[str]
    display_scopes: Optional[DisplayScopes] = None
    is_admin_override: bool = False
