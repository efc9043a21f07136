# catalog_auth/adapters/outbound/security/admin_override.py

"""
Environment-configured privileged identities.

Both identities live outside the client registry:

* the admin override lets a bootstrap client obtain tokens before any client
  has been registered;
* the management identity protects operational endpoints such as
  /admin/reload.
"""

import logging
import secrets
from typing import Optional

from catalog_auth.adapters.configuration.config import Settings
from catalog_auth.domain.exceptions import InsufficientPermissions, MissingManagementCredentials
from catalog_auth.domain.models.client_domain_model import AuthenticatedClient
from catalog_auth.domain.services.scope_service import DisplayScopes

logger = logging.getLogger(__name__)

ADMIN_SCOPES = (
    "admin.read",
    "admin.write",
    "client.read",
    "client.write",
    "agent.read",
    "agent.write",
    "workflow.read",
    "workflow.write",
    "tool.read",
    "tool.write",
    "rag.read",
    "rag.write",
)


class PrivilegedIdentity:
    """A client id/secret pair taken from the environment."""

    def __init__(self, client_id: Optional[str], client_secret: Optional[str]):
        self.client_id = client_id
        self._client_secret = client_secret

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id and self._client_secret)

    def matches(self, client_id: Optional[str], client_secret: Optional[str]) -> bool:
        """Exact match on both values. Always False when not configured."""
        if not self.is_configured or not client_id or not client_secret:
            return False
        id_ok = secrets.compare_digest(client_id.encode("utf-8"), self.client_id.encode("utf-8"))
        secret_ok = secrets.compare_digest(client_secret.encode("utf-8"), self._client_secret.encode("utf-8"))
        return id_ok and secret_ok


class AdminOverride:
    """
    Bootstrap admin authentication.

    A match short-circuits the client registry and yields the fixed
    ADMIN_SCOPES set.
    """

    def __init__(self, identity: PrivilegedIdentity):
        self.identity = identity

    @classmethod
    def from_settings(cls, settings: Settings) -> "AdminOverride":
        return cls(PrivilegedIdentity(settings.ADMIN_CLIENT_ID, settings.ADMIN_CLIENT_SECRET))

    @property
    def enabled(self) -> bool:
        return self.identity.is_configured

    def is_admin(self, client_id: Optional[str]) -> bool:
        """True when client_id is the configured override id."""
        if not self.enabled or not client_id:
            return False
        return secrets.compare_digest(client_id.encode("utf-8"), self.identity.client_id.encode("utf-8"))

    def authenticate(self, client_id: Optional[str], client_secret: Optional[str]) -> Optional[AuthenticatedClient]:
        if not self.identity.matches(client_id, client_secret):
            return None

        logger.info(f"Admin override authentication for {client_id}")
        scopes = list(ADMIN_SCOPES)
        return AuthenticatedClient(
            client_id=client_id,
            name="Admin Client",
            legacy_scopes=scopes,
            display_scopes=DisplayScopes(legacy=scopes),
            is_admin_override=True,
        )


class ManagementVerifier:
    """Checks the management identity presented on operational endpoints."""

    def __init__(self, identity: PrivilegedIdentity):
        self.identity = identity

    @classmethod
    def from_settings(cls, settings: Settings) -> "ManagementVerifier":
        return cls(PrivilegedIdentity(settings.MANAGEMENT_CLIENT_ID, settings.MANAGEMENT_CLIENT_SECRET))

    def verify(self, client_id: Optional[str], client_secret: Optional[str]) -> str:
        """
        Returns the management client id on success.

        Raises:
            MissingManagementCredentials: If either credential is absent
            InsufficientPermissions: If the identity is not configured or does not match
        """
        if not client_id or not client_secret:
            raise MissingManagementCredentials()

        if not self.identity.is_configured:
            logger.warning("Management request rejected: management client not configured")
            raise InsufficientPermissions(detail="Management client credentials not configured")

        if not self.identity.matches(client_id, client_secret):
            logger.warning(f"Management request rejected for client {client_id}")
            raise InsufficientPermissions(detail="Invalid management client credentials")

        return client_id
