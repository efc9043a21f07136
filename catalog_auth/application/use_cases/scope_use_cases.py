# catalog_auth/application/use_cases/scope_use_cases.py

"""
Scope resolution against persisted client and application data.
"""

import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from catalog_auth.adapters.outbound.persistence.repositories.application_repository import application_repository
from catalog_auth.adapters.outbound.persistence.repositories.client_repository import client_repository
from catalog_auth.application.ports.inbound import IScopeResolver
from catalog_auth.application.ports.outbound import IApplicationRepository, IClientRepository
from catalog_auth.domain.models.client_domain_model import AuthenticatedClient
from catalog_auth.domain.services.scope_service import DisplayScopes, IssuableScopes, ScopeService

logger = logging.getLogger(__name__)


class AsyncScopeResolver(IScopeResolver):
    """
    Computes the scopes a client may use, depending on purpose.

    issuable_scopes gates token issuance and only looks at legacy scopes.
    display_scopes is for enumeration and also includes application grants.
    verify_application_scope is the check used when serving a resource that
    belongs to an application.
    """

    def __init__(
            self, db_session: AsyncSession,
            clients: IClientRepository = client_repository,
            applications: IApplicationRepository = application_repository,
    ):
        self.db_session = db_session
        self.clients = clients
        self.applications = applications

    async def legacy_scopes(self, client_id: str) -> Optional[List[str]]:
        """Registered legacy scopes, None for clients outside the registry."""
        client = await self.clients.get_by_client_id(self.db_session, client_id)
        return list(client.legacy_scopes) if client else None

    def issuable_scopes(self, client: AuthenticatedClient, requested: List[str]) -> IssuableScopes:
        return ScopeService.issuable(requested, client.legacy_scopes)

    async def display_scopes(self, client_id: str, legacy_scopes: List[str]) -> DisplayScopes:
        permissions = await self.applications.list_permissions_for_client(self.db_session, client_id)
        return ScopeService.display(legacy_scopes, permissions)

    async def verify_application_scope(
            self, client_id: str, application_name: str, scope: str,
            legacy_scopes: Optional[List[str]] = None,
    ) -> bool:
        """
        True if the client holds scope globally or through its grant on application_name.

        Args:
            legacy_scopes: Scopes already known for the client (e.g. from its token);
                loaded from the registry when omitted
        """
        if not scope:
            return False

        if legacy_scopes is None:
            legacy_scopes = await self.legacy_scopes(client_id) or []

        if scope in legacy_scopes:
            return True

        permission = await self.applications.get_permission_by_application_name(
            self.db_session, client_id, application_name
        )
        allowed = permission is not None and scope in permission.component_scopes
        if not allowed:
            logger.info(f"Scope {scope} not granted to {client_id} on application {application_name}")
        return allowed
