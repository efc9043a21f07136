# catalog_auth/application/use_cases/client_use_cases.py

"""
Service for client management.

This module implements the client registry: idempotent registration,
authentication, secret rotation and CRUD.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from catalog_auth.adapters.outbound.persistence.repositories.application_repository import application_repository
from catalog_auth.adapters.outbound.persistence.repositories.client_repository import client_repository
from catalog_auth.adapters.outbound.security.admin_override import AdminOverride
from catalog_auth.adapters.outbound.security.secret_hasher import SecretHasher
from catalog_auth.application.ports.inbound import IClientUseCase
from catalog_auth.application.ports.outbound import IApplicationRepository, IClientRepository
from catalog_auth.domain.exceptions import InvalidClient, ResourceNotFoundException
from catalog_auth.domain.models.client_domain_model import AuthenticatedClient, Client, RegisteredClient
from catalog_auth.domain.services.scope_service import ScopeService

logger = logging.getLogger(__name__)


class AsyncClientService(IClientUseCase):
    """
    Service for client management.

    Secrets are only ever stored hashed. The plaintext is handed back once,
    when a client is created and when its secret is reset.
    """

    def __init__(
            self, db_session: AsyncSession,
            admin_override: Optional[AdminOverride] = None,
            clients: IClientRepository = client_repository,
            applications: IApplicationRepository = application_repository,
    ):
        self.db_session = db_session
        self.admin_override = admin_override
        self.clients = clients
        self.applications = applications

    async def register(
            self, client_id: str, name: str, scopes: List[str], registered_by: Optional[str] = None
    ) -> RegisteredClient:
        """
        Idempotent registration.

        - Unknown client: created with the given scopes (is_new=True, secret returned).
        - Known client, non-empty scopes: stored scopes are replaced.
        - Known client, empty scopes: returned unchanged.

        Raises:
            ResourceAlreadyExistsException: If a concurrent registration created the client first
        """
        scopes = list(dict.fromkeys(scopes or []))
        existing = await self.clients.get_by_client_id(self.db_session, client_id)

        if existing is not None:
            if scopes:
                updated = await self.clients.update(self.db_session, client_id, scopes=scopes)
                logger.info(f"Client {client_id} re-registered with new scopes")
                return RegisteredClient(client=updated, is_new=False)
            return RegisteredClient(client=existing, is_new=False)

        secret = SecretHasher.generate_secret()
        client = Client(
            client_id=client_id,
            name=name,
            legacy_scopes=scopes,
            registered_by=registered_by,
            secret_hint=SecretHasher.hint(secret),
        )
        created = await self.clients.create(self.db_session, client, SecretHasher.hash_secret(secret))
        logger.info(f"Registered client {client_id} ({name}) by {registered_by}")
        return RegisteredClient(client=created, is_new=True, client_secret=secret)

    async def authenticate(self, client_id: str, client_secret: str) -> AuthenticatedClient:
        """
        Check client credentials.

        The returned identity carries the legacy scopes (the only ones that may
        be put in a token) and the display union with application grants.

        Raises:
            InvalidClient: If the client is unknown or the secret does not match
        """
        if self.admin_override is not None:
            admin = self.admin_override.authenticate(client_id, client_secret)
            if admin is not None:
                return admin

        client = await self.clients.get_by_client_id(self.db_session, client_id)
        secret_hash = await self.clients.get_secret_hash(self.db_session, client_id) if client else None

        if client is None or not SecretHasher.verify_secret(client_secret, secret_hash):
            logger.warning(f"Failed authentication for client {client_id}")
            raise InvalidClient("Invalid client credentials")

        permissions = await self.applications.list_permissions_for_client(self.db_session, client_id)
        return AuthenticatedClient(
            client_id=client.client_id,
            name=client.name,
            legacy_scopes=list(client.legacy_scopes),
            display_scopes=ScopeService.display(client.legacy_scopes, permissions),
        )

    async def get_client(self, client_id: str) -> Client:
        client = await self.clients.get_by_client_id(self.db_session, client_id)
        if client is None:
            raise ResourceNotFoundException(detail="Client not found", resource_id=client_id)
        return client

    async def reset_secret(self, client_id: str) -> Tuple[Client, str]:
        secret = SecretHasher.generate_secret()
        updated = await self.clients.update_secret(
            self.db_session, client_id, SecretHasher.hash_secret(secret), SecretHasher.hint(secret)
        )
        if not updated:
            raise ResourceNotFoundException(detail="Client not found", resource_id=client_id)

        logger.info(f"Secret reset for client {client_id}")
        return await self.get_client(client_id), secret

    async def update_client(
            self, client_id: str, name: Optional[str] = None, scopes: Optional[List[str]] = None
    ) -> Client:
        if scopes is not None:
            scopes = list(dict.fromkeys(scopes))
        client = await self.clients.update(self.db_session, client_id, name=name, scopes=scopes)
        if client is None:
            raise ResourceNotFoundException(detail="Client not found", resource_id=client_id)
        logger.info(f"Updated client {client_id}")
        return client

    async def delete_client(self, client_id: str) -> None:
        if not await self.clients.delete(self.db_session, client_id):
            raise ResourceNotFoundException(detail="Client not found", resource_id=client_id)
        logger.info(f"Deleted client {client_id}")

    async def list_clients(self) -> List[Client]:
        return await self.clients.list(self.db_session)

    async def count_clients(self) -> int:
        return await self.clients.count(self.db_session)
