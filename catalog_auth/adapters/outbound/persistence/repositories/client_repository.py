# catalog_auth/adapters/outbound/persistence/repositories/client_repository.py

"""
Repository for client registrations.

This module implements the IClientRepository interface on top of
the client_registrations table.
"""

from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from catalog_auth.adapters.outbound.persistence.repositories.base_repository import AsyncRepositoryBase
from catalog_auth.adapters.outbound.persistence.models import ClientRegistration
from catalog_auth.adapters.outbound.persistence.models.base_model import utcnow
from catalog_auth.application.ports.outbound import IClientRepository
from catalog_auth.domain.models.client_domain_model import Client as DomainClient
from catalog_auth.domain.exceptions import (
    DatabaseOperationException,
    ResourceAlreadyExistsException,
)


class AsyncClientRepository(AsyncRepositoryBase[ClientRegistration], IClientRepository):
    """
    Async repository for the ClientRegistration entity.
    """

    async def _get_row(self, db: AsyncSession, client_id: str) -> Optional[ClientRegistration]:
        return await self.get_by_field(db, "client_id", client_id)

    async def get_by_client_id(self, db: AsyncSession, client_id: str) -> Optional[DomainClient]:
        row = await self._get_row(db, client_id)
        return self.to_domain(row) if row else None

    async def get_secret_hash(self, db: AsyncSession, client_id: str) -> Optional[str]:
        row = await self._get_row(db, client_id)
        return row.client_secret_hash if row else None

    async def create(self, db: AsyncSession, client: DomainClient, secret_hash: str) -> DomainClient:
        """
        Insert a new client registration.

        Raises:
            ResourceAlreadyExistsException: If the client_id is already taken
            DatabaseOperationException: In case of database error
        """
        try:
            row = ClientRegistration(
                client_id=client.client_id,
                client_secret_hash=secret_hash,
                secret_hint=client.secret_hint,
                name=client.name,
                scopes=list(client.legacy_scopes),
                registered_by=client.registered_by,
            )
            db.add(row)
            await db.flush()
            self.logger.info(f"Client registered: {client.client_id}")
            return self.to_domain(row)

        except IntegrityError as e:
            await db.rollback()
            self.logger.warning(f"Duplicate client registration: {client.client_id}")
            raise ResourceAlreadyExistsException(
                detail="Client already exists", resource_id=client.client_id
            ) from e

        except SQLAlchemyError as e:
            await db.rollback()
            self.logger.error(f"Error creating client: {str(e)}")
            raise DatabaseOperationException(detail="Error creating client", original_error=e)

    async def update(
            self, db: AsyncSession, client_id: str, *, name: Optional[str] = None,
            scopes: Optional[List[str]] = None,
    ) -> Optional[DomainClient]:
        try:
            row = await self._get_row(db, client_id)
            if row is None:
                return None
            if name is not None:
                row.name = name
            if scopes is not None:
                row.scopes = list(scopes)
            row.updated_at = utcnow()
            await db.flush()
            return self.to_domain(row)

        except SQLAlchemyError as e:
            await db.rollback()
            self.logger.error(f"Error updating client '{client_id}': {str(e)}")
            raise DatabaseOperationException(detail="Error updating client", original_error=e)

    async def update_secret(self, db: AsyncSession, client_id: str, secret_hash: str, hint: str) -> bool:
        try:
            row = await self._get_row(db, client_id)
            if row is None:
                return False
            row.client_secret_hash = secret_hash
            row.secret_hint = hint
            row.updated_at = utcnow()
            await db.flush()
            return True

        except SQLAlchemyError as e:
            await db.rollback()
            self.logger.error(f"Error updating client secret key: {str(e)}")
            raise DatabaseOperationException(detail="Error updating client secret key", original_error=e)

    async def delete(self, db: AsyncSession, client_id: str) -> bool:
        row = await self._get_row(db, client_id)
        if row is None:
            return False
        await self.remove_obj(db, row)
        return True

    async def list(self, db: AsyncSession) -> List[DomainClient]:
        rows = await self.get_multi(db, order_by=ClientRegistration.created_at)
        return [self.to_domain(row) for row in rows]

    async def count(self, db: AsyncSession) -> int:
        return await self.count_rows(db)

    def to_domain(self, db_model: ClientRegistration) -> DomainClient:
        """Convert database model to domain model."""
        return DomainClient(
            client_id=db_model.client_id,
            name=db_model.name,
            legacy_scopes=list(db_model.scopes or []),
            registered_by=db_model.registered_by,
            secret_hint=db_model.secret_hint,
            created_at=db_model.created_at,
            updated_at=db_model.updated_at,
        )


# Public instance to be used by use cases
client_repository = AsyncClientRepository(ClientRegistration)
