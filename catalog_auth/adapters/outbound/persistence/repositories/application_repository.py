# catalog_auth/adapters/outbound/persistence/repositories/application_repository.py

"""
Repository for applications, component memberships and client permissions.
"""

import uuid
from typing import Any, Dict, List, Optional
from sqlalchemy import delete
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.future import select

from catalog_auth.adapters.outbound.persistence.repositories.base_repository import AsyncRepositoryBase
from catalog_auth.adapters.outbound.persistence.models import (
    Application,
    ApplicationComponent,
    ApplicationClientPermission,
)
from catalog_auth.adapters.outbound.persistence.models.base_model import utcnow
from catalog_auth.application.ports.outbound import IApplicationRepository
from catalog_auth.domain.models import application_domain_model as domain
from catalog_auth.domain.exceptions import (
    DatabaseOperationException,
    ResourceAlreadyExistsException,
)

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class AsyncApplicationRepository(AsyncRepositoryBase[Application], IApplicationRepository):
    """
    Async repository for applications and everything hanging off them.
    """

    # ─── Applications ────────────────────────────────────────────────────────

    async def create(self, db: AsyncSession, data: Dict[str, Any]) -> domain.Application:
        try:
            row = Application(
                name=data["name"],
                display_name=data["display_name"],
                description=data.get("description"),
                created_by=data.get("created_by"),
            )
            db.add(row)
            await db.flush()
            self.logger.info(f"Application created: {row.name} ({row.id})")
            return self.to_domain(row)

        except IntegrityError as e:
            await db.rollback()
            raise ResourceAlreadyExistsException(
                detail="Application with this name already exists", resource_id=data.get("name")
            ) from e

        except SQLAlchemyError as e:
            await db.rollback()
            self.logger.error(f"Error creating application: {str(e)}")
            raise DatabaseOperationException(detail="Error creating application", original_error=e)

    async def get(self, db: AsyncSession, application_id: str) -> Optional[domain.Application]:
        row = await self.get_by_field(db, "id", application_id)
        return self.to_domain(row) if row else None

    async def list(self, db: AsyncSession) -> List[domain.Application]:
        rows = await self.get_multi(db, order_by=Application.created_at.desc())
        return [self.to_domain(row) for row in rows]

    async def update(self, db: AsyncSession, application_id: str, data: Dict[str, Any]) -> Optional[domain.Application]:
        """Update display_name/description; None values keep the stored value."""
        try:
            row = await self.get_by_field(db, "id", application_id)
            if row is None:
                return None
            for field in ("display_name", "description"):
                if data.get(field) is not None:
                    setattr(row, field, data[field])
            row.updated_at = utcnow()
            await db.flush()
            return self.to_domain(row)

        except SQLAlchemyError as e:
            await db.rollback()
            self.logger.error(f"Error updating application {application_id}: {str(e)}")
            raise DatabaseOperationException(detail="Error updating application", original_error=e)

    async def delete(self, db: AsyncSession, application_id: str) -> bool:
        row = await self.get_by_field(db, "id", application_id)
        if row is None:
            return False
        await self.remove_obj(db, row)
        return True

    # ─── Components ──────────────────────────────────────────────────────────

    async def add_component(
            self, db: AsyncSession, application_id: str, data: Dict[str, Any]
    ) -> domain.ApplicationComponent:
        try:
            row = ApplicationComponent(
                application_id=application_id,
                component_type=getattr(data["component_type"], "value", data["component_type"]),
                component_id=data["component_id"],
                component_name=data["component_name"],
                scopes=list(data.get("scopes") or []),
            )
            db.add(row)
            await db.flush()
            return self.component_to_domain(row)

        except IntegrityError as e:
            await db.rollback()
            raise ResourceAlreadyExistsException(
                detail="Component already exists in this application", resource_id=data.get("component_id")
            ) from e

        except SQLAlchemyError as e:
            await db.rollback()
            self.logger.error(f"Error adding component to application {application_id}: {str(e)}")
            raise DatabaseOperationException(detail="Error adding component", original_error=e)

    async def remove_component(
            self, db: AsyncSession, application_id: str, component_type: str, component_id: str
    ) -> bool:
        try:
            result = await db.execute(
                delete(ApplicationComponent).where(
                    ApplicationComponent.application_id == application_id,
                    ApplicationComponent.component_type == component_type,
                    ApplicationComponent.component_id == component_id,
                )
            )
            return result.rowcount > 0
        except SQLAlchemyError as e:
            await db.rollback()
            self.logger.error(f"Error removing component {component_id}: {str(e)}")
            raise DatabaseOperationException(detail="Error removing component", original_error=e)

    async def list_components(self, db: AsyncSession, application_id: str) -> List[domain.ApplicationComponent]:
        try:
            result = await db.execute(
                select(ApplicationComponent)
                .where(ApplicationComponent.application_id == application_id)
                .order_by(ApplicationComponent.component_type, ApplicationComponent.component_name)
            )
            return [self.component_to_domain(row) for row in result.scalars().all()]
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing components of {application_id}: {str(e)}")
            raise DatabaseOperationException(detail="Error listing components", original_error=e)

    # ─── Client permissions ──────────────────────────────────────────────────

    async def upsert_permission(
            self, db: AsyncSession, application_id: str, client_id: str,
            component_scopes: List[str], granted_by: Optional[str],
    ) -> domain.ClientApplicationPermission:
        """
        Single INSERT ... ON CONFLICT (client_id, application_id) DO UPDATE.

        The conflict branch overwrites component_scopes; it never merges.
        """
        dialect = db.get_bind().dialect.name
        insert = _UPSERT_DIALECTS.get(dialect)
        if insert is None:
            raise DatabaseOperationException(detail=f"Permission upsert is not supported on {dialect}")

        now = utcnow()
        table = ApplicationClientPermission.__table__
        stmt = insert(table).values(
            id=str(uuid.uuid4()),
            client_id=client_id,
            application_id=application_id,
            component_scopes=list(component_scopes),
            granted_by=granted_by,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[table.c.client_id, table.c.application_id],
            set_={
                "component_scopes": stmt.excluded.component_scopes,
                "granted_by": stmt.excluded.granted_by,
                "updated_at": stmt.excluded.updated_at,
            },
        ).returning(*table.c)

        try:
            result = await db.execute(stmt)
            row = result.mappings().one()
        except SQLAlchemyError as e:
            await db.rollback()
            self.logger.error(f"Error granting permission to {client_id} on {application_id}: {str(e)}")
            raise DatabaseOperationException(detail="Error granting permission", original_error=e)

        return domain.ClientApplicationPermission(
            id=row["id"],
            client_id=row["client_id"],
            application_id=row["application_id"],
            component_scopes=list(row["component_scopes"] or []),
            granted_by=row["granted_by"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    async def delete_permission(self, db: AsyncSession, application_id: str, client_id: str) -> bool:
        try:
            result = await db.execute(
                delete(ApplicationClientPermission).where(
                    ApplicationClientPermission.application_id == application_id,
                    ApplicationClientPermission.client_id == client_id,
                )
            )
            return result.rowcount > 0
        except SQLAlchemyError as e:
            await db.rollback()
            self.logger.error(f"Error revoking permission of {client_id} on {application_id}: {str(e)}")
            raise DatabaseOperationException(detail="Error revoking permission", original_error=e)

    async def get_permission_by_application_name(
            self, db: AsyncSession, client_id: str, application_name: str
    ) -> Optional[domain.ClientApplicationPermission]:
        try:
            result = await db.execute(
                select(ApplicationClientPermission)
                .join(Application, Application.id == ApplicationClientPermission.application_id)
                .where(
                    ApplicationClientPermission.client_id == client_id,
                    Application.name == application_name,
                )
                .execution_options(populate_existing=True)
            )
            row = result.scalar_one_or_none()
            return self.permission_to_domain(row) if row else None
        except SQLAlchemyError as e:
            self.logger.error(f"Error fetching permission of {client_id} on {application_name}: {str(e)}")
            raise DatabaseOperationException(detail="Error fetching permission", original_error=e)

    async def list_permissions_for_client(
            self, db: AsyncSession, client_id: str
    ) -> List[domain.ClientApplicationPermission]:
        return await self._list_permissions(db, ApplicationClientPermission.client_id == client_id)

    async def list_permissions_for_application(
            self, db: AsyncSession, application_id: str
    ) -> List[domain.ClientApplicationPermission]:
        return await self._list_permissions(db, ApplicationClientPermission.application_id == application_id)

    async def _list_permissions(self, db: AsyncSession, criterion) -> List[domain.ClientApplicationPermission]:
        try:
            result = await db.execute(
                select(ApplicationClientPermission)
                .where(criterion)
                .order_by(ApplicationClientPermission.created_at)
                .execution_options(populate_existing=True)
            )
            return [self.permission_to_domain(row) for row in result.scalars().all()]
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing permissions: {str(e)}")
            raise DatabaseOperationException(detail="Error listing permissions", original_error=e)

    # ─── Mapping ─────────────────────────────────────────────────────────────

    def to_domain(self, db_model: Application) -> domain.Application:
        return domain.Application(
            id=db_model.id,
            name=db_model.name,
            display_name=db_model.display_name,
            description=db_model.description,
            created_by=db_model.created_by,
            created_at=db_model.created_at,
            updated_at=db_model.updated_at,
        )

    @staticmethod
    def component_to_domain(db_model: ApplicationComponent) -> domain.ApplicationComponent:
        return domain.ApplicationComponent(
            id=db_model.id,
            application_id=db_model.application_id,
            component_type=domain.ComponentType(db_model.component_type),
            component_id=db_model.component_id,
            component_name=db_model.component_name,
            scopes=list(db_model.scopes or []),
            created_at=db_model.created_at,
        )

    @staticmethod
    def permission_to_domain(db_model: ApplicationClientPermission) -> domain.ClientApplicationPermission:
        return domain.ClientApplicationPermission(
            id=db_model.id,
            client_id=db_model.client_id,
            application_id=db_model.application_id,
            component_scopes=list(db_model.component_scopes or []),
            granted_by=db_model.granted_by,
            created_at=db_model.created_at,
            updated_at=db_model.updated_at,
        )


# Public instance to be used by use cases
application_repository = AsyncApplicationRepository(Application)
