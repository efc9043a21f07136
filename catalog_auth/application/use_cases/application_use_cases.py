# catalog_auth/application/use_cases/application_use_cases.py

"""
Service for applications, their components and client permissions.
"""

import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from catalog_auth.adapters.outbound.persistence.repositories.application_repository import application_repository
from catalog_auth.adapters.outbound.persistence.repositories.client_repository import client_repository
from catalog_auth.application.ports.inbound import IApplicationUseCase
from catalog_auth.application.ports.outbound import IApplicationRepository, IClientRepository
from catalog_auth.domain.exceptions import InvalidInputException, ResourceNotFoundException
from catalog_auth.domain.models.application_domain_model import (
    Application,
    ApplicationComponent,
    ApplicationDetails,
    ClientApplicationPermission,
    ComponentType,
)

logger = logging.getLogger(__name__)


class AsyncApplicationService(IApplicationUseCase):
    """
    Application and permission registry.

    A permission row holds the component scopes one client has on one
    application. Granting replaces the row; revoking deletes it.
    """

    def __init__(
            self, db_session: AsyncSession,
            applications: IApplicationRepository = application_repository,
            clients: IClientRepository = client_repository,
    ):
        self.db_session = db_session
        self.applications = applications
        self.clients = clients

    async def _require_application(self, application_id: str) -> Application:
        application = await self.applications.get(self.db_session, application_id)
        if application is None:
            raise ResourceNotFoundException(detail="Application not found", resource_id=application_id)
        return application

    # ─── Applications ────────────────────────────────────────────────────────

    async def create_application(
            self, name: str, display_name: str, description: Optional[str] = None,
            created_by: Optional[str] = None,
    ) -> Application:
        application = await self.applications.create(self.db_session, {
            "name": name,
            "display_name": display_name,
            "description": description,
            "created_by": created_by,
        })
        logger.info(f"Application {name} created by {created_by}")
        return application

    async def list_applications(self) -> List[Application]:
        return await self.applications.list(self.db_session)

    async def get_application_details(self, application_id: str) -> ApplicationDetails:
        application = await self._require_application(application_id)
        return ApplicationDetails(
            application=application,
            components=await self.applications.list_components(self.db_session, application_id),
            client_permissions=await self.applications.list_permissions_for_application(
                self.db_session, application_id
            ),
        )

    async def update_application(
            self, application_id: str, display_name: Optional[str] = None, description: Optional[str] = None
    ) -> Application:
        application = await self.applications.update(self.db_session, application_id, {
            "display_name": display_name,
            "description": description,
        })
        if application is None:
            raise ResourceNotFoundException(detail="Application not found", resource_id=application_id)
        return application

    async def delete_application(self, application_id: str) -> None:
        if not await self.applications.delete(self.db_session, application_id):
            raise ResourceNotFoundException(detail="Application not found", resource_id=application_id)
        logger.info(f"Application {application_id} deleted")

    # ─── Components ──────────────────────────────────────────────────────────

    async def add_component(
            self, application_id: str, component_type: str, component_id: str,
            component_name: str, scopes: List[str],
    ) -> ApplicationComponent:
        try:
            component_type = ComponentType(component_type)
        except ValueError:
            raise InvalidInputException(f"Invalid component_type: {component_type}")

        await self._require_application(application_id)
        return await self.applications.add_component(self.db_session, application_id, {
            "component_type": component_type,
            "component_id": component_id,
            "component_name": component_name,
            "scopes": list(dict.fromkeys(scopes or [])),
        })

    async def remove_component(self, application_id: str, component_type: str, component_id: str) -> None:
        removed = await self.applications.remove_component(
            self.db_session, application_id, component_type, component_id
        )
        if not removed:
            raise ResourceNotFoundException(detail="Component not found", resource_id=component_id)

    async def list_components(self, application_id: str) -> List[ApplicationComponent]:
        await self._require_application(application_id)
        return await self.applications.list_components(self.db_session, application_id)

    # ─── Permissions ─────────────────────────────────────────────────────────

    async def grant(
            self, application_id: str, client_id: str, component_scopes: List[str],
            granted_by: Optional[str] = None,
    ) -> ClientApplicationPermission:
        await self._require_application(application_id)
        if await self.clients.get_by_client_id(self.db_session, client_id) is None:
            raise ResourceNotFoundException(detail="Client not found", resource_id=client_id)

        permission = await self.applications.upsert_permission(
            self.db_session, application_id, client_id,
            list(dict.fromkeys(component_scopes or [])), granted_by,
        )
        logger.info(f"Granted {permission.component_scopes} to {client_id} on {application_id} by {granted_by}")
        return permission

    async def revoke(self, application_id: str, client_id: str) -> bool:
        """Delete the grant. Revoking a grant that does not exist is a no-op (returns False)."""
        removed = await self.applications.delete_permission(self.db_session, application_id, client_id)
        if removed:
            logger.info(f"Revoked permissions of {client_id} on {application_id}")
        return removed

    async def get_permission(self, application_id: str, client_id: str) -> ClientApplicationPermission:
        await self._require_application(application_id)
        permissions = await self.applications.list_permissions_for_client(self.db_session, client_id)
        for permission in permissions:
            if permission.application_id == application_id:
                return permission
        raise ResourceNotFoundException(detail="Permission not found", resource_id=client_id)

    async def has_scope(self, client_id: str, application_name: str, required_scope: str) -> bool:
        permission = await self.applications.get_permission_by_application_name(
            self.db_session, client_id, application_name
        )
        return permission is not None and required_scope in permission.component_scopes

    async def all_scopes_for(self, client_id: str, application_name: str) -> List[str]:
        permission = await self.applications.get_permission_by_application_name(
            self.db_session, client_id, application_name
        )
        return list(permission.component_scopes) if permission else []

    async def all_permissions_for(self, client_id: str) -> List[ClientApplicationPermission]:
        return await self.applications.list_permissions_for_client(self.db_session, client_id)
