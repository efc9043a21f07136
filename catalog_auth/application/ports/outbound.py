# catalog_auth/application/ports/outbound.py

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from catalog_auth.domain.models.client_domain_model import Client
from catalog_auth.domain.models.application_domain_model import (
    Application,
    ApplicationComponent,
    ClientApplicationPermission,
)


class IClientRepository(ABC):
    """Client registry persistence."""

    @abstractmethod
    async def get_by_client_id(self, db: AsyncSession, client_id: str) -> Optional[Client]:
        """Get client by client_id."""

    @abstractmethod
    async def get_secret_hash(self, db: AsyncSession, client_id: str) -> Optional[str]:
        """Get the stored secret hash for a client."""

    @abstractmethod
    async def create(self, db: AsyncSession, client: Client, secret_hash: str) -> Client:
        """Insert a new client."""

    @abstractmethod
    async def update(
            self, db: AsyncSession, client_id: str, *, name: Optional[str] = None,
            scopes: Optional[List[str]] = None,
    ) -> Optional[Client]:
        """Replace name and/or legacy scopes. Returns None when the client is absent."""

    @abstractmethod
    async def update_secret(self, db: AsyncSession, client_id: str, secret_hash: str, hint: str) -> bool:
        """Replace the stored secret."""

    @abstractmethod
    async def delete(self, db: AsyncSession, client_id: str) -> bool:
        """Hard delete a client."""

    @abstractmethod
    async def list(self, db: AsyncSession) -> List[Client]:
        """List every client."""

    @abstractmethod
    async def count(self, db: AsyncSession) -> int:
        """Number of registered clients."""


class IApplicationRepository(ABC):
    """Applications, component memberships and client permissions."""

    @abstractmethod
    async def create(self, db: AsyncSession, data: Dict[str, Any]) -> Application:
        pass

    @abstractmethod
    async def get(self, db: AsyncSession, application_id: str) -> Optional[Application]:
        pass

    @abstractmethod
    async def list(self, db: AsyncSession) -> List[Application]:
        pass

    @abstractmethod
    async def update(self, db: AsyncSession, application_id: str, data: Dict[str, Any]) -> Optional[Application]:
        pass

    @abstractmethod
    async def delete(self, db: AsyncSession, application_id: str) -> bool:
        pass

    @abstractmethod
    async def add_component(self, db: AsyncSession, application_id: str, data: Dict[str, Any]) -> ApplicationComponent:
        pass

    @abstractmethod
    async def remove_component(
            self, db: AsyncSession, application_id: str, component_type: str, component_id: str
    ) -> bool:
        pass

    @abstractmethod
    async def list_components(self, db: AsyncSession, application_id: str) -> List[ApplicationComponent]:
        pass

    @abstractmethod
    async def upsert_permission(
            self, db: AsyncSession, application_id: str, client_id: str,
            component_scopes: List[str], granted_by: Optional[str],
    ) -> ClientApplicationPermission:
        """Insert or fully replace the (client, application) permission row."""

    @abstractmethod
    async def delete_permission(self, db: AsyncSession, application_id: str, client_id: str) -> bool:
        pass

    @abstractmethod
    async def get_permission_by_application_name(
            self, db: AsyncSession, client_id: str, application_name: str
    ) -> Optional[ClientApplicationPermission]:
        pass

    @abstractmethod
    async def list_permissions_for_client(self, db: AsyncSession, client_id: str) -> List[ClientApplicationPermission]:
        pass

    @abstractmethod
    async def list_permissions_for_application(
            self, db: AsyncSession, application_id: str
    ) -> List[ClientApplicationPermission]:
        pass
