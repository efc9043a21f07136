# catalog_auth/application/ports/inbound.py

from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from catalog_auth.domain.models.client_domain_model import AuthenticatedClient, Client, RegisteredClient
from catalog_auth.domain.models.application_domain_model import (
    Application,
    ApplicationComponent,
    ApplicationDetails,
    ClientApplicationPermission,
)
from catalog_auth.domain.models.token_domain_model import IssuedToken
from catalog_auth.domain.services.scope_service import DisplayScopes, IssuableScopes


class IClientUseCase(ABC):
    """Interface for client registry use cases."""

    @abstractmethod
    async def register(
            self, client_id: str, name: str, scopes: List[str], registered_by: Optional[str] = None
    ) -> RegisteredClient:
        """Create the client, or replace its scopes when non-empty scopes are given."""

    @abstractmethod
    async def authenticate(self, client_id: str, client_secret: str) -> AuthenticatedClient:
        """Check credentials and return the client identity."""

    @abstractmethod
    async def get_client(self, client_id: str) -> Client:
        pass

    @abstractmethod
    async def reset_secret(self, client_id: str) -> Tuple[Client, str]:
        """Replace the secret. Returns the new plaintext once."""

    @abstractmethod
    async def update_client(
            self, client_id: str, name: Optional[str] = None, scopes: Optional[List[str]] = None
    ) -> Client:
        pass

    @abstractmethod
    async def delete_client(self, client_id: str) -> None:
        pass

    @abstractmethod
    async def list_clients(self) -> List[Client]:
        pass


class IApplicationUseCase(ABC):
    """Interface for application and permission registry use cases."""

    @abstractmethod
    async def create_application(
            self, name: str, display_name: str, description: Optional[str] = None,
            created_by: Optional[str] = None,
    ) -> Application:
        pass

    @abstractmethod
    async def get_application_details(self, application_id: str) -> ApplicationDetails:
        pass

    @abstractmethod
    async def add_component(
            self, application_id: str, component_type: str, component_id: str,
            component_name: str, scopes: List[str],
    ) -> ApplicationComponent:
        pass

    @abstractmethod
    async def grant(
            self, application_id: str, client_id: str, component_scopes: List[str],
            granted_by: Optional[str] = None,
    ) -> ClientApplicationPermission:
        """Upsert; an existing grant is replaced entirely."""

    @abstractmethod
    async def revoke(self, application_id: str, client_id: str) -> bool:
        pass

    @abstractmethod
    async def has_scope(self, client_id: str, application_name: str, required_scope: str) -> bool:
        pass

    @abstractmethod
    async def all_scopes_for(self, client_id: str, application_name: str) -> List[str]:
        pass

    @abstractmethod
    async def all_permissions_for(self, client_id: str) -> List[ClientApplicationPermission]:
        pass


class IScopeResolver(ABC):
    """The two scope merges, kept as separate operations."""

    @abstractmethod
    def issuable_scopes(self, client: AuthenticatedClient, requested: List[str]) -> IssuableScopes:
        """Requested scopes narrowed to the client's legacy scopes."""

    @abstractmethod
    async def display_scopes(self, client_id: str, legacy_scopes: List[str]) -> DisplayScopes:
        """Legacy scopes plus every application grant."""

    @abstractmethod
    async def verify_application_scope(self, client_id: str, application_name: str, scope: str) -> bool:
        """Legacy scope or application grant."""


class ITokenIssuer(ABC):

    @abstractmethod
    async def issue(
            self, grant_type: Optional[str], client_id: Optional[str], client_secret: Optional[str],
            audience: Optional[str], scope: Optional[str] = None,
    ) -> IssuedToken:
        """Run the client-credentials grant."""
