# catalog_auth/adapters/outbound/security/permissions.py

from typing import Optional

from fastapi import Depends, Header, Security

from catalog_auth.adapters.inbound.api.deps import authorization_header, get_container
from catalog_auth.container import ServiceContainer
from catalog_auth.domain.models.token_domain_model import AccessTokenIdentity


def require_scope(scope: str):
    """
    Returns a dependency that validates the bearer token and requires one scope.

    Usage:
        @router.get(..., dependencies=[Depends(require_scope("client.read"))])
    """

    async def scope_checker(
            authorization: Optional[str] = Security(authorization_header),
            container: ServiceContainer = Depends(get_container),
    ) -> AccessTokenIdentity:
        return await container.verifier.verify_token(authorization, scope)

    return scope_checker


async def require_access_token(
        authorization: Optional[str] = Security(authorization_header),
        container: ServiceContainer = Depends(get_container),
) -> AccessTokenIdentity:
    """Any valid access token for this service, whatever its scopes."""
    return await container.verifier.verify_access_token(authorization)


async def require_management_client(
        x_admin_client_id: Optional[str] = Header(None),
        x_admin_client_secret: Optional[str] = Header(None),
        container: ServiceContainer = Depends(get_container),
) -> str:
    """
    Validates the environment-configured management identity sent as
    X-Admin-Client-Id / X-Admin-Client-Secret.
    """
    return container.management.verify(x_admin_client_id, x_admin_client_secret)
