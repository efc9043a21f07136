# catalog_auth/adapters/inbound/api/v1/endpoints/auth_endpoint.py

"""
Token service endpoints: token issuance, key publication and
operational routes.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form, Query

from catalog_auth.adapters.inbound.api.deps import get_container, get_scope_resolver, get_token_service
from catalog_auth.adapters.outbound.security.permissions import require_access_token, require_management_client
from catalog_auth.application.dtos.token_dto import (
    HealthResponse,
    JWKSResponse,
    ReloadResponse,
    ScopeCheck,
    ScopesResponse,
    TokenResponse,
)
from catalog_auth.application.use_cases import AsyncClientService, AsyncScopeResolver, AsyncTokenService
from catalog_auth.container import ServiceContainer
from catalog_auth.domain.exceptions import DatabaseOperationException
from catalog_auth.domain.models.token_domain_model import AccessTokenIdentity

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/token",
    response_model=TokenResponse,
    summary="Client credentials grant",
    description="Exchanges client_id/client_secret for a signed access token bound to an audience.",
    responses={
        400: {"description": "invalid_request, invalid_scope or unsupported_grant_type"},
        401: {"description": "invalid_client"},
        500: {"description": "server_error (signing key missing or signing failed)"},
    },
)
async def issue_token(
        grant_type: Optional[str] = Form(None),
        client_id: Optional[str] = Form(None),
        client_secret: Optional[str] = Form(None),
        audience: Optional[str] = Form(None),
        scope: Optional[str] = Form(None),
        token_service: AsyncTokenService = Depends(get_token_service),
):
    issued = await token_service.issue(grant_type, client_id, client_secret, audience, scope)
    return TokenResponse(
        access_token=issued.access_token,
        token_type=issued.token_type,
        expires_in=issued.expires_in,
        scope=issued.scope,
    )


@router.get("/.well-known/jwks.json", response_model=JWKSResponse, summary="Public signing keys")
async def jwks(container: ServiceContainer = Depends(get_container)):
    return container.key_manager.jwks()


@router.get("/auth/health", response_model=HealthResponse, summary="Token service health")
async def health(container: ServiceContainer = Depends(get_container)):
    registered_clients = None
    database = "unavailable"
    if await container.database.ping():
        database = "ok"
        try:
            async with container.database.session() as db:
                client_service = AsyncClientService(db, admin_override=container.admin_override)
                registered_clients = await client_service.count_clients()
        except DatabaseOperationException as e:
            logger.warning(f"Health check could not count clients: {e.detail}")
            database = "degraded"

    key_manager = container.key_manager
    healthy = key_manager.is_configured and database == "ok"
    return HealthResponse(
        status="ok" if healthy else "degraded",
        key_loaded=key_manager.is_configured,
        kid=key_manager.kid,
        key_error=key_manager.load_error,
        registered_clients=registered_clients,
        database=database,
    )


@router.get(
    "/auth/scopes",
    response_model=ScopesResponse,
    summary="Scopes held by the caller",
    description=(
        "Returns the scopes in the caller's token, its legacy scopes and its application grants. "
        "With application and scope, also evaluates that single check."
    ),
)
async def my_scopes(
        application: Optional[str] = Query(None, description="Application name to check against"),
        scope: Optional[str] = Query(None, description="Scope to check"),
        identity: AccessTokenIdentity = Depends(require_access_token),
        scope_resolver: AsyncScopeResolver = Depends(get_scope_resolver),
        container: ServiceContainer = Depends(get_container),
):
    if container.admin_override.is_admin(identity.client_id):
        # The admin override is not in the registry
        legacy_scopes = list(identity.scopes)
    else:
        # Clients deleted after issuance keep a valid token but hold nothing
        legacy_scopes = await scope_resolver.legacy_scopes(identity.client_id) or []
    display = await scope_resolver.display_scopes(identity.client_id, legacy_scopes)

    check = None
    if application and scope:
        allowed = await scope_resolver.verify_application_scope(
            identity.client_id, application, scope, legacy_scopes=legacy_scopes
        )
        check = ScopeCheck(application=application, scope=scope, allowed=allowed)

    return ScopesResponse(
        client_id=identity.client_id,
        token_scopes=identity.scopes,
        legacy_scopes=display.legacy,
        application_scopes=display.by_application,
        all_scopes=display.all,
        check=check,
    )


@router.post("/admin/reload", response_model=ReloadResponse, summary="Drop cached key material")
async def reload(
        management_client: str = Depends(require_management_client),
        container: ServiceContainer = Depends(get_container),
):
    container.jwks_provider.clear_cache()
    if container.token_client is not None:
        container.token_client.clear_cache()
    logger.info(f"Caches reloaded by management client {management_client}")
    return ReloadResponse(message="Reloaded", reloaded_by=management_client)
