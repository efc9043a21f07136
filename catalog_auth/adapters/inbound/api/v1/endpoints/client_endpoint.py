# catalog_auth/adapters/inbound/api/v1/endpoints/client_endpoint.py

"""
Client registry endpoints.

Every route requires a bearer token carrying client.read or client.write.
"""

import logging

from fastapi import APIRouter, Depends, Path, status
from fastapi.responses import JSONResponse

from catalog_auth.adapters.inbound.api.deps import get_application_service, get_client_service
from catalog_auth.adapters.outbound.security.permissions import require_scope
from catalog_auth.application.dtos.application_dto import MessageResponse, PermissionListResponse, PermissionOutput
from catalog_auth.application.dtos.client_dto import (
    ClientListResponse,
    ClientOutput,
    ClientRegisterRequest,
    ClientRegisterResponse,
    ClientRegistrationStatus,
    ClientScopesOutput,
    ClientSecretInfo,
    ClientSecretResetResponse,
    ClientUpdateRequest,
    ClientUpdateResponse,
)
from catalog_auth.application.use_cases import AsyncApplicationService, AsyncClientService
from catalog_auth.domain.models.token_domain_model import AccessTokenIdentity

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    response_model=ClientRegisterResponse,
    summary="Register a client",
    description=(
        "Creates the client and returns its secret (shown only once). "
        "Re-registering an existing client replaces its scopes when scopes are given (200) "
        "and is rejected otherwise (409)."
    ),
    responses={
        200: {"model": ClientRegistrationStatus, "description": "Existing client, scopes replaced"},
        409: {"model": ClientRegistrationStatus, "description": "Existing client, unchanged"},
    },
)
async def register_client(
        body: ClientRegisterRequest,
        identity: AccessTokenIdentity = Depends(require_scope("client.write")),
        client_service: AsyncClientService = Depends(get_client_service),
):
    result = await client_service.register(body.server_id, body.name, body.scopes, registered_by=identity.client_id)
    client = result.client

    if not result.is_new:
        if body.scopes:
            content = ClientRegistrationStatus(
                message="Client updated", client_id=client.client_id, scopes=client.legacy_scopes
            )
            return JSONResponse(status_code=status.HTTP_200_OK, content=content.model_dump(by_alias=True, exclude_none=True))

        content = ClientRegistrationStatus(
            error="Client already exists", client_id=client.client_id, scopes=client.legacy_scopes
        )
        return JSONResponse(status_code=status.HTTP_409_CONFLICT, content=content.model_dump(by_alias=True, exclude_none=True))

    logger.info(f"Registered server: {client.name} ({client.client_id}) by {identity.client_id}")
    return ClientRegisterResponse(
        server_id=body.server_id,
        client_id=client.client_id,
        client_secret=result.client_secret,
        scopes=client.legacy_scopes,
    )


@router.get("", response_model=ClientListResponse, summary="List clients")
async def list_clients(
        _: AccessTokenIdentity = Depends(require_scope("client.read")),
        client_service: AsyncClientService = Depends(get_client_service),
):
    clients = await client_service.list_clients()
    return ClientListResponse(servers=[
        ClientOutput(
            server_id=c.client_id,
            name=c.name,
            scopes=c.legacy_scopes,
            created_at=c.created_at,
            registered_by=c.registered_by,
        )
        for c in clients
    ])


@router.patch("/{client_id}", response_model=ClientUpdateResponse, summary="Update a client")
async def update_client(
        body: ClientUpdateRequest,
        client_id: str = Path(..., min_length=1),
        _: AccessTokenIdentity = Depends(require_scope("client.write")),
        client_service: AsyncClientService = Depends(get_client_service),
):
    client = await client_service.update_client(client_id, name=body.name, scopes=body.global_scopes)
    return ClientUpdateResponse(client=ClientScopesOutput(client_id=client.client_id, scopes=client.legacy_scopes))


@router.get(
    "/{client_id}/secret",
    response_model=ClientSecretInfo,
    summary="Secret metadata",
    description="Secrets are stored hashed: returns the last characters and the last rotation time.",
)
async def get_client_secret(
        client_id: str = Path(..., min_length=1),
        _: AccessTokenIdentity = Depends(require_scope("client.read")),
        client_service: AsyncClientService = Depends(get_client_service),
):
    client = await client_service.get_client(client_id)
    return ClientSecretInfo(client_id=client.client_id, secret_hint=client.secret_hint, updated_at=client.updated_at)


@router.post("/{client_id}/secret", response_model=ClientSecretResetResponse, summary="Reset the client secret")
async def reset_client_secret(
        client_id: str = Path(..., min_length=1),
        identity: AccessTokenIdentity = Depends(require_scope("client.write")),
        client_service: AsyncClientService = Depends(get_client_service),
):
    client, secret = await client_service.reset_secret(client_id)
    logger.info(f"Secret of {client_id} reset by {identity.client_id}")
    return ClientSecretResetResponse(client_id=client.client_id, secret=secret)


@router.delete("/{client_id}", response_model=MessageResponse, summary="Delete a client")
async def delete_client(
        client_id: str = Path(..., min_length=1),
        identity: AccessTokenIdentity = Depends(require_scope("client.write")),
        client_service: AsyncClientService = Depends(get_client_service),
):
    await client_service.delete_client(client_id)
    logger.info(f"Client {client_id} deleted by {identity.client_id}")
    return MessageResponse(message="Client deleted successfully")


@router.get("/{client_id}/permissions", response_model=PermissionListResponse, summary="Application grants of a client")
async def list_client_permissions(
        client_id: str = Path(..., min_length=1),
        _: AccessTokenIdentity = Depends(require_scope("admin.read")),
        application_service: AsyncApplicationService = Depends(get_application_service),
):
    permissions = await application_service.all_permissions_for(client_id)
    return PermissionListResponse(permissions=[PermissionOutput.model_validate(p) for p in permissions])
