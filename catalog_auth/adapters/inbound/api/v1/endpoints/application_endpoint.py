# catalog_auth/adapters/inbound/api/v1/endpoints/application_endpoint.py

"""
Application, component membership and client permission endpoints.

Reads require admin.read, writes require admin.write.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Path, status

from catalog_auth.adapters.inbound.api.deps import get_application_service
from catalog_auth.adapters.outbound.security.permissions import require_scope
from catalog_auth.application.dtos.application_dto import (
    ApplicationCreate,
    ApplicationDetailsOutput,
    ApplicationDetailsResponse,
    ApplicationListResponse,
    ApplicationOutput,
    ApplicationResponse,
    ApplicationUpdate,
    ComponentCreate,
    ComponentListResponse,
    ComponentOutput,
    ComponentResponse,
    MessageResponse,
    PermissionGrant,
    PermissionOutput,
    PermissionResponse,
)
from catalog_auth.application.use_cases import AsyncApplicationService
from catalog_auth.domain.models.token_domain_model import AccessTokenIdentity

logger = logging.getLogger(__name__)

router = APIRouter()

read_access = require_scope("admin.read")
write_access = require_scope("admin.write")


def _components(components) -> List[ComponentOutput]:
    return [ComponentOutput.model_validate(c) for c in components]


# ─── Applications ────────────────────────────────────────────────────────────

@router.get("", response_model=ApplicationListResponse, summary="List applications")
async def list_applications(
        _: AccessTokenIdentity = Depends(read_access),
        service: AsyncApplicationService = Depends(get_application_service),
):
    applications = await service.list_applications()
    return ApplicationListResponse(applications=[ApplicationOutput.model_validate(a) for a in applications])


@router.post("", status_code=status.HTTP_201_CREATED, response_model=ApplicationResponse, summary="Create an application")
async def create_application(
        body: ApplicationCreate,
        identity: AccessTokenIdentity = Depends(write_access),
        service: AsyncApplicationService = Depends(get_application_service),
):
    application = await service.create_application(
        body.name, body.display_name, body.description, created_by=identity.client_id
    )
    return ApplicationResponse(application=ApplicationOutput.model_validate(application))


@router.get("/{application_id}", response_model=ApplicationDetailsResponse, summary="Application with components and grants")
async def get_application(
        application_id: str = Path(...),
        _: AccessTokenIdentity = Depends(read_access),
        service: AsyncApplicationService = Depends(get_application_service),
):
    details = await service.get_application_details(application_id)
    output = ApplicationDetailsOutput(
        **ApplicationOutput.model_validate(details.application).model_dump(),
        components=_components(details.components),
        client_permissions=[PermissionOutput.model_validate(p) for p in details.client_permissions],
    )
    return ApplicationDetailsResponse(application=output)


@router.put("/{application_id}", response_model=ApplicationResponse, summary="Update an application")
async def update_application(
        body: ApplicationUpdate,
        application_id: str = Path(...),
        _: AccessTokenIdentity = Depends(write_access),
        service: AsyncApplicationService = Depends(get_application_service),
):
    application = await service.update_application(application_id, body.display_name, body.description)
    return ApplicationResponse(application=ApplicationOutput.model_validate(application))


@router.delete("/{application_id}", response_model=MessageResponse, summary="Delete an application")
async def delete_application(
        application_id: str = Path(...),
        identity: AccessTokenIdentity = Depends(write_access),
        service: AsyncApplicationService = Depends(get_application_service),
):
    await service.delete_application(application_id)
    logger.info(f"Application {application_id} deleted by {identity.client_id}")
    return MessageResponse(message="Application deleted successfully")


# ─── Components ──────────────────────────────────────────────────────────────

@router.get("/{application_id}/components", response_model=ComponentListResponse, summary="List components")
async def list_components(
        application_id: str = Path(...),
        _: AccessTokenIdentity = Depends(read_access),
        service: AsyncApplicationService = Depends(get_application_service),
):
    return ComponentListResponse(components=_components(await service.list_components(application_id)))


@router.post(
    "/{application_id}/components",
    status_code=status.HTTP_201_CREATED,
    response_model=ComponentResponse,
    summary="Add a component",
)
async def add_component(
        body: ComponentCreate,
        application_id: str = Path(...),
        _: AccessTokenIdentity = Depends(write_access),
        service: AsyncApplicationService = Depends(get_application_service),
):
    component = await service.add_component(
        application_id, body.component_type, body.component_id, body.component_name, body.scopes
    )
    return ComponentResponse(component=ComponentOutput.model_validate(component))


@router.delete(
    "/{application_id}/components/{component_type}/{component_id}",
    response_model=MessageResponse,
    summary="Remove a component",
)
async def remove_component(
        application_id: str = Path(...),
        component_type: str = Path(...),
        component_id: str = Path(...),
        _: AccessTokenIdentity = Depends(write_access),
        service: AsyncApplicationService = Depends(get_application_service),
):
    await service.remove_component(application_id, component_type, component_id)
    return MessageResponse(message="Component removed successfully")


# ─── Client permissions ──────────────────────────────────────────────────────

@router.get(
    "/{application_id}/permissions/{client_id}",
    response_model=PermissionResponse,
    summary="Component scopes of a client on an application",
)
async def get_permission(
        application_id: str = Path(...),
        client_id: str = Path(...),
        _: AccessTokenIdentity = Depends(read_access),
        service: AsyncApplicationService = Depends(get_application_service),
):
    permission = await service.get_permission(application_id, client_id)
    return PermissionResponse(permission=PermissionOutput.model_validate(permission))


@router.post(
    "/{application_id}/permissions/{client_id}",
    response_model=PermissionResponse,
    summary="Grant component scopes",
    description="Replaces any existing grant of this client on this application.",
)
async def grant_permission(
        body: PermissionGrant,
        application_id: str = Path(...),
        client_id: str = Path(...),
        identity: AccessTokenIdentity = Depends(write_access),
        service: AsyncApplicationService = Depends(get_application_service),
):
    permission = await service.grant(application_id, client_id, body.component_scopes, granted_by=identity.client_id)
    return PermissionResponse(permission=PermissionOutput.model_validate(permission))


@router.delete(
    "/{application_id}/permissions/{client_id}",
    response_model=MessageResponse,
    summary="Revoke all component scopes",
    description="Idempotent: revoking a grant that does not exist succeeds.",
)
async def revoke_permission(
        application_id: str = Path(...),
        client_id: str = Path(...),
        identity: AccessTokenIdentity = Depends(write_access),
        service: AsyncApplicationService = Depends(get_application_service),
):
    if await service.revoke(application_id, client_id):
        logger.info(f"Permission of {client_id} on {application_id} revoked by {identity.client_id}")
    return MessageResponse(message="Permission revoked successfully")
