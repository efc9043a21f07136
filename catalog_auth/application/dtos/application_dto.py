# catalog_auth/application/dtos/application_dto.py

"""
Schemas for applications, components and client permissions.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from catalog_auth.application.dtos.base_dto import CustomBaseModel
from catalog_auth.domain.models.application_domain_model import ComponentType


class ApplicationCreate(CustomBaseModel):
    name: str = Field(..., min_length=1, max_length=255, description="Unique application name")
    display_name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None


class ApplicationUpdate(CustomBaseModel):
    """Fields left out keep their stored value."""
    display_name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None


class ApplicationOutput(CustomBaseModel):
    id: str
    name: str
    display_name: str
    description: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ComponentCreate(CustomBaseModel):
    component_type: ComponentType
    component_id: str = Field(..., min_length=1, max_length=255)
    component_name: str = Field(..., min_length=1, max_length=255)
    scopes: List[str] = Field(default_factory=list)


class ComponentOutput(CustomBaseModel):
    id: str
    application_id: str
    component_type: ComponentType
    component_id: str
    component_name: str
    scopes: List[str]
    created_at: Optional[datetime] = None


class PermissionGrant(CustomBaseModel):
    component_scopes: List[str] = Field(..., description="Replaces any previous grant")


class PermissionOutput(CustomBaseModel):
    id: str
    client_id: str
    application_id: str
    component_scopes: List[str]
    granted_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ApplicationDetailsOutput(ApplicationOutput):
    components: List[ComponentOutput] = Field(default_factory=list)
    client_permissions: List[PermissionOutput] = Field(default_factory=list)


class ApplicationResponse(CustomBaseModel):
    application: ApplicationOutput


class ApplicationDetailsResponse(CustomBaseModel):
    application: ApplicationDetailsOutput


class ApplicationListResponse(CustomBaseModel):
    applications: List[ApplicationOutput]


class ComponentResponse(CustomBaseModel):
    component: ComponentOutput


class ComponentListResponse(CustomBaseModel):
    components: List[ComponentOutput]


class PermissionResponse(CustomBaseModel):
    permission: PermissionOutput


class PermissionListResponse(CustomBaseModel):
    permissions: List[PermissionOutput]


class MessageResponse(CustomBaseModel):
    message: str
