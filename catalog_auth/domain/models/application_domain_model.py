# catalog_auth/domain/models/application_domain_model.py

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional


class ComponentType(str, Enum):
    """Kinds of catalog resources an application can group."""
    AGENT = "agent"
    WORKFLOW = "workflow"
    TOOL = "tool"
    RAG_DATABASE = "rag_database"
    SCORER = "scorer"
    NETWORK = "network"


@dataclass
class Application:
    """Named group of catalog components."""
    id: str
    name: str  # Unique
    display_name: str
    description: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class ApplicationComponent:
    """Membership snapshot of one component inside an application."""
    id: str
    application_id: str
    component_type: ComponentType
    component_id: str
    component_name: str
    scopes: List[str] = field(default_factory=list)
    created_at: Optional[datetime] = None


@dataclass
class ClientApplicationPermission:
    """Component scopes granted to one client on one application."""
    id: str
    client_id: str
    application_id: str
    component_scopes: List[str] = field(default_factory=list)
    granted_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class ApplicationDetails:
    application: Application
    components: List[ApplicationComponent] = field(default_factory=list)
    client_permissions: List[ClientApplicationPermission] = field(default_factory=list)
