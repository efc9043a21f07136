# catalog_auth/adapters/outbound/persistence/models/application_model.py

"""
Application, component membership and client permission models.
"""

import uuid

from sqlalchemy import Column, String, Text, DateTime, JSON, ForeignKey, UniqueConstraint
from catalog_auth.adapters.outbound.persistence.models.base_model import Base, utcnow


def _new_id() -> str:
    return str(uuid.uuid4())


class Application(Base):
    """Named group of catalog components."""
    __tablename__ = "applications"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(255), unique=True, nullable=False, index=True)
    display_name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    created_by = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<Application(name={self.name})>"


class ApplicationComponent(Base):
    """
    Snapshot of a component's membership in an application.

    component_name and scopes are denormalized copies, not a live join on the
    component definition tables.
    """
    __tablename__ = "application_components"
    __table_args__ = (
        UniqueConstraint("application_id", "component_type", "component_id",
                         name="uq_application_components_member"),
    )

    id = Column(String(36), primary_key=True, default=_new_id)
    application_id = Column(
        String(36), ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True
    )
    component_type = Column(String(50), nullable=False, index=True)
    component_id = Column(String(255), nullable=False)
    component_name = Column(String(255), nullable=False)
    scopes = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class ApplicationClientPermission(Base):
    """Component scopes granted to a client on an application. One row per (client, application)."""
    __tablename__ = "application_client_permissions"
    __table_args__ = (
        UniqueConstraint("client_id", "application_id", name="uq_application_client_permissions_pair"),
    )

    id = Column(String(36), primary_key=True, default=_new_id)
    client_id = Column(
        String(255), ForeignKey("client_registrations.client_id", ondelete="CASCADE"),
        nullable=False, index=True
    )
    application_id = Column(
        String(36), ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True
    )
    component_scopes = Column(JSON, nullable=False, default=list)
    granted_by = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
