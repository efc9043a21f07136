# catalog_auth/adapters/outbound/persistence/models/client_model.py

"""
Client registration model.

A client is a machine identity (agent server, MCP server, workflow runner)
that authenticates with client_id + client_secret to obtain access tokens.
"""

from sqlalchemy import Column, String, DateTime, JSON
from catalog_auth.adapters.outbound.persistence.models.base_model import Base, utcnow


class ClientRegistration(Base):
    """
    Registered client.

    Attributes:
        client_id: Caller-chosen unique identifier
        client_secret_hash: passlib hash of the secret (never the plaintext)
        secret_hint: Last characters of the secret, for operators
        name: Display name
        scopes: Legacy global scopes (JSON array)
        registered_by: Identity that registered the client
        created_at: Creation timestamp
        updated_at: Last modification timestamp
    """
    __tablename__ = "client_registrations"

    client_id = Column(String(255), primary_key=True)
    client_secret_hash = Column(String(255), nullable=False)
    secret_hint = Column(String(16), nullable=True)
    name = Column(String(255), nullable=False)
    scopes = Column(JSON, nullable=False, default=list)
    registered_by = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<ClientRegistration(client_id={self.client_id}, scopes={self.scopes})>"
