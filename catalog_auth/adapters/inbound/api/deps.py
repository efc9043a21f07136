# catalog_auth/adapters/inbound/api/deps.py

"""
Dependencies for injection into API endpoints.

This module defines functions that provide dependencies via
FastAPI Depends() for database access, services and credentials.
"""

import logging
from typing import AsyncGenerator

from fastapi import Depends, Request
from fastapi.security import APIKeyHeader
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_auth.application.use_cases import (
    AsyncApplicationService,
    AsyncClientService,
    AsyncScopeResolver,
    AsyncTokenService,
)
from catalog_auth.container import ServiceContainer

# Configure logger
logger = logging.getLogger(__name__)

# Raw Authorization header; the verifier checks the "Bearer " prefix itself
authorization_header = APIKeyHeader(name="Authorization", auto_error=False)

########################################################################
# Container and Database Session Management
########################################################################


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


async def get_db_session(
        container: ServiceContainer = Depends(get_container),
) -> AsyncGenerator[AsyncSession, None]:
    """
    Request scoped session. Committed when the endpoint returns,
    rolled back when it raises.
    """
    async with container.database.session() as session:
        yield session


########################################################################
# Services
########################################################################

def get_client_service(
        db: AsyncSession = Depends(get_db_session),
        container: ServiceContainer = Depends(get_container),
) -> AsyncClientService:
    return AsyncClientService(db, admin_override=container.admin_override)


def get_application_service(db: AsyncSession = Depends(get_db_session)) -> AsyncApplicationService:
    return AsyncApplicationService(db)


def get_scope_resolver(db: AsyncSession = Depends(get_db_session)) -> AsyncScopeResolver:
    return AsyncScopeResolver(db)


def get_token_service(
        client_service: AsyncClientService = Depends(get_client_service),
        scope_resolver: AsyncScopeResolver = Depends(get_scope_resolver),
        container: ServiceContainer = Depends(get_container),
) -> AsyncTokenService:
    return AsyncTokenService(
        client_service,
        scope_resolver,
        container.key_manager,
        issuer=container.settings.TOKEN_ISSUER,
    )

