# catalog_auth/container.py

"""
Process-wide services, built once per application instance.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from catalog_auth.adapters.configuration.config import Settings
from catalog_auth.adapters.outbound.http.token_client import AccessTokenClient
from catalog_auth.adapters.outbound.persistence.database import Database
from catalog_auth.adapters.outbound.security.admin_override import AdminOverride, ManagementVerifier
from catalog_auth.adapters.outbound.security.jwks_provider import (
    JWKSProvider,
    RemoteJWKSProvider,
    StaticJWKSProvider,
)
from catalog_auth.adapters.outbound.security.key_manager import KeyManager
from catalog_auth.adapters.outbound.security.token_verifier import TokenVerifier

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    settings: Settings
    database: Database
    key_manager: KeyManager
    admin_override: AdminOverride
    management: ManagementVerifier
    jwks_provider: JWKSProvider
    verifier: TokenVerifier
    token_client: Optional[AccessTokenClient] = None

    @classmethod
    def build(
            cls, settings: Settings, *,
            database: Optional[Database] = None,
            key_manager: Optional[KeyManager] = None,
            jwks_provider: Optional[JWKSProvider] = None,
    ) -> "ServiceContainer":
        """
        Wire every service from settings. Explicit arguments replace the
        corresponding default (tests pass their own database and keys).
        """
        database = database or Database.from_settings(settings)
        key_manager = key_manager or KeyManager.from_settings(settings)

        if jwks_provider is None:
            if settings.TOKEN_SERVICE_JWKS_URL:
                logger.info(f"Verifying tokens against remote JWKS {settings.TOKEN_SERVICE_JWKS_URL}")
                jwks_provider = RemoteJWKSProvider(
                    settings.TOKEN_SERVICE_JWKS_URL,
                    ttl=settings.JWKS_CACHE_TTL,
                    cooldown=settings.JWKS_REFRESH_COOLDOWN,
                )
            else:
                jwks_provider = StaticJWKSProvider(key_manager)

        return cls(
            settings=settings,
            database=database,
            key_manager=key_manager,
            admin_override=AdminOverride.from_settings(settings),
            management=ManagementVerifier.from_settings(settings),
            jwks_provider=jwks_provider,
            verifier=TokenVerifier(jwks_provider, settings.TOKEN_SERVICE_AUD, issuer=settings.TOKEN_ISSUER),
            token_client=AccessTokenClient.from_settings(settings),
        )

    async def aclose(self) -> None:
        if self.token_client is not None:
            await self.token_client.aclose()
        await self.database.dispose()
