# catalog_auth/application/use_cases/token_use_cases.py

"""
Token issuance (OAuth2 client-credentials grant).
"""

import logging
import secrets
import time
from typing import Callable, Optional

from catalog_auth.adapters.outbound.security.key_manager import KeyManager
from catalog_auth.application.ports.inbound import IClientUseCase, IScopeResolver, ITokenIssuer
from catalog_auth.domain.exceptions import (
    DatabaseOperationException,
    InvalidClient,
    InvalidRequest,
    InvalidScope,
    ServerError,
    UnsupportedGrantType,
)
from catalog_auth.domain.models.token_domain_model import (
    ACCESS_TOKEN_TTL_SECONDS,
    IssuedToken,
    IssuedTokenClaims,
)
from catalog_auth.domain.services.scope_service import ScopeService

logger = logging.getLogger(__name__)

CLIENT_CREDENTIALS = "client_credentials"


class AsyncTokenService(ITokenIssuer):
    """
    Mints access tokens.

    The checks run in a fixed order (grant type, credentials present,
    audience, authentication, scopes, signing) and the first failure wins.
    """

    def __init__(
            self, client_service: IClientUseCase, scope_resolver: IScopeResolver, key_manager: KeyManager,
            issuer: str, *, clock: Callable[[], float] = time.time,
    ):
        self.client_service = client_service
        self.scope_resolver = scope_resolver
        self.key_manager = key_manager
        self.issuer = issuer
        self._clock = clock

    async def issue(
            self, grant_type: Optional[str], client_id: Optional[str], client_secret: Optional[str],
            audience: Optional[str], scope: Optional[str] = None,
    ) -> IssuedToken:
        """
        Args:
            grant_type: Must be client_credentials
            client_id: Client identifier
            client_secret: Client secret
            audience: Resource the token is for; copied to aud
            scope: Space separated requested scopes (optional)

        Returns:
            IssuedToken whose scopes are the requested scopes the client holds as legacy scopes

        Raises:
            UnsupportedGrantType, InvalidClient, InvalidRequest, InvalidScope, ServerError
        """
        if grant_type != CLIENT_CREDENTIALS:
            raise UnsupportedGrantType("Only client_credentials grant type is supported")

        if not client_id or not client_secret:
            raise InvalidClient("client_id and client_secret are required")

        if not audience:
            raise InvalidRequest("audience parameter is required")

        try:
            client = await self.client_service.authenticate(client_id, client_secret)
        except DatabaseOperationException as e:
            logger.error(f"Client lookup failed during token request: {e.detail}")
            raise ServerError("Unable to authenticate client") from e

        resolved = self.scope_resolver.issuable_scopes(client, ScopeService.parse_scope_param(scope))
        if resolved.is_rejected:
            logger.warning(f"Client {client_id} requested unauthorized scopes: {' '.join(resolved.requested)}")
            raise InvalidScope("Requested scopes are not authorized for this client")
        if resolved.denied:
            logger.info(f"Narrowed scopes for {client_id}, dropped: {' '.join(resolved.denied)}")

        now = int(self._clock())
        claims = IssuedTokenClaims(
            sub=client.client_id,
            aud=audience,
            iss=self.issuer,
            scopes=list(resolved.granted),
            client_id=client.client_id,
            iat=now,
            exp=now + ACCESS_TOKEN_TTL_SECONDS,
            jti=secrets.token_hex(16),
        )
        access_token = self.key_manager.sign(claims.to_dict())

        logger.info(
            f"Token issued to {client.client_id} for audience {audience}, "
            f"scopes: {','.join(resolved.granted) or 'none'}"
        )
        return IssuedToken(access_token=access_token, scopes=list(resolved.granted))
