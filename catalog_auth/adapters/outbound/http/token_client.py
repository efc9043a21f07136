# catalog_auth/adapters/outbound/http/token_client.py

"""
Client side of the client-credentials grant.

Services calling other catalog services use AccessTokenClient to obtain and
reuse access tokens. Tokens are cached per (client, audience, scopes) and
concurrent requests for the same key share one outstanding call.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Optional

import httpx
from jose import jwt
from jose.exceptions import JWTError

from catalog_auth.adapters.configuration.config import Settings
from catalog_auth.domain.exceptions import TokenAcquisitionError

logger = logging.getLogger(__name__)

# Entries are dropped this long before the token's exp
EXPIRY_MARGIN_SECONDS = 60
# Hard ceiling on how long a token is cached
MAX_CACHE_SECONDS = 50 * 60
# Re-check against the real exp right before reuse
REUSE_BUFFER_SECONDS = 30


@dataclass
class CachedToken:
    access_token: str
    expires_at: float  # Cache expiry
    token_exp: float  # exp claim of the token itself
    scope: str = ""

    def is_usable(self, now: float) -> bool:
        return now < self.expires_at and now < self.token_exp - REUSE_BUFFER_SECONDS


def cache_key(client_id: str, audience: str, scopes: Iterable[str]) -> str:
    return f"{client_id}:{audience}:{','.join(sorted(set(scopes)))}"


class AccessTokenClient:
    """
    Acquires access tokens from the token service.

    Args:
        token_service_url: Base URL of the token service (the /token path is appended)
        client_id: Client identifier
        client_secret: Client secret
        transport: Optional httpx transport (tests use httpx.MockTransport)
        clock: Returns the current unix time in seconds
    """

    def __init__(
            self, token_service_url: str, client_id: str, client_secret: str, *,
            timeout: float = 10.0,
            transport: Optional[httpx.AsyncBaseTransport] = None,
            clock: Callable[[], float] = time.time,
    ):
        if not token_service_url or not client_id or not client_secret:
            raise ValueError("token_service_url, client_id and client_secret are required")
        self.token_url = token_service_url.rstrip("/") + "/token"
        self.client_id = client_id
        self._client_secret = client_secret
        self._clock = clock
        self._http = httpx.AsyncClient(timeout=timeout, transport=transport)
        self._cache: Dict[str, CachedToken] = {}
        self._inflight: Dict[str, asyncio.Task] = {}

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> Optional["AccessTokenClient"]:
        """None when outbound credentials are not configured."""
        if not (settings.TOKEN_SERVICE_URL and settings.CLIENT_ID and settings.CLIENT_SECRET):
            return None
        return cls(settings.TOKEN_SERVICE_URL, settings.CLIENT_ID, settings.CLIENT_SECRET, **kwargs)

    async def get_token(
            self, audience: str, scopes: Optional[Iterable[str]] = None, *, force_refresh: bool = False
    ) -> str:
        """
        Return a valid access token for audience and scopes.

        Raises:
            TokenAcquisitionError: If the token service rejects the request or is unreachable
        """
        scopes = sorted(set(scopes or []))
        key = cache_key(self.client_id, audience, scopes)

        if not force_refresh:
            cached = self._cache.get(key)
            if cached is not None:
                if cached.is_usable(self._clock()):
                    return cached.access_token
                del self._cache[key]

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._request_token(key, audience, scopes))
            self._inflight[key] = task
            task.add_done_callback(lambda done: self._forget_inflight(key, done))
        else:
            logger.debug(f"Joining in-flight token request for {key}")

        cached = await asyncio.shield(task)
        return cached.access_token

    def _forget_inflight(self, key: str, task: asyncio.Task) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]

    async def _request_token(self, key: str, audience: str, scopes: list) -> CachedToken:
        data = {
            "grant_type": "client_credentials",
            "client_id": self.client_id,
            "client_secret": self._client_secret,
            "audience": audience,
        }
        if scopes:
            data["scope"] = " ".join(scopes)

        try:
            response = await self._http.post(self.token_url, data=data)
        except httpx.HTTPError as e:
            logger.error(f"Token request to {self.token_url} failed: {str(e)}")
            raise TokenAcquisitionError(f"Token service unreachable: {str(e)}") from e

        if response.status_code != 200:
            raise TokenAcquisitionError(self._error_detail(response), status_code=response.status_code)

        try:
            payload = response.json()
        except ValueError as e:
            raise TokenAcquisitionError("Token service returned invalid JSON") from e

        access_token = payload.get("access_token")
        if not access_token:
            raise TokenAcquisitionError("No access token in response")

        now = self._clock()
        token_exp = self._token_exp(access_token, now + int(payload.get("expires_in", 3600)))
        entry = CachedToken(
            access_token=access_token,
            expires_at=min(token_exp - EXPIRY_MARGIN_SECONDS, now + MAX_CACHE_SECONDS),
            token_exp=token_exp,
            scope=payload.get("scope", ""),
        )
        self._cache[key] = entry
        logger.info(f"Access token acquired for audience {audience}")
        return entry

    @staticmethod
    def _token_exp(access_token: str, fallback: float) -> float:
        try:
            exp = jwt.get_unverified_claims(access_token).get("exp")
        except JWTError:
            return fallback
        return float(exp) if isinstance(exp, (int, float)) else fallback

    @staticmethod
    def _error_detail(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return f"Token request failed: HTTP {response.status_code}"
        error = body.get("error", "unknown_error") if isinstance(body, dict) else "unknown_error"
        description = body.get("error_description") if isinstance(body, dict) else None
        return f"Token request failed: HTTP {response.status_code} {error}" + (f" ({description})" if description else "")

    async def authorization_header(self, audience: str, scopes: Optional[Iterable[str]] = None) -> Dict[str, str]:
        return {"Authorization": f"Bearer {await self.get_token(audience, scopes)}"}

    def clear_cache(self) -> None:
        self._cache.clear()

    async def aclose(self) -> None:
        await self._http.aclose()
