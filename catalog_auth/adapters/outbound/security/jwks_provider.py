# catalog_auth/adapters/outbound/security/jwks_provider.py

"""
Sources of the public key set used to verify tokens.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional

import httpx

from catalog_auth.adapters.outbound.security.key_manager import KeyManager
from catalog_auth.domain.exceptions import TokenVerificationError

logger = logging.getLogger(__name__)


class JWKSProvider(ABC):

    @abstractmethod
    async def get_keys(self, force_refresh: bool = False) -> List[Dict[str, Any]]:
        """Return the current list of public JWKs."""

    def clear_cache(self) -> None:
        """Drop any cached key set."""

    async def find_key(self, kid: Optional[str]) -> Dict[str, Any]:
        """
        Select the key matching kid.

        An unknown kid triggers one refresh before giving up. Providers may
        answer that refresh from cache when they refreshed too recently.

        Raises:
            TokenVerificationError: If no key matches
        """
        for force_refresh in (False, True):
            keys = await self.get_keys(force_refresh=force_refresh)
            for key in keys:
                if kid is None and len(keys) == 1:
                    return key
                if key.get("kid") == kid:
                    return key
        raise TokenVerificationError("Key not found")


class StaticJWKSProvider(JWKSProvider):
    """Key set of the in-process key manager."""

    def __init__(self, key_manager: KeyManager):
        self.key_manager = key_manager

    async def get_keys(self, force_refresh: bool = False) -> List[Dict[str, Any]]:
        return self.key_manager.jwks()["keys"]

    async def find_key(self, kid: Optional[str]) -> Dict[str, Any]:
        keys = await self.get_keys()
        for key in keys:
            if key.get("kid") == kid or (kid is None and len(keys) == 1):
                return key
        raise TokenVerificationError("Key not found")


class RemoteJWKSProvider(JWKSProvider):
    """
    Key set fetched over HTTP and cached for ttl seconds.

    Concurrent refreshes share a lock so a cold cache is fetched once.
    Forced refreshes (unknown kid) hit the network at most once per
    cooldown seconds.
    """

    def __init__(
            self, url: str, ttl: int = 300, *, timeout: float = 5.0,
            cooldown: float = 30.0,
            transport: Optional[httpx.AsyncBaseTransport] = None,
            clock: Callable[[], float] = time.monotonic,
    ):
        self.url = url
        self.ttl = ttl
        self.timeout = timeout
        self.cooldown = cooldown
        self._transport = transport
        self._clock = clock
        self._keys: Optional[List[Dict[str, Any]]] = None
        self._fetched_at = 0.0
        self._lock = asyncio.Lock()

    def _is_fresh(self) -> bool:
        return self._keys is not None and (self._clock() - self._fetched_at) < self.ttl

    def _in_cooldown(self) -> bool:
        return self._keys is not None and (self._clock() - self._fetched_at) < self.cooldown

    async def get_keys(self, force_refresh: bool = False) -> List[Dict[str, Any]]:
        if not force_refresh and self._is_fresh():
            return self._keys

        async with self._lock:
            if not force_refresh and self._is_fresh():
                return self._keys
            if force_refresh and self._in_cooldown():
                logger.debug("JWKS refresh skipped: fetched less than cooldown seconds ago")
                return self._keys
            self._keys = await self._fetch()
            self._fetched_at = self._clock()
            return self._keys

    async def _fetch(self) -> List[Dict[str, Any]]:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(self.url)
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Failed to fetch JWKS from {self.url}: {str(e)}")
            raise TokenVerificationError("Unable to fetch signing keys") from e

        keys = data.get("keys") if isinstance(data, dict) else None
        if not isinstance(keys, list):
            raise TokenVerificationError("Malformed key set")

        logger.info(f"Fetched {len(keys)} key(s) from {self.url}")
        return keys

    def clear_cache(self) -> None:
        self._keys = None
        self._fetched_at = 0.0
        logger.info("JWKS cache cleared")
