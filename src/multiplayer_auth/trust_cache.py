"""Cache for the identity provider's discovery document and signing keys.

TrustMaterialCache owns two resources with different freshness rules:

- Discovery document: fetched lazily, then kept indefinitely. It is only
  re-fetched when a key-set fetch fails, since a failing ``jwks_uri`` is the
  one signal that the document is stale.
- Signing key set (JWKS): fetched lazily, considered stale once the TTL has
  elapsed since the last refresh attempt, and force-refreshed when a token
  names an unknown ``kid`` (the provider may have rotated a key in).

Failure Model
-------------
Network and shape failures are expected transient states here, not errors.
Every refresh path logs the failure and returns ``None``; nothing is raised
to the caller. The verifier turns ``None`` into ConfigUnavailable or
UnknownKey.

Concurrency
-----------
There is no lock. Concurrent callers that observe a miss each trigger their
own fetch. Writes replace the cached value wholesale, so the cache converges
on the last successful fetch.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping, Sequence
from typing import TYPE_CHECKING, Final

from .config import DEFAULT_DISCOVERY_URL, DEFAULT_KEYS_TTL_SECONDS
from .models import DiscoveryDocument

if TYPE_CHECKING:
    from .fetch import FetchResponse
    from .protocols import Fetch, KeyRecord

logger = logging.getLogger(__name__)

_KEY_FETCH_ATTEMPTS: Final[int] = 2
"""Initial key-set fetch plus one retry after a forced discovery refresh."""


class TrustMaterialCache:
    """Lazily populated, long-lived cache of provider trust material.

    Construct one per process and share it between verifiers. Tests construct
    a fresh instance with a fake fetcher and clock.

    Attributes:
        _fetch: Injected HTTP GET capability.
        _discovery_url: Well-known OpenID configuration URL.
        _ttl: Key-set time-to-live in seconds.
        _clock: Returns the current time in seconds.
        _config: Cached discovery document, or None.
        _keys: Cached key set, or None.
        _keys_refreshed_at: Time of the last key-set refresh attempt.
    """

    def __init__(
        self,
        fetch: Fetch,
        discovery_url: str = DEFAULT_DISCOVERY_URL,
        keys_ttl_seconds: float = DEFAULT_KEYS_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if keys_ttl_seconds <= 0:
            raise ValueError(f"keys_ttl_seconds must be positive, got {keys_ttl_seconds}")

        self._fetch = fetch
        self._discovery_url = discovery_url
        self._ttl = keys_ttl_seconds
        self._clock = clock

        self._config: DiscoveryDocument | None = None
        self._keys: list[KeyRecord] | None = None
        self._keys_refreshed_at: float = clock()

    # ------------------------------------------------------------------
    # Discovery document
    # ------------------------------------------------------------------

    async def get_config(self) -> DiscoveryDocument | None:
        """Return the cached discovery document, fetching it on first use."""
        if self._config is not None:
            return self._config
        return await self.fetch_config()

    async def fetch_config(self) -> DiscoveryDocument | None:
        """Fetch the discovery document and replace the cached one.

        Returns:
            The new document, or None if the fetch or parse failed. On failure
            the previously cached document is left in place.
        """
        try:
            response = await self._fetch(self._discovery_url)
        except Exception as e:
            logger.warning("Discovery fetch failed: %s", e)
            return None

        if not response.ok:
            logger.warning("Discovery fetch returned HTTP %s", response.status)
            return None

        try:
            config = DiscoveryDocument.from_mapping(response.json())
        except ValueError as e:
            logger.warning("Discovery document rejected: %s", e)
            return None

        self._config = config
        logger.debug("Discovery document refreshed (issuer=%s)", config.issuer)
        return config

    # ------------------------------------------------------------------
    # Signing keys
    # ------------------------------------------------------------------

    async def get_keys(self) -> list[KeyRecord] | None:
        """Return the cached key set, refreshing it if absent or older than the TTL."""
        if self._keys is None:
            return await self.fetch_keys()
        if self._clock() - self._keys_refreshed_at > self._ttl:
            return await self.fetch_keys()
        return self._keys

    async def fetch_keys(self) -> list[KeyRecord] | None:
        """Fetch the key set from the discovered ``jwks_uri``, bypassing the TTL.

        Resolution Strategy:
            1) Record the attempt time (the TTL runs from here).
            2) Get the (possibly cached) discovery document.
            3) GET ``jwks_uri``. A transport failure ends the refresh.
            4) On a non-success status, force a discovery refresh and retry
               once against the possibly-updated ``jwks_uri``.
            5) Parse ``keys`` from the successful response.

        Returns:
            The new key set, or None. Whatever is returned is also what is
            cached, so a failed refresh clears the key set.
        """
        self._keys_refreshed_at = self._clock()

        config = await self.get_config()
        if config is None:
            return self._store_keys(None)

        response = await self._fetch_jwks(config)
        if response is None:
            return self._store_keys(None)

        try:
            keys = response.json().get("keys")
        except (ValueError, AttributeError) as e:
            logger.warning("Key set body rejected: %s", e)
            return self._store_keys(None)

        if not isinstance(keys, list):
            logger.warning("Key set body has no 'keys' array")
            return self._store_keys(None)

        logger.debug("Key set refreshed (%d keys)", len(keys))
        return self._store_keys(keys)

    async def get_key_by_kid(self, kid: str) -> KeyRecord | None:
        """Find a signing key by ``kid``.

        On a miss, forces exactly one refresh (ignoring the TTL) and searches
        again, so keys rotated in since the last refresh are picked up.
        """
        key = _find(await self.get_keys(), kid)
        if key is not None:
            return key

        logger.info("Unknown kid %r, forcing key set refresh", kid)
        return _find(await self.fetch_keys(), kid)

    def clear(self) -> None:
        """Drop both cached resources. The next lookup refetches them."""
        self._config = None
        self._keys = None

    async def _fetch_jwks(self, config: DiscoveryDocument) -> FetchResponse | None:
        """GET ``jwks_uri``, retrying once after a discovery refresh on HTTP failure."""
        for attempt in range(1, _KEY_FETCH_ATTEMPTS + 1):
            try:
                response = await self._fetch(config.jwks_uri)
            except Exception as e:
                logger.warning("Key set fetch failed (attempt %d): %s", attempt, e)
                return None

            if response.ok:
                return response

            logger.warning(
                "Key set fetch returned HTTP %s (attempt %d)", response.status, attempt
            )
            if attempt == _KEY_FETCH_ATTEMPTS:
                return None

            refreshed = await self.fetch_config()
            if refreshed is None:
                return None
            config = refreshed
        return None

    def _store_keys(self, keys: list[KeyRecord] | None) -> list[KeyRecord] | None:
        self._keys = keys
        return keys


def _find(keys: Sequence[KeyRecord] | None, kid: str) -> KeyRecord | None:
    if not keys:
        return None
    for key in keys:
        if isinstance(key, Mapping) and key.get("kid") == kid:
            return key
    return None
