"""Routing of authentication payloads to the matching verifier."""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import TYPE_CHECKING

from .config import AuthSettings
from .direct_verifier import DirectKeyVerifier
from .errors import ExpiredToken, InvalidEnvelope
from .fetch import HttpxFetcher
from .models import AuthenticationPayload, AuthenticationType, ClaimSet
from .provider_verifier import ProviderVerifier
from .trust_cache import TrustMaterialCache

if TYPE_CHECKING:
    from .protocols import TokenVerifier

_PROVIDER_TYPES = frozenset({AuthenticationType.FULL, AuthenticationType.GUEST})


class Authenticator:
    """Dispatches a parsed payload by its authentication type.

    FULL and GUEST tokens go to the provider verifier. SELF_SIGNED tokens go
    to the direct-key verifier and need the client's public key. Their
    signature is checked against that key and then ``exp`` against ``clock``,
    with the same millisecond rule the provider path uses.
    """

    def __init__(
        self,
        provider: TokenVerifier,
        direct: DirectKeyVerifier | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._provider = provider
        self._direct = direct or DirectKeyVerifier()
        self._clock = clock

    async def authenticate(
        self,
        payload: AuthenticationPayload,
        public_key: str | None = None,
    ) -> ClaimSet:
        """Verify the payload's token and return its claims.

        Args:
            payload: Parsed envelope.
            public_key: Standard-base64 P-384 key, required for SELF_SIGNED.

        Raises:
            InvalidEnvelope: A SELF_SIGNED payload arrived without a public key.
            ExpiredToken: A SELF_SIGNED token's ``exp`` has passed.
            AuthError: Whatever the selected verifier raises.
        """
        if payload.type in _PROVIDER_TYPES:
            return await self._provider.authenticate(payload.token)

        if not public_key:
            raise InvalidEnvelope("Self-signed authentication requires a public key")
        claims = await self._direct.verify_claims(payload.token, public_key)
        if claims.is_expired(self._clock()):
            raise ExpiredToken("Token has expired")
        return claims


def build_authenticator(settings: AuthSettings | None = None) -> Authenticator:
    """Wire the default object graph: httpx fetcher, one shared cache, both verifiers."""
    settings = settings or AuthSettings.from_env()
    cache = TrustMaterialCache(
        fetch=HttpxFetcher(timeout=settings.http_timeout),
        discovery_url=settings.discovery_url,
        keys_ttl_seconds=settings.keys_ttl_seconds,
    )
    return Authenticator(ProviderVerifier(cache, audience=settings.audience))
