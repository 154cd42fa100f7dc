"""Verification of provider-issued tokens.

ProviderVerifier checks a token the identity provider minted (FULL and GUEST
authentication) against the provider's published trust material:

- Reads the unverified header for ``typ``, ``alg`` and ``kid``
- Checks ``alg`` against the discovery document's advertised algorithms
- Checks expiry, audience and issuer claims
- Resolves the signing key by ``kid`` through TrustMaterialCache
- Verifies the RS256 signature with PyJWT's RSA algorithm implementation

Each step fails fast with its own InvalidToken subclass. No step retries;
refresh-on-miss lives in the cache, not here.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Final

import jwt
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey
from jwt.algorithms import RSAAlgorithm
from jwt.utils import base64url_decode

from .codec import decode_segment, split
from .config import DEFAULT_AUDIENCE
from .errors import (
    AudienceMismatch,
    ConfigUnavailable,
    ExpiredToken,
    IssuerMismatch,
    SignatureInvalid,
    UnknownKey,
    UnsupportedAlgorithm,
    UnsupportedTokenType,
)
from .models import ClaimSet, TokenHeader

if TYPE_CHECKING:
    from .protocols import KeyRecord
    from .trust_cache import TrustMaterialCache

logger = logging.getLogger(__name__)

_EXPECTED_TYP: Final[str] = "JWT"

_RS256: Final[RSAAlgorithm] = RSAAlgorithm(RSAAlgorithm.SHA256)
"""RSASSA-PKCS1-v1_5 with SHA-256, the only provider algorithm implemented."""

_IMPLEMENTED_ALGORITHMS: Final[dict[str, RSAAlgorithm]] = {"RS256": _RS256}


class ProviderVerifier:
    """Verifies provider-issued tokens against discovered trust material.

    Implements the TokenVerifier protocol. The trust cache is borrowed, not
    owned: several verifiers may share one cache.

    Example:
        ```python
        cache = TrustMaterialCache(fetch=HttpxFetcher())
        verifier = ProviderVerifier(cache)

        try:
            claims = await verifier.authenticate(raw_token)
            player = claims.gamer_tag
        except ExpiredToken:
            # prompt the client to sign in again
        except InvalidToken:
            # reject the connection
        ```

    Attributes:
        _cache: Source of the discovery document and signing keys.
        _audience: Required ``aud`` claim.
        _clock: Returns the current time in seconds since the epoch.
    """

    def __init__(
        self,
        cache: TrustMaterialCache,
        audience: str = DEFAULT_AUDIENCE,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._cache = cache
        self._audience = audience
        self._clock = clock

    async def authenticate(self, token: str) -> ClaimSet:
        """Verify a provider-issued token and return its claims.

        Args:
            token: Compact JWS string.

        Returns:
            The token's claims. Only returned once the signature has verified.

        Raises:
            MalformedToken: The token is not three dot-separated segments.
            MalformedClaims: The header or payload is not a JSON object.
            UnsupportedTokenType: Header ``typ`` is not ``JWT``.
            ConfigUnavailable: The discovery document could not be obtained.
            UnsupportedAlgorithm: ``alg`` is not advertised or not implemented.
            ExpiredToken: ``exp`` lies before the current instant.
            AudienceMismatch: ``aud`` is not this service's audience.
            IssuerMismatch: ``iss`` differs from the provider's issuer.
            UnknownKey: No signing key matches ``kid``, even after a refresh.
            SignatureInvalid: The signature does not verify.
        """
        segments = split(token)
        header = TokenHeader.from_mapping(decode_segment(segments.header))

        # Rejected before any network traffic.
        if header.typ != _EXPECTED_TYP:
            raise UnsupportedTokenType(
                f"Unexpected token type, expected JWT token, received: {header.typ}"
            )

        config = await self._cache.get_config()
        if config is None:
            raise ConfigUnavailable("OpenID configuration not available")

        if header.alg not in config.signing_alg_values_supported:
            raise UnsupportedAlgorithm(f"Algorithm not advertised by provider: {header.alg}")

        claims = ClaimSet.from_claims(decode_segment(segments.payload))

        if claims.is_expired(self._clock()):
            raise ExpiredToken("Token has expired")
        if claims.audience != self._audience:
            raise AudienceMismatch(f"Invalid audience: {claims.audience}")
        if claims.issuer != config.issuer:
            raise IssuerMismatch(f"Issuer mismatch: {claims.issuer}")

        key = await self._resolve_key(header.kid)

        algorithm = _IMPLEMENTED_ALGORITHMS.get(header.alg or "")
        if algorithm is None:
            raise UnsupportedAlgorithm(f"Not implemented verification algorithm: {header.alg}")

        _verify_signature(algorithm, key, segments.signing_input, segments.signature)

        logger.debug("Verified provider token for %s", claims.external_user_id)
        return claims

    async def _resolve_key(self, kid: str | None) -> KeyRecord:
        if not isinstance(kid, str) or not kid:
            raise UnknownKey("Token header missing 'kid'")

        key = await self._cache.get_key_by_kid(kid)
        if key is None:
            raise UnknownKey(f"Authentication unknown kid: {kid}")
        return key


def _verify_signature(
    algorithm: RSAAlgorithm,
    key: KeyRecord,
    signing_input: bytes,
    signature_segment: str,
) -> None:
    try:
        public_key = RSAAlgorithm.from_jwk(dict(key))
    except (jwt.InvalidKeyError, ValueError, TypeError) as e:
        raise SignatureInvalid(f"Signing key is not a usable RSA key: {e}") from e
    if isinstance(public_key, RSAPrivateKey):
        public_key = public_key.public_key()

    try:
        signature = base64url_decode(signature_segment)
    except ValueError as e:
        raise SignatureInvalid("Signature segment is not base64url") from e

    if not algorithm.verify(signing_input, public_key, signature):
        raise SignatureInvalid("Spoofed token, verification failed")
