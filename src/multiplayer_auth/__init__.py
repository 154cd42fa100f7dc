"""
Token verification for a multiplayer service's identity provider.

High-level flow (per request)
-----------------------------
1. `payload.parse(...)` (or an Extractor) turns the client's envelope into an
   `AuthenticationPayload`.
2. `Authenticator.authenticate(payload)` routes by authentication type:
   - FULL / GUEST -> `ProviderVerifier.authenticate(token)`:
       reads the unverified header, loads the discovery document and signing
       keys through `TrustMaterialCache`, checks exp/aud/iss and verifies the
       RS256 signature.
   - SELF_SIGNED -> `DirectKeyVerifier.verify(token, public_key)`:
       verifies an ES384 signature against a caller-supplied P-384 key.
3. On success the caller gets a `ClaimSet` (gamer tag, user id, partner id).

Security notes
--------------
- Never trust claims until signature verification succeeds.
- Only RS256 (provider) and ES384 (self-issued) are implemented.
- Tokens must be minted for the multiplayer audience and the discovered issuer.

Example usage
-------------

.. code-block:: python

    from multiplayer_auth import (
        HttpxFetcher,
        ProviderVerifier,
        TrustMaterialCache,
        parse,
    )

    cache = TrustMaterialCache(fetch=HttpxFetcher())
    verifier = ProviderVerifier(cache)

    payload = parse(raw_envelope)
    claims = await verifier.authenticate(payload.token)
    print(claims.gamer_tag)
"""

# Authenticator
from .authenticator import Authenticator, build_authenticator

# Codec
from .codec import TokenSegments, decode_segment, split

# Config
from .config import (
    DEFAULT_AUDIENCE,
    DEFAULT_DISCOVERY_URL,
    DEFAULT_KEYS_TTL_SECONDS,
    AuthSettings,
)

# Verifiers
from .direct_verifier import DirectKeyVerifier

# Errors
from .errors import (
    AudienceMismatch,
    AuthError,
    ConfigUnavailable,
    ExpiredToken,
    InvalidEnvelope,
    InvalidToken,
    IssuerMismatch,
    MalformedClaims,
    MalformedToken,
    MissingToken,
    SignatureInvalid,
    UnknownKey,
    UnsupportedAlgorithm,
    UnsupportedTokenType,
)

# Extractors
from .extractors import BearerExtractor, EnvelopeExtractor

# Fetch
from .fetch import FetchResponse, HttpxFetcher

# Flask extension
from .flask_extension import AuthExtension

# Models
from .models import (
    AuthenticationPayload,
    AuthenticationType,
    ClaimSet,
    DiscoveryDocument,
    TokenHeader,
)

# Payload parsing
from .payload import parse

# Protocols
from .protocols import (
    Claims,
    Extractor,
    Fetch,
    KeyRecord,
    PublicKeyResolver,
    TokenVerifier,
    ViewFunc,
)
from .provider_verifier import ProviderVerifier

# Trust cache
from .trust_cache import TrustMaterialCache

__all__ = [
    # Errors
    "AuthError",
    "AudienceMismatch",
    "ConfigUnavailable",
    "ExpiredToken",
    "InvalidEnvelope",
    "InvalidToken",
    "IssuerMismatch",
    "MalformedClaims",
    "MalformedToken",
    "MissingToken",
    "SignatureInvalid",
    "UnknownKey",
    "UnsupportedAlgorithm",
    "UnsupportedTokenType",
    # Protocols
    "Claims",
    "Extractor",
    "Fetch",
    "KeyRecord",
    "PublicKeyResolver",
    "TokenVerifier",
    "ViewFunc",
    # Models
    "AuthenticationPayload",
    "AuthenticationType",
    "ClaimSet",
    "DiscoveryDocument",
    "TokenHeader",
    # Codec
    "TokenSegments",
    "decode_segment",
    "split",
    # Config
    "AuthSettings",
    "DEFAULT_AUDIENCE",
    "DEFAULT_DISCOVERY_URL",
    "DEFAULT_KEYS_TTL_SECONDS",
    # Fetch
    "FetchResponse",
    "HttpxFetcher",
    # Trust cache
    "TrustMaterialCache",
    # Verifiers
    "DirectKeyVerifier",
    "ProviderVerifier",
    # Payload parsing
    "parse",
    # Authenticator
    "Authenticator",
    "build_authenticator",
    # Extractors
    "BearerExtractor",
    "EnvelopeExtractor",
    # Flask extension
    "AuthExtension",
]
