"""Protocol definitions for the multiplayer authentication package.

This module defines structural interfaces using Protocol (PEP 544) for:
- The HTTP fetch capability used to retrieve trust material
- Token verification
- Credential extraction from Flask requests

Using protocols keeps every collaborator swappable in tests: a plain async
function can stand in for the fetcher, and any object with ``authenticate``
can stand in for a verifier.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from .fetch import FetchResponse
    from .models import AuthenticationPayload, ClaimSet

# ============================================================================
# Type Aliases
# ============================================================================

type Claims = Mapping[str, Any]
"""Decoded JWT payload as an immutable mapping."""

type KeyRecord = Mapping[str, Any]
"""A single JWK from the provider's key set. Carries at least ``kid``."""

type ViewFunc = Callable[..., Any]
"""Type alias for Flask view functions."""

type PublicKeyResolver = Callable[[AuthenticationPayload], str | None]
"""Returns the standard-base64 P-384 key for a SELF_SIGNED payload, or None."""


# ============================================================================
# Core Protocols
# ============================================================================


class Fetch(Protocol):
    """Asynchronous HTTP GET capability.

    Implementations return a FetchResponse for any HTTP status and raise on
    transport failures (DNS, connection reset, timeout). Timeouts are the
    implementation's concern; callers never cancel a fetch.
    """

    async def __call__(self, url: str) -> FetchResponse:
        """GET ``url`` and return its status and body."""
        ...


class TokenVerifier(Protocol):
    """Protocol for provider-issued token verification."""

    async def authenticate(self, token: str) -> ClaimSet:
        """Verify a token and return its trusted claims.

        Raises:
            InvalidToken: Token is malformed, signature invalid, or claims invalid
            ExpiredToken: Token's exp claim has passed
            ConfigUnavailable: Provider metadata could not be fetched
        """
        ...


class Extractor(Protocol):
    """Protocol for pulling an authentication payload out of a Flask request."""

    def extract(self) -> AuthenticationPayload:
        """Extract the payload from the current request.

        Raises:
            MissingToken: No credential was found.
            InvalidEnvelope: A credential was found but is malformed.
        """
        ...
