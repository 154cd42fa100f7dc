"""Typed records exchanged between the parser, the verifiers and the cache.

Everything here is immutable. Records decoded from a token are built by the
verifiers only; nothing in this module checks signatures.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import IntEnum
from types import MappingProxyType
from typing import Any

from .errors import MalformedClaims


class AuthenticationType(IntEnum):
    """How a client authenticated to the multiplayer service.

    FULL and GUEST tokens are issued by the identity provider and verified
    against its published key set. SELF_SIGNED tokens are minted by the client
    itself and verified against a public key exchanged out of band.
    """

    FULL = 0
    GUEST = 1
    SELF_SIGNED = 2


@dataclass(frozen=True, slots=True)
class AuthenticationPayload:
    """Parsed authentication envelope.

    Attributes:
        type: Declared authentication type.
        token: The signed token, never empty.
        certificate: Optional certificate chain sent alongside the token.
    """

    type: AuthenticationType
    token: str
    certificate: str | None = None


@dataclass(frozen=True, slots=True)
class TokenHeader:
    """The fields of a JOSE header that verification looks at."""

    alg: str | None
    kid: str | None
    typ: str | None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> TokenHeader:
        if data is None:
            raise MalformedClaims("Token header is null")
        return cls(alg=data.get("alg"), kid=data.get("kid"), typ=data.get("typ"))


@dataclass(frozen=True, slots=True)
class ClaimSet:
    """Identity claims carried by a multiplayer token.

    Not trustworthy until a verifier has checked the signature. The verifiers
    only ever return a ClaimSet after that check has passed.

    Attributes:
        gamer_tag: Display name (``xname``).
        external_user_id: Platform user id (``xid``).
        partner_id: Partner/PlayFab id (``mid``).
        audience: ``aud`` claim.
        issuer: ``iss`` claim.
        expires_at: ``exp`` claim, seconds since the epoch.
        embedded_public_key: Client public key (``cpk``), standard base64.
        raw: The full decoded payload, including claims not modelled above.
    """

    gamer_tag: str | None
    external_user_id: str | None
    partner_id: str | None
    audience: str | None
    issuer: str | None
    expires_at: float
    embedded_public_key: str | None = None
    raw: Mapping[str, Any] = field(
        default_factory=lambda: MappingProxyType({}), compare=False, repr=False
    )

    @classmethod
    def from_claims(cls, data: Mapping[str, Any] | None) -> ClaimSet:
        """Build a ClaimSet from a decoded payload.

        Raises:
            MalformedClaims: If the payload is null or ``exp`` is not a finite number.
        """
        if data is None:
            raise MalformedClaims("Token payload is null")

        exp = data.get("exp")
        if isinstance(exp, bool) or not isinstance(exp, (int, float)):
            raise MalformedClaims("Token payload has no numeric 'exp' claim")
        if isinstance(exp, float) and not math.isfinite(exp):
            raise MalformedClaims("Token payload 'exp' claim is not finite")

        return cls(
            gamer_tag=data.get("xname"),
            external_user_id=data.get("xid"),
            partner_id=data.get("mid"),
            audience=data.get("aud"),
            issuer=data.get("iss"),
            expires_at=exp,
            embedded_public_key=data.get("cpk"),
            raw=MappingProxyType(dict(data)),
        )

    def is_expired(self, now: float) -> bool:
        """Whether ``exp`` lies before ``now`` (seconds), compared in whole milliseconds.

        Expiry is exclusive: a token expiring this very millisecond is still valid.
        """
        return self.expires_at * 1000 < int(now * 1000)


@dataclass(frozen=True, slots=True)
class DiscoveryDocument:
    """The parts of the provider's OpenID configuration this package uses."""

    jwks_uri: str
    issuer: str
    signing_alg_values_supported: tuple[str, ...] = ()
    claims_supported: tuple[str, ...] = ()

    @classmethod
    def from_mapping(cls, data: Any) -> DiscoveryDocument:
        """Parse a discovery document body.

        Raises:
            ValueError: If the body is not an object or lacks ``jwks_uri``/``issuer``.
        """
        if not isinstance(data, Mapping):
            raise ValueError("Discovery document is not a JSON object")

        jwks_uri = data.get("jwks_uri")
        issuer = data.get("issuer")
        if not isinstance(jwks_uri, str) or not isinstance(issuer, str):
            raise ValueError("Discovery document lacks 'jwks_uri' or 'issuer'")

        return cls(
            jwks_uri=jwks_uri,
            issuer=issuer,
            signing_alg_values_supported=_str_tuple(
                data.get("id_token_signing_alg_values_supported")
            ),
            claims_supported=_str_tuple(data.get("claims_supported")),
        )


def _str_tuple(value: Any) -> tuple[str, ...]:
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(v for v in value if isinstance(v, str))
