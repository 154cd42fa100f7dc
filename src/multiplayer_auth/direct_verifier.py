"""Verification of self-issued tokens against a caller-supplied public key.

Self-signed clients mint their own ES384 tokens. There is no discovery or key
set lookup on this path: the caller already holds the client's public key
(for example the ``cpk`` claim of a verified provider token) and the header
is never interpreted.
"""

from __future__ import annotations

import base64
import binascii
from collections.abc import Mapping
from typing import Any, Final, cast

from cryptography.exceptions import UnsupportedAlgorithm as UnsupportedKeyAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec
from jwt.algorithms import ECAlgorithm
from jwt.utils import base64url_decode

from .codec import decode_segment, split
from .errors import SignatureInvalid
from .models import ClaimSet

_ES384: Final[ECAlgorithm] = ECAlgorithm(ECAlgorithm.SHA384)

_P384_POINT_LENGTH: Final[int] = 97
"""Length of an uncompressed SEC1 point on P-384 (0x04 || X || Y)."""


class DirectKeyVerifier:
    """Verifies ES384 tokens with a public key supplied by the caller.

    The key is standard (not URL-safe) base64 of either a DER
    SubjectPublicKeyInfo or an uncompressed SEC1 point, on curve P-384.
    """

    async def verify[T: Mapping[str, Any]](
        self, token: str, public_key_b64: str
    ) -> T | None:
        """Verify ``token`` and return its decoded payload.

        The payload is not validated against ``T``; the type parameter only lets
        callers name the claim shape they expect (a TypedDict, say).

        Returns:
            The payload object, or None if the payload is JSON ``null``.

        Raises:
            MalformedToken: The token is not three dot-separated segments.
            SignatureInvalid: The key is unusable or the signature does not verify.
            MalformedClaims: The payload is not a JSON object.
        """
        segments = split(token)
        public_key = load_p384_public_key(public_key_b64)

        try:
            signature = base64url_decode(segments.signature)
        except ValueError as e:
            raise SignatureInvalid("Signature segment is not base64url") from e

        if not _ES384.verify(segments.signing_input, public_key, signature):
            raise SignatureInvalid("Invalid JWT token, failed to verify")

        return cast("T | None", decode_segment(segments.payload))

    async def verify_claims(self, token: str, public_key_b64: str) -> ClaimSet:
        """Like verify(), but shaped as a ClaimSet.

        Raises:
            MalformedClaims: Additionally, if the payload lacks a numeric ``exp``.
        """
        return ClaimSet.from_claims(await self.verify(token, public_key_b64))


def load_p384_public_key(public_key_b64: str) -> ec.EllipticCurvePublicKey:
    """Decode a standard-base64 P-384 public key.

    Raises:
        SignatureInvalid: If the value is not base64, not a key, or not on P-384.
    """
    try:
        raw = base64.b64decode(public_key_b64, validate=True)
    except (binascii.Error, ValueError) as e:
        raise SignatureInvalid("Public key is not valid base64") from e

    try:
        if len(raw) == _P384_POINT_LENGTH and raw[0] == 0x04:
            key = ec.EllipticCurvePublicKey.from_encoded_point(ec.SECP384R1(), raw)
        else:
            key = serialization.load_der_public_key(raw)
    except (ValueError, UnsupportedKeyAlgorithm) as e:
        raise SignatureInvalid("Public key could not be imported") from e

    if not isinstance(key, ec.EllipticCurvePublicKey) or not isinstance(
        key.curve, ec.SECP384R1
    ):
        raise SignatureInvalid("Public key is not a P-384 EC key")
    return key
