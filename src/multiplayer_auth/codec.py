"""Splitting and decoding of compact JWS tokens.

Pure functions, no I/O and no signature checks. The verifiers use these to
read the header before a key is known and to read the payload once the
signature has passed.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any, NamedTuple

from jwt.utils import base64url_decode

from .errors import MalformedClaims, MalformedToken


class TokenSegments(NamedTuple):
    """The three base64url segments of a token, still encoded."""

    header: str
    payload: str
    signature: str

    @property
    def signing_input(self) -> bytes:
        """Bytes the signature was computed over: ``<header>.<payload>``."""
        return f"{self.header}.{self.payload}".encode("utf-8")


def split(token: str) -> TokenSegments:
    """Split a token on its first and last ``.``.

    Anything between the first and last delimiter is the payload segment, so a
    token with extra dots still splits; it simply fails to decode later.

    Raises:
        MalformedToken: If there is no ``.``, or only one.
    """
    first = token.find(".")
    last = token.rfind(".")
    if first == -1 or last == -1 or first >= last:
        raise MalformedToken("Malformed JWT token")
    return TokenSegments(token[:first], token[first + 1 : last], token[last + 1 :])


def decode_segment(segment: str) -> Mapping[str, Any] | None:
    """Decode a base64url JSON segment.

    JSON ``null`` passes through as ``None``; callers that need an object
    check for it themselves.

    Raises:
        MalformedClaims: If the segment is not base64url, not UTF-8, not JSON,
            or decodes to a scalar or array.
    """
    try:
        data = json.loads(
            base64url_decode(segment).decode("utf-8"),
            parse_constant=_reject_constant,
        )
    except ValueError as e:
        raise MalformedClaims(f"Undecodable token segment: {e}") from e

    if data is not None and not isinstance(data, dict):
        raise MalformedClaims(
            f"Unexpected JWT data type, expected object, but received: {type(data).__name__}"
        )
    return data


def _reject_constant(name: str) -> Any:
    # NaN and Infinity are not JSON; json.loads accepts them by default.
    raise ValueError(f"Non-standard JSON constant: {name}")
