"""Parsing of the inbound authentication envelope.

Clients send a JSON object of the form::

    {"AuthenticationType": 0, "Certificate": "...", "Token": "<jws>"}

``parse`` validates its shape only. Nothing here looks inside the token.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from .errors import InvalidEnvelope
from .models import AuthenticationPayload, AuthenticationType


def parse(raw: str | bytes | Mapping[str, Any]) -> AuthenticationPayload:
    """Parse an authentication envelope.

    Args:
        raw: JSON text, or an already-decoded JSON object.

    Raises:
        InvalidEnvelope: If the envelope is not an object, the type tag is not
            a known integer enumerant, the token is not a non-empty string, or
            the certificate is present but not a string.
    """
    if isinstance(raw, (str, bytes)):
        try:
            data = json.loads(raw)
        except ValueError as e:
            raise InvalidEnvelope(f"Envelope is not valid JSON: {e}") from e
    else:
        data = raw

    if not isinstance(data, Mapping):
        raise InvalidEnvelope("Envelope must be a JSON object")

    auth_type = data.get("AuthenticationType")
    # bool is an int subclass; true/false are not type tags.
    if isinstance(auth_type, bool) or not isinstance(auth_type, int):
        raise InvalidEnvelope(f"Type of Authentication must be number: {auth_type!r}")
    try:
        kind = AuthenticationType(auth_type)
    except ValueError as e:
        raise InvalidEnvelope(f"Unknown Authentication type: {auth_type}") from e

    token = data.get("Token")
    if not isinstance(token, str) or not token:
        raise InvalidEnvelope("Token has to be a non-empty string")

    certificate = data.get("Certificate")
    if certificate is not None and not isinstance(certificate, str):
        raise InvalidEnvelope("Certificate has to be a string")

    return AuthenticationPayload(type=kind, token=token, certificate=certificate)
