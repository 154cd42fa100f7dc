"""Credential extraction strategies for Flask requests.

This module provides implementations of the Extractor protocol:
- BearerExtractor: ``Authorization: Bearer <token>`` header, treated as a
  provider-issued (FULL) token
- EnvelopeExtractor: JSON request body holding a full authentication envelope
"""

from __future__ import annotations

from flask import request

from .errors import InvalidEnvelope, MissingToken
from .models import AuthenticationPayload, AuthenticationType
from .payload import parse


class BearerExtractor:
    """Extracts a provider-issued token from the Authorization header.

    Expects requests with header format:
        Authorization: Bearer <token>
    """

    def extract(self) -> AuthenticationPayload:
        """Return the bearer token as a FULL authentication payload.

        Raises:
            MissingToken: If the header is missing or doesn't use the Bearer scheme.
        """
        auth_header = request.headers.get("Authorization", "").strip()

        if not auth_header:
            raise MissingToken("Missing Authorization header")

        parts = auth_header.split(" ", 1)
        if len(parts) != 2:
            raise MissingToken("Invalid Authorization header format (expected 'Bearer <token>')")

        scheme, token = parts
        if scheme.lower() != "bearer":
            raise MissingToken("Invalid authorization scheme (expected 'Bearer')")

        token = token.strip()
        if not token:
            raise MissingToken("Bearer token is empty")

        return AuthenticationPayload(type=AuthenticationType.FULL, token=token)


class EnvelopeExtractor:
    """Extracts the authentication envelope from a JSON request body.

    Example body:
        {"AuthenticationType": 0, "Token": "<jws>"}
    """

    def extract(self) -> AuthenticationPayload:
        """Parse the request body as an envelope.

        Raises:
            MissingToken: If the request has no JSON body.
            InvalidEnvelope: If the body is JSON but not a valid envelope.
        """
        data = request.get_json(silent=True)
        if data is None:
            raise MissingToken("Missing authentication envelope")
        if not isinstance(data, dict):
            raise InvalidEnvelope("Envelope must be a JSON object")
        return parse(data)
