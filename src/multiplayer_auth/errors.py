"""Authentication errors raised by the verification layer.

Every failure a caller can observe inherits from AuthError so application code
can catch a single type. Each class carries an HTTP ``error_code`` and a short
``description`` that the Flask extension turns into an ``abort(...)``.

The trust-material layer (TrustMaterialCache) never raises these. It returns
``None`` and the verifiers translate that into ConfigUnavailable or UnknownKey.

Security Note:
    Descriptions are intentionally generic. The message passed to the
    constructor is for server-side logs and is not sent to clients.
"""

from __future__ import annotations

from typing import ClassVar


class AuthError(Exception):
    """Base exception for all authentication failures.

    Attributes:
        error_code: HTTP status the Flask extension responds with.
        description: Client-facing description used in the HTTP response.
    """

    error_code: ClassVar[int] = 401
    description: ClassVar[str] = "Authentication failed"


class MissingToken(AuthError):  # noqa: N818
    """Raised when the request carries no usable credential.

    This occurs when:
    - The Authorization header is missing
    - The Authorization header is not of the form "Bearer <token>"
    - The request body holds no authentication envelope
    """

    description = "Missing token"


class InvalidEnvelope(AuthError):  # noqa: N818
    """Raised when an authentication envelope fails shape validation.

    This occurs when:
    - The envelope is not a JSON object
    - ``AuthenticationType`` is not an integer or not a known type
    - ``Token`` is not a non-empty string
    - ``Certificate`` is present but not a string
    - A self-signed payload is routed without a public key
    """

    error_code = 400
    description = "Invalid authentication envelope"


class InvalidToken(AuthError):  # noqa: N818
    """Raised when a token is present but cannot be verified.

    Parent of the specific rejection reasons below. Catch this to treat every
    structural, claim or signature failure the same way.
    """

    description = "Invalid token"


class MalformedToken(InvalidToken):
    """The token is not three ``.``-delimited segments."""


class MalformedClaims(InvalidToken):
    """A segment did not decode to a JSON object."""


class UnsupportedTokenType(InvalidToken):
    """The header ``typ`` is not ``JWT``."""


class UnsupportedAlgorithm(InvalidToken):
    """The header ``alg`` is not advertised by the provider or not implemented."""


class AudienceMismatch(InvalidToken):
    """The ``aud`` claim is not this service's audience."""


class IssuerMismatch(InvalidToken):
    """The ``iss`` claim does not match the discovery document's issuer."""


class UnknownKey(InvalidToken):
    """No signing key with the header's ``kid`` exists, even after a refresh."""


class SignatureInvalid(InvalidToken):
    """The signature does not verify against the resolved key."""


class ExpiredToken(AuthError):  # noqa: N818
    """Raised when a token's ``exp`` claim lies before the current instant.

    Note:
        Treat identically to InvalidToken from a security perspective. The
        distinction helps with metrics and debugging.
    """

    description = "Expired token"


class ConfigUnavailable(AuthError):  # noqa: N818
    """Raised when the provider's discovery document cannot be obtained.

    The token may well be valid; verification simply cannot proceed. Responds
    with 503 so clients retry rather than re-authenticate.
    """

    error_code = 503
    description = "Identity provider unavailable"
