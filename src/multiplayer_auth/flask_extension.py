"""Flask extension protecting routes with multiplayer token authentication.

Security Model:
1. Extract an authentication payload from the request (header or body)
2. Route it to the matching verifier and verify signature + claims
3. Store the verified ClaimSet in ``flask.g.claims`` for route access
4. Convert auth errors to HTTP responses (400/401/503)

Views are wrapped in an async function, so Flask must be installed with
async support (``flask[async]``).
"""

from __future__ import annotations

import inspect
import logging
from functools import wraps
from typing import TYPE_CHECKING, Any, Final

from flask import Flask, abort, g

from .errors import AuthError
from .extractors import BearerExtractor

if TYPE_CHECKING:
    from .authenticator import Authenticator
    from .protocols import Extractor, PublicKeyResolver, ViewFunc

logger = logging.getLogger(__name__)

_EXT_KEY: Final[str] = "multiplayer_auth"
"""Flask extensions registry key for AuthExtension."""


class AuthExtension:
    """
    Flask decorator glue for multiplayer authentication.

    Responsibilities:
    - Extract the authentication payload from the request
    - Verify it (Authenticator)
    - Store verified claims in `flask.g.claims`
    - Convert domain errors to HTTP responses (abort)

    Usage:
        auth = AuthExtension(build_authenticator())
        auth.init_app(app)

        @app.get("/session")
        @auth.require()
        async def session():
            return {"player": g.claims.gamer_tag}

    Self-signed clients need a ``public_key_resolver``. It is called with the
    extracted payload and its result is passed to the authenticator as the
    verification key. Without one, SELF_SIGNED envelopes are rejected with 400.
    """

    def __init__(
        self,
        authenticator: Authenticator,
        extractor: Extractor | None = None,
        public_key_resolver: PublicKeyResolver | None = None,
    ) -> None:
        self._authenticator = authenticator
        self._extractor: Extractor = extractor or BearerExtractor()
        self._resolve_key = public_key_resolver

    def init_app(
        self,
        app: Flask,
        *,
        authenticator: Authenticator | None = None,
        extractor: Extractor | None = None,
        public_key_resolver: PublicKeyResolver | None = None,
    ) -> None:
        """Register the extension on ``app``, optionally replacing collaborators."""
        if authenticator is not None:
            self._authenticator = authenticator
        if extractor is not None:
            self._extractor = extractor
        if public_key_resolver is not None:
            self._resolve_key = public_key_resolver

        app.extensions[_EXT_KEY] = self

    def require(self):
        """Decorator requiring a verified token for the wrapped view.

        Error mapping:
        - ``MissingToken``      -> HTTP 401
        - ``InvalidEnvelope``   -> HTTP 400
        - ``InvalidToken``      -> HTTP 401
        - ``ExpiredToken``      -> HTTP 401
        - ``ConfigUnavailable`` -> HTTP 503
        - Any other Error       -> HTTP 401 ("Authentication failed")

        Side Effects:
            Writes the verified ClaimSet to ``flask.g.claims`` before calling
            the view. May end the request early via ``flask.abort``.
        """

        def decorator(view: ViewFunc) -> ViewFunc:
            @wraps(view)
            async def wrapper(*args: Any, **kwargs: Any) -> Any:
                try:
                    payload = self._extractor.extract()
                    public_key = self._resolve_key(payload) if self._resolve_key else None
                    g.claims = await self._authenticator.authenticate(
                        payload, public_key=public_key
                    )
                except AuthError as e:
                    logger.info("Authentication rejected: %s: %s", type(e).__name__, e)
                    abort(e.error_code, description=e.description)
                except Exception:
                    logger.exception("Unexpected error during authentication")
                    abort(401, description="Authentication failed")

                if inspect.iscoroutinefunction(view):
                    return await view(*args, **kwargs)
                return view(*args, **kwargs)

            return wrapper

        return decorator
