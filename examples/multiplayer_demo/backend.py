from flask import Flask, g, jsonify

from multiplayer_auth import (
    AuthExtension,
    Authenticator,
    EnvelopeExtractor,
    PublicKeyResolver,
    build_authenticator,
)


def create_app(
    authenticator: Authenticator | None = None,
    public_key_resolver: PublicKeyResolver | None = None,
) -> Flask:
    """
    Create a minimal multiplayer backend protected by token authentication.

    Args:
        authenticator: Verifier graph to use. Defaults to one built from the
            MULTIPLAYER_AUTH_* environment (see multiplayer_auth.config).
        public_key_resolver: Looks up the client key for self-signed joins.
            Without one, self-signed envelopes are refused with 400.

    Returns:
        Flask: Configured Flask application instance
    """
    app = Flask(__name__)
    authenticator = authenticator or build_authenticator()

    # bearer header for API calls, full envelope in the body for joins
    auth = AuthExtension(authenticator)
    auth.init_app(app)
    envelope_auth = AuthExtension(
        authenticator,
        extractor=EnvelopeExtractor(),
        public_key_resolver=public_key_resolver,
    )

    @app.get("/api/session")
    @auth.require()
    async def session():
        """Return the verified identity of the bearer."""
        claims = g.claims
        return jsonify(
            {
                "gamerTag": claims.gamer_tag,
                "xuid": claims.external_user_id,
                "playfabId": claims.partner_id,
            }
        ), 200

    @app.post("/api/join")
    @envelope_auth.require()
    async def join():
        """Join a world using an authentication envelope in the body."""
        return jsonify({"status": "joined", "gamerTag": g.claims.gamer_tag}), 200

    @app.errorhandler(400)
    def bad_request(error):
        return jsonify({"status": "error", "message": error.description}), 400

    @app.errorhandler(401)
    def unauthorized(error):
        return jsonify(
            {"status": "denied", "message": error.description, "authenticated": False}
        ), 401

    @app.errorhandler(503)
    def unavailable(error):
        return jsonify({"status": "error", "message": error.description}), 503

    return app
