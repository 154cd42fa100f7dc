import base64
import json
from collections.abc import Callable
from typing import Any

import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat
from flask import Flask
from jwt.algorithms import RSAAlgorithm

from multiplayer_auth import DEFAULT_AUDIENCE, DEFAULT_DISCOVERY_URL, FetchResponse

NOW = 1_700_000_000.0
ISSUER = "https://authorization.franchise.minecraft-services.net/"
JWKS_URI = "https://authorization.franchise.minecraft-services.net/.well-known/keys"
KID = "kid1"


@pytest.fixture()
def app():
    app = Flask(__name__)
    app.config["TESTING"] = True
    return app


class FakeClock:
    """Settable clock, seconds since the epoch."""

    def __init__(self, now: float = NOW):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


class FakeFetch:
    """
    Scripted stand-in for the HTTP fetch capability.

    Each URL maps to a list of outcomes (FetchResponse or Exception). Calls
    consume outcomes in order; the last one repeats. Every call is recorded.
    """

    def __init__(self, routes: dict[str, list[FetchResponse | Exception]] | None = None):
        self.routes: dict[str, list[FetchResponse | Exception]] = routes or {}
        self.calls: list[str] = []

    def count(self, url: str) -> int:
        return self.calls.count(url)

    async def __call__(self, url: str) -> FetchResponse:
        self.calls.append(url)
        outcomes = self.routes.get(url)
        if not outcomes:
            return FetchResponse(status=404)
        outcome = outcomes.pop(0) if len(outcomes) > 1 else outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def json_response(body: Any, status: int = 200) -> FetchResponse:
    return FetchResponse(status=status, body=json.dumps(body).encode("utf-8"))


def discovery_body(
    *,
    jwks_uri: str = JWKS_URI,
    issuer: str = ISSUER,
    algorithms: tuple[str, ...] = ("RS256",),
) -> dict[str, Any]:
    return {
        "jwks_uri": jwks_uri,
        "issuer": issuer,
        "claims_supported": ["xname", "xid", "mid", "cpk"],
        "id_token_signing_alg_values_supported": list(algorithms),
    }


@pytest.fixture(scope="session")
def rsa_private_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def ec_private_key() -> ec.EllipticCurvePrivateKey:
    return ec.generate_private_key(ec.SECP384R1())


@pytest.fixture(scope="session")
def ec_public_key_b64(ec_private_key: ec.EllipticCurvePrivateKey) -> str:
    """Standard-base64 DER SubjectPublicKeyInfo of ``ec_private_key``."""
    der = ec_private_key.public_key().public_bytes(Encoding.DER, PublicFormat.SubjectPublicKeyInfo)
    return base64.b64encode(der).decode("ascii")


@pytest.fixture
def rsa_jwk(rsa_private_key: rsa.RSAPrivateKey) -> dict[str, Any]:
    jwk = json.loads(RSAAlgorithm.to_jwk(rsa_private_key.public_key()))
    jwk.update({"kid": KID, "use": "sig", "alg": "RS256"})
    return jwk


@pytest.fixture
def fake_fetch(rsa_jwk: dict[str, Any]) -> FakeFetch:
    """Provider that serves a valid discovery document and a one-key JWKS."""
    return FakeFetch(
        {
            DEFAULT_DISCOVERY_URL: [json_response(discovery_body())],
            JWKS_URI: [json_response({"keys": [rsa_jwk]})],
        }
    )


def player_claims(**overrides: Any) -> dict[str, Any]:
    claims = {
        "xname": "Steve",
        "xid": "2535400000000000",
        "mid": "ABCDEF0123456789",
        "aud": DEFAULT_AUDIENCE,
        "iss": ISSUER,
        "exp": int(NOW) + 3600,
        "cpk": "MHYwEAYHKoZIzj0CAQYFK4EEACIDYgAE",
    }
    claims.update(overrides)
    return claims


@pytest.fixture
def make_provider_token(rsa_private_key: rsa.RSAPrivateKey) -> Callable[..., str]:
    """
    Factory fixture that returns a function.

    Usage in tests:
        token = make_provider_token(exp=0, headers={"typ": "JOSE"})
    """

    def _make(
        *,
        kid: str = KID,
        algorithm: str = "RS256",
        headers: dict[str, Any] | None = None,
        **claim_overrides: Any,
    ) -> str:
        return jwt.encode(
            player_claims(**claim_overrides),
            rsa_private_key,
            algorithm=algorithm,
            headers={"kid": kid, **(headers or {})},
        )

    return _make
