from typing import Any

import jwt
import pytest
from conftest import NOW, FakeClock, player_claims
from cryptography.hazmat.primitives.asymmetric import ec

import multiplayer_auth as m


class RecordingProvider:
    """Duck-typed TokenVerifier for tests."""

    def __init__(self):
        self.tokens: list[str] = []

    async def authenticate(self, token: str) -> m.ClaimSet:
        self.tokens.append(token)
        return m.ClaimSet.from_claims(player_claims())


@pytest.mark.asyncio
@pytest.mark.parametrize("kind", [m.AuthenticationType.FULL, m.AuthenticationType.GUEST])
async def test_provider_types_route_to_provider(kind: m.AuthenticationType):
    provider = RecordingProvider()
    authenticator = m.Authenticator(provider)

    claims = await authenticator.authenticate(m.AuthenticationPayload(type=kind, token="a.b.c"))

    assert provider.tokens == ["a.b.c"]
    assert claims.gamer_tag == "Steve"


@pytest.mark.asyncio
async def test_self_signed_requires_public_key():
    provider = RecordingProvider()
    payload = m.AuthenticationPayload(type=m.AuthenticationType.SELF_SIGNED, token="a.b.c")

    with pytest.raises(m.InvalidEnvelope):
        await m.Authenticator(provider).authenticate(payload)
    assert provider.tokens == []


@pytest.mark.asyncio
async def test_self_signed_verified_against_supplied_key(
    ec_private_key: ec.EllipticCurvePrivateKey, ec_public_key_b64: str, clock: FakeClock
):
    token = jwt.encode(player_claims(xname="SelfMade"), ec_private_key, algorithm="ES384")
    provider = RecordingProvider()

    claims = await m.Authenticator(provider, clock=clock).authenticate(
        m.AuthenticationPayload(type=m.AuthenticationType.SELF_SIGNED, token=token),
        public_key=ec_public_key_b64,
    )

    assert claims.gamer_tag == "SelfMade"
    assert provider.tokens == []


@pytest.mark.asyncio
async def test_expired_self_signed_token_rejected(
    ec_private_key: ec.EllipticCurvePrivateKey, ec_public_key_b64: str, clock: FakeClock
):
    token = jwt.encode(player_claims(exp=int(NOW) - 1), ec_private_key, algorithm="ES384")
    payload = m.AuthenticationPayload(type=m.AuthenticationType.SELF_SIGNED, token=token)

    with pytest.raises(m.ExpiredToken):
        await m.Authenticator(RecordingProvider(), clock=clock).authenticate(
            payload, public_key=ec_public_key_b64
        )


@pytest.mark.asyncio
async def test_self_signed_token_valid_until_its_exp(
    ec_private_key: ec.EllipticCurvePrivateKey, ec_public_key_b64: str
):
    token = jwt.encode(player_claims(exp=int(NOW)), ec_private_key, algorithm="ES384")
    payload = m.AuthenticationPayload(type=m.AuthenticationType.SELF_SIGNED, token=token)
    authenticator = m.Authenticator(RecordingProvider(), clock=FakeClock(NOW))

    claims = await authenticator.authenticate(payload, public_key=ec_public_key_b64)

    assert claims.expires_at == int(NOW)


def test_build_authenticator_from_settings():
    settings = m.AuthSettings(audience="api://test", keys_ttl_seconds=60)

    authenticator = m.build_authenticator(settings)

    assert isinstance(authenticator, m.Authenticator)


def test_settings_from_env(monkeypatch: pytest.MonkeyPatch):
    env: dict[str, Any] = {
        "MULTIPLAYER_AUTH_DISCOVERY_URL": "https://idp.test/.well-known/openid-configuration",
        "MULTIPLAYER_AUTH_AUDIENCE": "api://test",
        "MULTIPLAYER_AUTH_KEYS_TTL_SECONDS": "120",
        "MULTIPLAYER_AUTH_HTTP_TIMEOUT": "2.5",
    }
    for name, value in env.items():
        monkeypatch.setenv(name, value)

    settings = m.AuthSettings.from_env()

    assert settings.discovery_url == "https://idp.test/.well-known/openid-configuration"
    assert settings.audience == "api://test"
    assert settings.keys_ttl_seconds == 120.0
    assert settings.http_timeout == 2.5


def test_settings_defaults(monkeypatch: pytest.MonkeyPatch):
    for name in ("DISCOVERY_URL", "AUDIENCE", "KEYS_TTL_SECONDS", "HTTP_TIMEOUT"):
        monkeypatch.delenv(f"MULTIPLAYER_AUTH_{name}", raising=False)

    settings = m.AuthSettings.from_env()

    assert settings.discovery_url == m.DEFAULT_DISCOVERY_URL
    assert settings.audience == "api://auth-minecraft-services/multiplayer"
    assert settings.keys_ttl_seconds == 3600
