"""Settings for the multiplayer authentication package.

The defaults are part of the service contract: tokens are only accepted for
the multiplayer audience, and the provider's metadata lives at a fixed
well-known URL. Deployments can override them through the environment or a
``.env`` file.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Final

from dotenv import load_dotenv

DEFAULT_DISCOVERY_URL: Final[str] = (
    "https://authorization.franchise.minecraft-services.net/.well-known/openid-configuration"
)
"""Well-known OpenID configuration URL of the identity provider."""

DEFAULT_AUDIENCE: Final[str] = "api://auth-minecraft-services/multiplayer"
"""The only ``aud`` value provider-issued tokens are accepted for."""

DEFAULT_KEYS_TTL_SECONDS: Final[float] = 60 * 60
"""Signing key set time-to-live: one hour."""

DEFAULT_HTTP_TIMEOUT: Final[float] = 10.0
"""Per-request timeout for trust material fetches, in seconds."""

_ENV_PREFIX: Final[str] = "MULTIPLAYER_AUTH_"


@dataclass(frozen=True, slots=True)
class AuthSettings:
    """Runtime configuration for the verifiers and the trust cache.

    Attributes:
        discovery_url: Where to fetch the provider's discovery document.
        audience: Expected ``aud`` claim of provider-issued tokens.
        keys_ttl_seconds: How long a fetched key set stays fresh.
        http_timeout: Timeout applied by the default HTTP fetcher.
    """

    discovery_url: str = DEFAULT_DISCOVERY_URL
    audience: str = DEFAULT_AUDIENCE
    keys_ttl_seconds: float = DEFAULT_KEYS_TTL_SECONDS
    http_timeout: float = DEFAULT_HTTP_TIMEOUT

    @classmethod
    def from_env(cls) -> AuthSettings:
        """Build settings from ``MULTIPLAYER_AUTH_*`` environment variables.

        Loads a ``.env`` file first if one is present. Unset variables keep
        their defaults.

        Raises:
            ValueError: If a numeric variable does not parse as a float.
        """
        load_dotenv()
        env = os.environ
        return cls(
            discovery_url=env.get(f"{_ENV_PREFIX}DISCOVERY_URL", DEFAULT_DISCOVERY_URL),
            audience=env.get(f"{_ENV_PREFIX}AUDIENCE", DEFAULT_AUDIENCE),
            keys_ttl_seconds=float(
                env.get(f"{_ENV_PREFIX}KEYS_TTL_SECONDS", DEFAULT_KEYS_TTL_SECONDS)
            ),
            http_timeout=float(env.get(f"{_ENV_PREFIX}HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT)),
        )
