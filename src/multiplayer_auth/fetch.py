"""HTTP fetch capability used to retrieve trust material.

The cache only needs "GET a URL, give me status and body". FetchResponse is
that result; HttpxFetcher is the default implementation. Tests inject a plain
async callable instead.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

import httpx

_DEFAULT_TIMEOUT = 10.0


@dataclass(frozen=True, slots=True)
class FetchResponse:
    """Status code and raw body of a completed HTTP request."""

    status: int
    body: bytes = b""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def json(self) -> Any:
        """Parse the body as JSON.

        Raises:
            ValueError: If the body is not valid UTF-8 JSON.
        """
        return json.loads(self.body)


class HttpxFetcher:
    """Fetch implementation backed by ``httpx.AsyncClient``.

    A fresh client is opened per request unless one is supplied, so the
    fetcher is safe to share across event loops (Flask runs each async view
    in its own loop).

    Raises ``httpx.HTTPError`` on transport failures. HTTP error statuses are
    returned, not raised.
    """

    def __init__(
        self,
        timeout: float = _DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._timeout = timeout
        self._client = client

    async def __call__(self, url: str) -> FetchResponse:
        if self._client is not None:
            response = await self._client.get(url)
        else:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(url)
        return FetchResponse(status=response.status_code, body=response.content)
