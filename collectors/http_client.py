"""HTTP client for the standard (non-rendered) fetch path."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any

import httpx

from collectors.errors import (
    FetchTimeout,
    HttpStatusError,
    NetworkUnreachable,
    RequestFailed,
    SoftBlocked,
)
from core import verbose

ACCEPT_HEADER = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"

# Statuses that mean "the page exists but you look like a bot"
SOFT_BLOCK_STATUSES = {403, 429}


@dataclass
class FetchResult:
    """Result of a successful HTTP fetch."""

    url: str
    status_code: int
    html: str
    content_type: str | None
    duration_ms: float


class HttpClient:
    """Single-shot HTTP client. No retries: the rendered path is the fallback."""

    def __init__(
        self,
        timeout: float = 15.0,
        user_agent: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.timeout = timeout
        self.user_agent = user_agent or "JobSync/1.0"
        self._transport = transport

        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> HttpClient:
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout),
            headers={"User-Agent": self.user_agent, "Accept": ACCEPT_HEADER},
            follow_redirects=True,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args: Any) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def fetch(self, url: str) -> FetchResult:
        """GET a page and classify the outcome.

        Raises:
            FetchTimeout: the request exceeded the timeout
            NetworkUnreachable: DNS or connection failure
            SoftBlocked: the origin answered 403 or 429
            HttpStatusError: any other non-2xx status
            RequestFailed: too many redirects or an undecodable body
        """
        if not self._client:
            raise RuntimeError("Client not initialized. Use 'async with' context.")

        start_time = time.monotonic()
        try:
            response = await self._client.get(url)
        except httpx.TimeoutException as e:
            raise FetchTimeout(str(e) or "timed out") from e
        except httpx.TransportError as e:
            raise NetworkUnreachable(str(e) or type(e).__name__) from e
        except httpx.RequestError as e:
            raise RequestFailed(str(e) or type(e).__name__) from e

        duration_ms = (time.monotonic() - start_time) * 1000
        verbose.detail(
            f"{response.status_code} | {len(response.content) / 1024:.1f}kb | {duration_ms:.0f}ms"
        )

        if response.status_code in SOFT_BLOCK_STATUSES:
            raise SoftBlocked(response.status_code, response.text)
        if not response.is_success:
            raise HttpStatusError(response.status_code)

        return FetchResult(
            url=str(response.url),
            status_code=response.status_code,
            html=response.text,
            content_type=response.headers.get("content-type"),
            duration_ms=duration_ms,
        )
