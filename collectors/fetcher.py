"""PageFetcher: fast HTTP path plus a slow, higher-fidelity rendered path."""

from __future__ import annotations

import httpx
import structlog

from collectors.http_client import FetchResult, HttpClient
from collectors.renderer import render_page
from core import verbose
from core.config import Settings

logger = structlog.get_logger()


class PageFetcher:
    """Retrieves raw HTML for a single URL on demand."""

    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings or Settings()
        self._transport = transport

    async def fetch_standard(self, url: str) -> FetchResult:
        """Plain GET bounded by the standard fetch timeout.

        Raises collectors.errors.FetchError subclasses.
        """
        verbose.step(f"GET {url}")
        async with HttpClient(
            timeout=self.settings.fetch_timeout_seconds,
            user_agent=self.settings.user_agent,
            transport=self._transport,
        ) as client:
            result = await client.fetch(url)
        logger.info(
            "standard_fetch_ok",
            url=url,
            status=result.status_code,
            bytes=len(result.html),
        )
        return result

    async def fetch_rendered(self, url: str) -> str:
        """Rendered DOM via headless browser.

        Raises collectors.errors.RenderFailure.
        """
        html = await render_page(
            url,
            timeout_seconds=self.settings.render_timeout_seconds,
            settle_ms=self.settings.render_settle_ms,
            user_agent=self.settings.browser_user_agent,
        )
        logger.info("rendered_fetch_ok", url=url, bytes=len(html))
        return html
