"""Rendered fetch path: headless Chromium via Playwright."""

from __future__ import annotations

from playwright.async_api import async_playwright

from collectors.errors import RenderFailure
from core import verbose


async def render_page(
    url: str,
    timeout_seconds: float = 30.0,
    settle_ms: int = 3000,
    user_agent: str | None = None,
) -> str:
    """Return the fully rendered DOM of a page.

    Navigation waits for DOMContentLoaded, then a fixed settle delay lets
    client-side rendering finish. The browser is closed on every exit path.

    Raises:
        RenderFailure: browser launch, navigation or capture failed
    """
    verbose.step(f"Rendering {url} in headless browser")
    try:
        async with async_playwright() as pw:
            browser = await pw.chromium.launch(headless=True)
            try:
                context = await browser.new_context(user_agent=user_agent)
                page = await context.new_page()
                await page.goto(
                    url,
                    wait_until="domcontentloaded",
                    timeout=timeout_seconds * 1000,
                )
                await page.wait_for_timeout(settle_ms)
                return await page.content()
            finally:
                await browser.close()
    except Exception as e:
        raise RenderFailure(e) from e
