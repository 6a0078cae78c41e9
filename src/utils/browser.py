"""Headless Chromium page accessor built on Playwright.

One accessor owns one browser process for the lifetime of a single
resolution; nothing is shared between requests.
"""

from __future__ import annotations

import structlog
from playwright.async_api import Browser, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError

from src.resolver.base import PageAccessor, PageSnapshot
from src.resolver.errors import FetchFailedError

logger = structlog.get_logger()

_LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-gpu",
    "--no-zygote",
    "--disable-dev-shm-usage",
]

# Collect every meta[property]/meta[name] pair; first occurrence of a key wins
_META_SCRIPT = """() => {
    const tags = {};
    for (const el of document.querySelectorAll('meta[property], meta[name]')) {
        const key = el.getAttribute('property') || el.getAttribute('name');
        const value = el.getAttribute('content');
        if (key && value && !(key in tags)) tags[key] = value;
    }
    return tags;
}"""


class PlaywrightPageAccessor(PageAccessor):
    def __init__(self, launch_args: list[str] | None = None) -> None:
        self._launch_args = launch_args if launch_args is not None else _LAUNCH_ARGS
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None

    async def navigate(
        self, url: str, headers: dict[str, str], timeout: float
    ) -> PageSnapshot:
        extra_headers = {k: v for k, v in headers.items() if k.lower() != "user-agent"}
        user_agent = next(
            (v for k, v in headers.items() if k.lower() == "user-agent"), None
        )

        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(
                headless=True, args=self._launch_args
            )
            context = await self._browser.new_context(
                user_agent=user_agent,
                extra_http_headers=extra_headers,
            )
            page = await context.new_page()
            await page.goto(url, wait_until="networkidle", timeout=timeout * 1000)

            meta_tags = await page.evaluate(_META_SCRIPT)
            markup = await page.content()
            final_url = page.url
        except PlaywrightError as exc:
            # TimeoutError is a subclass of Error
            logger.warning("navigation_failed", url=url, error=str(exc))
            raise FetchFailedError(f"Could not load page: {url}") from exc

        return PageSnapshot(
            meta_tags=dict(meta_tags or {}),
            markup=markup,
            final_url=final_url,
        )

    async def close(self) -> None:
        browser, self._browser = self._browser, None
        pw, self._playwright = self._playwright, None
        try:
            if browser is not None:
                await browser.close()
        except PlaywrightError as exc:
            logger.warning("browser_close_failed", error=str(exc))
        finally:
            if pw is not None:
                await pw.stop()
