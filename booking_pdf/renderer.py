import logging
from typing import Any, Optional, Protocol

from playwright.async_api import async_playwright

logger = logging.getLogger(__name__)

CHROMIUM_ARGS = [
    "--no-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
]


class DocumentRenderer(Protocol):
    async def render(self, html: str, options: dict[str, Any]) -> bytes: ...


class PlaywrightRenderer:
    """Print HTML to PDF with a headless Chromium.

    A fresh browser is launched for every call and closed again whether or
    not the page could be printed.
    """

    def __init__(self, launch_args: Optional[list[str]] = None):
        self.launch_args = CHROMIUM_ARGS if launch_args is None else launch_args

    async def render(self, html: str, options: dict[str, Any]) -> bytes:
        async with async_playwright() as playwright:
            browser = await playwright.chromium.launch(
                headless=True, args=self.launch_args
            )
            try:
                page = await browser.new_page()
                await page.set_content(html, wait_until="networkidle")
                return await page.pdf(**options)
            finally:
                await browser.close()
                logger.debug("Closed headless browser")
