"""Playwright-backed automation driver."""

from __future__ import annotations

import base64
import logging
from typing import Any, Dict, Mapping, Optional

try:
    from playwright.async_api import async_playwright
except ImportError:
    async_playwright = None

from ..config import BrowserConfig
from .base import BaseDriver

logger = logging.getLogger(__name__)

WAIT_UNTIL = {
    "page_loaded": "load",
    "dom_ready": "domcontentloaded",
    "network_idle": "networkidle",
    "response_received": "commit",
}

ELEMENT_STATE = {
    "visible": "visible",
    "exists": "attached",
}

_EVALUATE_WITH_VARIABLES = """
({ code, variables }) => {
  const fn = new Function('variables', code);
  return fn(variables);
}
"""


def _ms(seconds: float) -> float:
    return float(seconds) * 1000


class PlaywrightDriver(BaseDriver):
    """Drive a real browser page through ``playwright.async_api``."""

    def __init__(self, config: Optional[BrowserConfig] = None) -> None:
        if async_playwright is None:
            raise ImportError(
                "playwright package is required for PlaywrightDriver "
                "(pip install playwright && playwright install chromium)"
            )
        self.config = config or BrowserConfig()
        self._playwright = None
        self._browser = None
        self._context = None
        self._page = None

    @property
    def page(self):
        if self._page is None:
            raise RuntimeError("browser session is not initialised")
        return self._page

    def _locator(self, xpath: str):
        return self.page.locator(f"xpath={xpath}")

    async def init(self) -> "PlaywrightDriver":
        if self._browser is not None:
            return self
        logger.info(f"Starting {self.config.browser_type} browser (headless={self.config.headless})")
        self._playwright = await async_playwright().start()
        browser_type = getattr(self._playwright, self.config.browser_type)
        self._browser = await browser_type.launch(headless=self.config.headless)
        self._context = await self._browser.new_context(
            viewport={
                "width": self.config.viewport_width,
                "height": self.config.viewport_height,
            },
            locale=self.config.locale,
        )
        self._page = await self._context.new_page()
        return self

    async def cleanup(self) -> None:
        try:
            if self._context is not None:
                await self._context.close()
            if self._browser is not None:
                await self._browser.close()
        except Exception as e:
            logger.warning(f"Error while closing browser: {e}")
        finally:
            if self._playwright is not None:
                await self._playwright.stop()
            self._page = None
            self._context = None
            self._browser = None
            self._playwright = None

    async def current_url(self) -> str:
        return self.page.url

    async def navigate(self, url: str, wait_until: str = "page_loaded") -> None:
        await self.page.goto(url, wait_until=WAIT_UNTIL.get(wait_until, "load"))

    async def click(
        self,
        xpath: str,
        button: str = "left",
        click_count: int = 1,
        delay: float = 0,
        timeout: float = 5,
    ) -> None:
        await self._locator(xpath).click(
            button=button,
            click_count=click_count,
            delay=_ms(delay),
            timeout=_ms(timeout),
        )

    async def fill(self, xpath: str, value: str, clear: bool = False, timeout: float = 5) -> None:
        locator = self._locator(xpath)
        if clear:
            await locator.fill("", timeout=_ms(timeout))
        await locator.fill(value, timeout=_ms(timeout))

    async def press(self, key: str, xpath: Optional[str] = None, timeout: float = 5) -> None:
        if xpath:
            await self._locator(xpath).press(key, timeout=_ms(timeout))
        else:
            await self.page.keyboard.press(key)

    async def scroll(self, x: float = 0, y: float = 0, xpath: Optional[str] = None) -> None:
        if xpath:
            await self._locator(xpath).first.scroll_into_view_if_needed()
            return
        await self.page.mouse.wheel(x, y)

    async def wait_for_element(self, xpath: str, state: str = "visible", timeout: float = 5) -> None:
        await self._locator(xpath).first.wait_for(
            state=ELEMENT_STATE.get(state, "visible"), timeout=_ms(timeout)
        )

    async def is_visible(self, xpath: str) -> bool:
        return await self._locator(xpath).first.is_visible()

    async def exists(self, xpath: str) -> bool:
        return await self._locator(xpath).count() > 0

    async def page_text(self) -> str:
        return await self.page.inner_text("body")

    async def text_content(self, xpath: str) -> Optional[str]:
        return await self._locator(xpath).first.text_content()

    async def evaluate(self, code: str, variables: Mapping[str, Any] | None = None) -> Any:
        return await self.page.evaluate(
            _EVALUATE_WITH_VARIABLES, {"code": code, "variables": dict(variables or {})}
        )

    async def capture_sample(self) -> Optional[Dict[str, Any]]:
        if self._page is None:
            return None
        image = await self._page.screenshot(type="jpeg", quality=self.config.sample_quality)
        return {
            "kind": "screenshot",
            "mime": "image/jpeg",
            "data": base64.b64encode(image).decode("ascii"),
        }
