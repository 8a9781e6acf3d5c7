"""Base interface for browser automation drivers."""

from __future__ import annotations

import abc
from typing import Any, Dict, Mapping, Optional


class BaseDriver(metaclass=abc.ABCMeta):
    """Abstract automation session owned by exactly one run.

    Timeouts are expressed in seconds. Element locators are XPath expressions.
    """

    async def __aenter__(self) -> "BaseDriver":
        await self.init()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.cleanup()

    @abc.abstractmethod
    async def init(self) -> "BaseDriver":
        """Open the session."""
        raise NotImplementedError

    @abc.abstractmethod
    async def cleanup(self) -> None:
        """Release the session. Must be safe to call more than once."""
        raise NotImplementedError

    @abc.abstractmethod
    async def current_url(self) -> str:
        raise NotImplementedError

    @abc.abstractmethod
    async def navigate(self, url: str, wait_until: str = "page_loaded") -> None:
        raise NotImplementedError

    @abc.abstractmethod
    async def click(
        self,
        xpath: str,
        button: str = "left",
        click_count: int = 1,
        delay: float = 0,
        timeout: float = 5,
    ) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    async def fill(self, xpath: str, value: str, clear: bool = False, timeout: float = 5) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    async def press(self, key: str, xpath: Optional[str] = None, timeout: float = 5) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    async def scroll(self, x: float = 0, y: float = 0, xpath: Optional[str] = None) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    async def wait_for_element(self, xpath: str, state: str = "visible", timeout: float = 5) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    async def is_visible(self, xpath: str) -> bool:
        raise NotImplementedError

    @abc.abstractmethod
    async def exists(self, xpath: str) -> bool:
        raise NotImplementedError

    @abc.abstractmethod
    async def page_text(self) -> str:
        raise NotImplementedError

    @abc.abstractmethod
    async def text_content(self, xpath: str) -> Optional[str]:
        raise NotImplementedError

    @abc.abstractmethod
    async def evaluate(self, code: str, variables: Mapping[str, Any] | None = None) -> Any:
        """Evaluate ``code`` in the page with ``variables`` bound as an argument."""
        raise NotImplementedError

    async def capture_sample(self) -> Optional[Dict[str, Any]]:
        """Capture a periodic sample such as a screenshot (none by default)."""
        return None
