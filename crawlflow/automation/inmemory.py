"""In-memory automation driver for testing."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from .base import BaseDriver

ScriptResult = Union[Any, Callable[[Mapping[str, Any]], Any]]


@dataclass
class FakeElement:
    text: str = ""
    visible: bool = True
    value: str = ""


class InMemoryDriver(BaseDriver):
    """Scripted page kept in memory for unit tests and dry runs.

    ``pages`` maps a URL to the elements that exist once it is navigated to;
    ``scripts`` maps evaluated code to a value or to a callable receiving the
    variable bindings. Every action is appended to ``actions``.
    """

    def __init__(
        self,
        url: str = "about:blank",
        elements: Optional[Dict[str, FakeElement]] = None,
        pages: Optional[Dict[str, Dict[str, FakeElement]]] = None,
        scripts: Optional[Dict[str, ScriptResult]] = None,
        fail_samples: bool = False,
    ) -> None:
        self.url = url
        self.elements: Dict[str, FakeElement] = dict(elements or {})
        self.pages = dict(pages or {})
        self.scripts = dict(scripts or {})
        self.fail_samples = fail_samples
        self.actions: List[Tuple[str, Dict[str, Any]]] = []
        self.initialised = False
        self.cleaned_up = False
        self.samples_taken = 0

    def _record(self, action: str, **details: Any) -> None:
        self.actions.append((action, details))

    def _element(self, xpath: str) -> FakeElement:
        element = self.elements.get(xpath)
        if element is None:
            raise LookupError(f"no element matches xpath {xpath}")
        return element

    async def init(self) -> "InMemoryDriver":
        self.initialised = True
        return self

    async def cleanup(self) -> None:
        self.cleaned_up = True

    async def current_url(self) -> str:
        return self.url

    async def navigate(self, url: str, wait_until: str = "page_loaded") -> None:
        self._record("navigate", url=url, wait_until=wait_until)
        self.url = url
        if url in self.pages:
            self.elements = dict(self.pages[url])

    async def click(
        self,
        xpath: str,
        button: str = "left",
        click_count: int = 1,
        delay: float = 0,
        timeout: float = 5,
    ) -> None:
        self._element(xpath)
        self._record("click", xpath=xpath, button=button, click_count=click_count)

    async def fill(self, xpath: str, value: str, clear: bool = False, timeout: float = 5) -> None:
        element = self._element(xpath)
        element.value = value
        self._record("fill", xpath=xpath, value=value, clear=clear)

    async def press(self, key: str, xpath: Optional[str] = None, timeout: float = 5) -> None:
        if xpath:
            self._element(xpath)
        self._record("press", key=key, xpath=xpath)

    async def scroll(self, x: float = 0, y: float = 0, xpath: Optional[str] = None) -> None:
        self._record("scroll", x=x, y=y, xpath=xpath)

    async def wait_for_element(self, xpath: str, state: str = "visible", timeout: float = 5) -> None:
        element = self.elements.get(xpath)
        ready = element is not None and (state != "visible" or element.visible)
        if not ready:
            raise TimeoutError(f"element {xpath} not {state} within {timeout:g}s")
        self._record("wait_for_element", xpath=xpath, state=state)

    async def is_visible(self, xpath: str) -> bool:
        element = self.elements.get(xpath)
        return element is not None and element.visible

    async def exists(self, xpath: str) -> bool:
        return xpath in self.elements

    async def page_text(self) -> str:
        return " ".join(el.text for el in self.elements.values() if el.visible)

    async def text_content(self, xpath: str) -> Optional[str]:
        return self._element(xpath).text

    async def evaluate(self, code: str, variables: Mapping[str, Any] | None = None) -> Any:
        bindings = dict(variables or {})
        self._record("evaluate", code=code, variables=bindings)
        result = self.scripts.get(code)
        if callable(result):
            return result(bindings)
        return result

    async def capture_sample(self) -> Optional[Dict[str, Any]]:
        if self.fail_samples:
            raise RuntimeError("sample capture failed")
        self.samples_taken += 1
        return {"kind": "snapshot", "url": self.url}
