"""Typed ``config`` payloads for each step kind."""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..constants import DEFAULT_SUCCESS_TIMEOUT_SEC
from ..contracts import StepKind

NAVIGATE_WAIT_STATES = ("page_loaded", "dom_ready", "network_idle", "response_received")
CLICK_BUTTONS = ("left", "right", "middle")
WAIT_ELEMENT_STATES = ("visible", "exists")


class StepConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class NavigateConfig(StepConfig):
    url: str = Field(min_length=1)
    wait_until: Literal["page_loaded", "dom_ready", "network_idle", "response_received"] = Field(
        default="page_loaded", alias="waitUntil"
    )


class ClickConfig(StepConfig):
    xpath: str = Field(min_length=1)
    button: Literal["left", "right", "middle"] = "left"
    click_count: int = Field(default=1, ge=1, alias="clickCount")
    delay: float = Field(default=0, ge=0)
    timeout: float = Field(default=DEFAULT_SUCCESS_TIMEOUT_SEC, gt=0)


class FillConfig(StepConfig):
    xpath: str = Field(min_length=1)
    value: Any = None
    clear: bool = False
    timeout: float = Field(default=DEFAULT_SUCCESS_TIMEOUT_SEC, gt=0)


class PressConfig(StepConfig):
    key: str = Field(min_length=1)
    xpath: Optional[str] = None
    timeout: float = Field(default=DEFAULT_SUCCESS_TIMEOUT_SEC, gt=0)


class ScrollConfig(StepConfig):
    x: float = 0
    y: float = 0
    xpath: Optional[str] = None


class WaitConfig(StepConfig):
    timeout: float = Field(gt=0)


class WaitElementConfig(StepConfig):
    type: Literal["visible", "exists"] = "visible"
    xpath: str = Field(min_length=1)
    timeout: float = Field(default=DEFAULT_SUCCESS_TIMEOUT_SEC, gt=0)


class ScriptConfig(StepConfig):
    code: str = Field(min_length=1)
    as_: Optional[str] = Field(default=None, alias="as")


class ExtractTextConfig(StepConfig):
    xpath: str = Field(min_length=1)
    as_: str = Field(min_length=1, alias="as")


class LogConfig(StepConfig):
    message: Optional[str] = None
    level: Literal["debug", "info", "warning", "error"] = "info"


CONFIG_MODELS: dict[StepKind, type[StepConfig]] = {
    StepKind.NAVIGATE: NavigateConfig,
    StepKind.CLICK: ClickConfig,
    StepKind.FILL: FillConfig,
    StepKind.PRESS: PressConfig,
    StepKind.SCROLL: ScrollConfig,
    StepKind.WAIT: WaitConfig,
    StepKind.WAIT_ELEMENT: WaitElementConfig,
    StepKind.SCRIPT: ScriptConfig,
    StepKind.EXTRACT_TEXT: ExtractTextConfig,
    StepKind.LOG: LogConfig,
}
