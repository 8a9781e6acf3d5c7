from __future__ import annotations

import json
import re
from typing import Any, Mapping, Optional

from ..constants import DEFAULT_SUCCESS_TIMEOUT_SEC

_PLACEHOLDER = re.compile(r"{{\s*(?:variables\.)?([a-zA-Z0-9_]+)\s*}}")


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        first = value[0] if value else None
        return "" if first is None else str(first)
    if isinstance(value, dict):
        return json.dumps(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def render_template(template: Any, variables: Optional[Mapping[str, Any]] = None) -> Any:
    """Substitute ``{{name}}`` placeholders with values from ``variables``.

    Non-string templates are returned unchanged.
    """
    if not isinstance(template, str):
        return template
    source = variables or {}
    return _PLACEHOLDER.sub(lambda match: _stringify(source.get(match.group(1))), template)


def normalize_timeout(value: Any, fallback: float = DEFAULT_SUCCESS_TIMEOUT_SEC) -> float:
    """Return ``value`` when it is a positive number, otherwise ``fallback``."""
    if isinstance(value, bool):
        return fallback
    if isinstance(value, (int, float)) and value > 0:
        return float(value)
    return fallback
