"""Per-run mutable state shared by step handlers."""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Dict, Mapping


class ExecutionContext:
    """Step counter and variable store for a single run.

    Never shared across runs. Readers take a snapshot at the point of use so a
    handler writing a variable cannot change what an in-flight evaluation sees.
    """

    def __init__(self, variables: Mapping[str, Any] | None = None) -> None:
        self._step_counter = 0
        self._variables: Dict[str, Any] = dict(variables or {})

    def next_step_index(self) -> int:
        current = self._step_counter
        self._step_counter += 1
        return current

    @property
    def steps_started(self) -> int:
        return self._step_counter

    def set_var(self, name: str, value: Any) -> None:
        self._variables[name] = value

    def get_var(self, name: str, default: Any = None) -> Any:
        return self._variables.get(name, default)

    def has_var(self, name: str) -> bool:
        return name in self._variables

    def get_variables_snapshot(self) -> Mapping[str, Any]:
        return MappingProxyType(dict(self._variables))
