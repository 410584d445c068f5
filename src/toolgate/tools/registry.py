"""Tool registry: name to handler lookup built once per session."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional

from loguru import logger

from .handler import ToolHandler


@dataclass(frozen=True)
class ToolSpec:
    """Tool definition advertised to the model."""

    name: str
    description: str = ""
    parameters: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "function",
            "name": self.name,
            "description": self.description,
            "parameters": self.parameters,
        }


@dataclass(frozen=True)
class ConfiguredToolSpec:
    spec: ToolSpec
    supports_parallel_tool_calls: bool = False


class ToolRegistry:
    """
    Immutable mapping from tool name to handler.

    Handlers are shared: :meth:`handler` returns the registered object
    itself, never a copy.
    """

    def __init__(self, handlers: Mapping[str, ToolHandler]):
        self._handlers = MappingProxyType(dict(handlers))

    def handler(self, name: str) -> Optional[ToolHandler]:
        return self._handlers.get(name)

    def is_registered(self, name: str) -> bool:
        return name in self._handlers

    def tool_names(self) -> list[str]:
        return list(self._handlers)


class ToolRegistryBuilder:
    """
    Accumulates handlers and advertised specs.

    Registering a name twice replaces the earlier handler with a warning,
    so later configuration layers can override earlier ones.
    """

    def __init__(self):
        self._handlers: dict[str, ToolHandler] = {}
        self._specs: list[ConfiguredToolSpec] = []

    def push_spec(self, spec: ToolSpec) -> None:
        self.push_spec_with_parallel_support(spec, False)

    def push_spec_with_parallel_support(
        self, spec: ToolSpec, supports_parallel_tool_calls: bool
    ) -> None:
        self._specs.append(ConfiguredToolSpec(spec, supports_parallel_tool_calls))

    def register_handler(self, name: str, handler: ToolHandler) -> None:
        if name in self._handlers:
            logger.warning(f"overwriting handler for tool {name}")
        self._handlers[name] = handler

    def build(self) -> tuple[list[ConfiguredToolSpec], ToolRegistry]:
        return list(self._specs), ToolRegistry(self._handlers)
