"""Tool handler capability implemented by every tool family."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING

from .payload import FunctionPayload, McpPayload, ToolPayload

if TYPE_CHECKING:
    from .context import ToolInvocation, ToolOutput


class ToolKind(str, Enum):
    """Payload shapes a handler accepts."""

    FUNCTION = "function"
    MCP = "mcp"


class ToolHandler(ABC):
    """Abstract base class for tool handlers."""

    @property
    @abstractmethod
    def kind(self) -> ToolKind:
        pass

    def matches_kind(self, payload: ToolPayload) -> bool:
        """Whether this handler accepts the payload variant."""
        if self.kind is ToolKind.FUNCTION:
            return isinstance(payload, FunctionPayload)
        return isinstance(payload, McpPayload)

    async def is_mutating(self, invocation: "ToolInvocation") -> bool:
        """
        Whether the invocation *might* mutate the user's environment
        (file system, OS operations, ...).

        Must stay conservative: return True whenever the effect is uncertain.
        """
        return False

    @abstractmethod
    async def handle(self, invocation: "ToolInvocation") -> "ToolOutput":
        """
        Perform the invocation.

        Returns:
            Output to hand back to the model

        Raises:
            FunctionCallError: For failures the model should see
        """
        pass
