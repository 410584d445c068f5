"""Tool registry and policy-gated dispatch."""
from .context import (
    FunctionToolOutput,
    McpToolOutput,
    SandboxPolicy,
    SessionContext,
    ToolInvocation,
    TurnConfig,
    TurnContext,
)
from .dispatch import ToolDispatcher
from .handler import ToolHandler, ToolKind
from .payload import (
    CustomPayload,
    FunctionPayload,
    LocalShellParams,
    LocalShellPayload,
    McpPayload,
    ToolPayload,
)
from .registry import ConfiguredToolSpec, ToolRegistry, ToolRegistryBuilder, ToolSpec

__all__ = [
    "ToolDispatcher",
    "ToolRegistry",
    "ToolRegistryBuilder",
    "ToolSpec",
    "ConfiguredToolSpec",
    "ToolHandler",
    "ToolKind",
    "ToolInvocation",
    "SessionContext",
    "TurnContext",
    "TurnConfig",
    "SandboxPolicy",
    "FunctionToolOutput",
    "McpToolOutput",
    "ToolPayload",
    "FunctionPayload",
    "CustomPayload",
    "LocalShellPayload",
    "LocalShellParams",
    "McpPayload",
]
