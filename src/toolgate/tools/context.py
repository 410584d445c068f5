"""Invocation context shared between the dispatcher and tool handlers."""

from __future__ import annotations

import dataclasses
import json
import sys
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Union

from ..config import Config
from ..hooks.dispatcher import HookDispatcher
from ..hooks.models import HooksConfig
from ..readiness import Readiness
from ..telemetry import ToolTelemetry
from .payload import CustomPayload, ToolPayload

TELEMETRY_PREVIEW_MAX_CHARS = 2000
TELEMETRY_PREVIEW_TRUNCATION_NOTICE = "[... telemetry preview truncated ...]"


class SandboxPolicy(str, Enum):
    """Sandbox policy the turn runs under."""

    READ_ONLY = "read-only"
    WORKSPACE_WRITE = "workspace-write"
    DANGER_FULL_ACCESS = "danger-full-access"
    EXTERNAL_SANDBOX = "external-sandbox"


def sandbox_policy_tag(policy: SandboxPolicy) -> str:
    return policy.value


def sandbox_tag(policy: SandboxPolicy) -> str:
    """Name of the sandbox mechanism enforcing ``policy`` on this platform."""
    if policy in (SandboxPolicy.DANGER_FULL_ACCESS, SandboxPolicy.EXTERNAL_SANDBOX):
        return "none"
    if sys.platform == "darwin":
        return "seatbelt"
    if sys.platform.startswith("linux"):
        return "seccomp"
    if sys.platform == "win32":
        return "windows_sandbox"
    return "none"


@dataclass(frozen=True)
class TurnConfig:
    """Configuration snapshot a turn was started with."""

    hooks: HooksConfig = field(default_factory=HooksConfig)
    home: Path = field(default_factory=lambda: Config.TOOLGATE_HOME)

    @property
    def transcript_path(self) -> Path:
        return Config.transcript_path(self.home)


@dataclass
class SessionContext:
    """Session-scoped state shared by every turn of a conversation."""

    conversation_id: str
    hooks: HookDispatcher = field(default_factory=HookDispatcher)


@dataclass
class TurnContext:
    """Turn-scoped state shared by every tool call of a turn."""

    sub_id: str
    cwd: Path
    sandbox_policy: SandboxPolicy
    tool_call_gate: Readiness
    telemetry: ToolTelemetry
    config: TurnConfig = field(default_factory=TurnConfig)


@dataclass
class ToolInvocation:
    """
    A single request to execute one tool.

    ``session`` and ``turn`` are shared references: :meth:`clone` copies
    the invocation without copying the context behind it.
    """

    session: SessionContext
    turn: TurnContext
    tool_name: str
    call_id: str
    payload: ToolPayload

    def clone(self) -> "ToolInvocation":
        return dataclasses.replace(self)


# ============================================================================
# RESPONSE ITEMS
# ============================================================================


@dataclass(frozen=True)
class FunctionCallOutputItem:
    call_id: str
    output: str
    success: Optional[bool] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "function_call_output",
            "call_id": self.call_id,
            "output": {"content": self.output, "success": self.success},
        }


@dataclass(frozen=True)
class CustomToolCallOutputItem:
    call_id: str
    output: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "custom_tool_call_output",
            "call_id": self.call_id,
            "output": self.output,
        }


@dataclass(frozen=True)
class McpToolCallOutputItem:
    call_id: str
    result: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "mcp_tool_call_output",
            "call_id": self.call_id,
            "result": self.result,
        }


ResponseInputItem = Union[
    FunctionCallOutputItem, CustomToolCallOutputItem, McpToolCallOutputItem
]


# ============================================================================
# TOOL OUTPUTS
# ============================================================================


def telemetry_preview(content: str) -> str:
    """Truncate output for telemetry and after-tool-use events."""
    if len(content) <= TELEMETRY_PREVIEW_MAX_CHARS:
        return content
    return content[:TELEMETRY_PREVIEW_MAX_CHARS] + "\n" + TELEMETRY_PREVIEW_TRUNCATION_NOTICE


@dataclass
class FunctionToolOutput:
    """Text produced by a function, custom or local shell tool."""

    content: str
    success: Optional[bool] = True

    def log_preview(self) -> str:
        return telemetry_preview(self.content)

    def success_for_logging(self) -> bool:
        return bool(self.success)

    def into_response(self, call_id: str, payload: ToolPayload) -> ResponseInputItem:
        if isinstance(payload, CustomPayload):
            return CustomToolCallOutputItem(call_id=call_id, output=self.content)
        return FunctionCallOutputItem(
            call_id=call_id, output=self.content, success=self.success
        )


@dataclass
class McpToolOutput:
    """Result object returned by an MCP server (``CallToolResult`` shape)."""

    result: dict[str, Any]

    def log_preview(self) -> str:
        return telemetry_preview(json.dumps(self.result, ensure_ascii=False, default=str))

    def success_for_logging(self) -> bool:
        return not self.result.get("isError", False)

    def into_response(self, call_id: str, payload: ToolPayload) -> ResponseInputItem:
        return McpToolCallOutputItem(call_id=call_id, result=self.result)


ToolOutput = Union[FunctionToolOutput, McpToolOutput]
