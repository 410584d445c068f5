"""Tool call payloads and their hook-facing representation."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Optional, Union

from ..hooks.events import HookToolKind


@dataclass(frozen=True)
class FunctionPayload:
    """Function-style call carrying raw JSON arguments."""

    arguments: str

    def log_payload(self) -> str:
        return self.arguments


@dataclass(frozen=True)
class CustomPayload:
    """Freeform tool call carrying an opaque input string."""

    input: str

    def log_payload(self) -> str:
        return self.input


@dataclass(frozen=True)
class LocalShellParams:
    command: tuple[str, ...]
    workdir: Optional[str] = None
    timeout_ms: Optional[int] = None
    sandbox_permissions: Optional[str] = None
    prefix_rule: Optional[tuple[str, ...]] = None
    justification: Optional[str] = None


@dataclass(frozen=True)
class LocalShellPayload:
    """Structured shell invocation."""

    params: LocalShellParams

    def log_payload(self) -> str:
        return " ".join(self.params.command)


@dataclass(frozen=True)
class McpPayload:
    """Call routed to a tool on an MCP server."""

    server: str
    tool: str
    raw_arguments: str

    def log_payload(self) -> str:
        return self.raw_arguments


ToolPayload = Union[FunctionPayload, CustomPayload, LocalShellPayload, McpPayload]


def hook_tool_kind(payload: ToolPayload) -> HookToolKind:
    if isinstance(payload, FunctionPayload):
        return HookToolKind.FUNCTION
    if isinstance(payload, CustomPayload):
        return HookToolKind.CUSTOM
    if isinstance(payload, LocalShellPayload):
        return HookToolKind.LOCAL_SHELL
    return HookToolKind.MCP


def extract_tool_input_for_hooks(payload: ToolPayload) -> Any:
    """
    Build the ``tool_input`` value hooks receive.

    Shell command arrays are flattened to strings so hook scripts written
    for ``tool_input.command`` as a string keep working. Arguments that
    are not valid JSON become ``None``.
    """
    if isinstance(payload, FunctionPayload):
        try:
            value = json.loads(payload.arguments)
        except ValueError:
            return None
        return normalize_command_to_string(value)

    if isinstance(payload, LocalShellPayload):
        return {"command": " ".join(payload.params.command)}

    if isinstance(payload, McpPayload):
        try:
            return json.loads(payload.raw_arguments)
        except ValueError:
            return None

    return payload.input


def normalize_command_to_string(value: Any) -> Any:
    """
    Normalize shell-style arguments in place.

    - ``cmd`` (string) is copied to ``command`` when ``command`` is absent
    - an array ``command`` is joined with spaces; non-string items are dropped

    Non-object values are returned unchanged.
    """
    if not isinstance(value, dict):
        return value

    cmd_alias = value.get("cmd")
    if "command" not in value and isinstance(cmd_alias, str):
        value["command"] = cmd_alias

    command = value.get("command")
    if isinstance(command, list):
        value["command"] = " ".join(item for item in command if isinstance(item, str))

    return value
