"""After-the-fact hook events published once per tool dispatch."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

AFTER_TOOL_USE_EVENT = "AfterToolUse"

# duration_ms is an unsigned 64-bit value on the wire
MAX_DURATION_MS = 2**64 - 1


class HookToolKind(str, Enum):
    """Payload family of the tool call an event describes."""

    FUNCTION = "function"
    CUSTOM = "custom"
    LOCAL_SHELL = "local_shell"
    MCP = "mcp"


def duration_to_ms(seconds: float) -> int:
    """Convert elapsed seconds to whole milliseconds, saturating on overflow."""
    return min(max(int(seconds * 1000), 0), MAX_DURATION_MS)


@dataclass(frozen=True)
class HookEventAfterToolUse:
    """
    Audit record of one tool call.

    Emitted for every dispatch, cancelled ones included. ``executed`` is
    False when the handler never started: blocked by a PreToolUse hook,
    rejected before execution, or cancelled while waiting on the gate.
    """

    turn_id: str
    call_id: str
    tool_name: str
    tool_kind: HookToolKind
    tool_input: Any
    executed: bool
    success: bool
    duration_ms: int
    mutating: bool
    sandbox: str
    sandbox_policy: str
    output_preview: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "turn_id": self.turn_id,
            "call_id": self.call_id,
            "tool_name": self.tool_name,
            "tool_kind": self.tool_kind.value,
            "tool_input": self.tool_input,
            "executed": self.executed,
            "success": self.success,
            "duration_ms": self.duration_ms,
            "mutating": self.mutating,
            "sandbox": self.sandbox,
            "sandbox_policy": self.sandbox_policy,
            "output_preview": self.output_preview,
        }


@dataclass(frozen=True)
class HookPayload:
    """Envelope handed to the session hook dispatcher."""

    session_id: str
    cwd: Path
    hook_event: HookEventAfterToolUse
    triggered_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    event_type: str = AFTER_TOOL_USE_EVENT

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "session_id": self.session_id,
            "cwd": str(self.cwd),
            "triggered_at": self.triggered_at.isoformat(),
            "hook_event": {"event_type": self.event_type, **self.hook_event.to_dict()},
        }
