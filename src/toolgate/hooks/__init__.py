"""Process-based policy hooks around tool execution.

Key components:
- matches_tool: tool name matcher (exact, ``*``, glob; case-insensitive)
- HooksConfig / HookRule: rules loaded from hooks.yaml
- run_pre_tool_use_hooks: runs matching hooks as synchronous gates
- HookDispatcher: fan-out of AfterToolUse audit events

Usage:
    config = HooksConfig.from_yaml("hooks.yaml")

    try:
        await run_pre_tool_use_hooks(
            config, tool_name, tool_input, call_id, session_id, cwd, transcript
        )
    except HookBlockedError as blocked:
        return refuse(blocked.reason)
"""

from .dispatcher import HookDispatcher, HookListener
from .events import HookEventAfterToolUse, HookPayload, HookToolKind
from .executor import execute_single_hook, run_pre_tool_use_hooks
from .matcher import matches_tool
from .models import (
    HookDecision,
    HookFailurePolicy,
    HookInput,
    HookOutput,
    HookRule,
    HooksConfig,
    HookSpecificOutput,
)

__all__ = [
    # Engine
    "run_pre_tool_use_hooks",
    "execute_single_hook",
    "matches_tool",
    # Models
    "HookDecision",
    "HookFailurePolicy",
    "HookInput",
    "HookOutput",
    "HookRule",
    "HooksConfig",
    "HookSpecificOutput",
    # After-tool-use events
    "HookDispatcher",
    "HookListener",
    "HookEventAfterToolUse",
    "HookPayload",
    "HookToolKind",
]
