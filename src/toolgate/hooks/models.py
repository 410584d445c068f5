"""Hook configuration and Claude-compatible JSON protocol models."""

import json
import re
import shlex
from dataclasses import asdict, dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Optional

import yaml
from loguru import logger

from ..config import Config
from ..errors import HookConfigError

PRE_TOOL_USE_EVENT = "PreToolUse"


class HookDecision(str, Enum):
    """Decision a hook returns about a tool call."""

    ALLOW = "allow"
    DENY = "deny"
    # No approval flow exists, so ask is handled exactly like deny
    ASK = "ask"

    @classmethod
    def parse(cls, value: Any) -> "HookDecision":
        """
        Decode a wire decision, honoring the legacy aliases.

        Decoding is case-sensitive: ``"Deny"`` is rejected.

        Raises:
            ValueError: If the value is not a known decision
        """
        if isinstance(value, str):
            if value in _DECISION_ALIASES:
                return _DECISION_ALIASES[value]
            try:
                return cls(value)
            except ValueError:
                pass
        raise ValueError(
            f"unknown variant {value!r}, expected one of "
            "'allow', 'deny', 'ask', 'approve', 'block'"
        )

    @property
    def blocks(self) -> bool:
        """Whether this decision stops the tool call."""
        return self is not HookDecision.ALLOW


_DECISION_ALIASES = {
    "approve": HookDecision.ALLOW,
    "block": HookDecision.DENY,
}


class HookFailurePolicy(str, Enum):
    """What to do when a hook itself errors, times out or is misconfigured."""

    DENY = "deny"  # fail-closed
    ALLOW = "allow"  # fail-open


@dataclass(frozen=True)
class HookRule:
    """
    One configured PreToolUse hook.

    Attributes:
        matcher: Tool name pattern (exact, ``*`` or glob)
        command: Argument vector; the first element is the executable
        timeout_sec: Seconds to wait for the hook before killing it
        on_failure: Failure policy when the hook cannot produce a decision
    """

    matcher: str = "*"
    command: tuple[str, ...] = ()
    timeout_sec: int = Config.DEFAULT_HOOK_TIMEOUT_SEC
    on_failure: HookFailurePolicy = HookFailurePolicy.DENY

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HookRule":
        """Build a rule from one entry of a hooks file."""
        if not isinstance(data, dict):
            raise HookConfigError(
                f"Hook rule must be a mapping, got {type(data).__name__}"
            )

        raw_command = data.get("command", [])
        if isinstance(raw_command, str):
            command = tuple(shlex.split(raw_command))
        elif isinstance(raw_command, list) and all(
            isinstance(arg, str) for arg in raw_command
        ):
            command = tuple(raw_command)
        else:
            raise HookConfigError(
                "Hook 'command' must be a string or a list of strings"
            )

        timeout = data.get("timeout_sec", data.get("timeout", Config.DEFAULT_HOOK_TIMEOUT_SEC))
        if not isinstance(timeout, int) or isinstance(timeout, bool) or timeout <= 0:
            raise HookConfigError(f"Hook timeout must be a positive integer, got {timeout!r}")

        raw_policy = data.get("on_failure", HookFailurePolicy.DENY.value)
        try:
            on_failure = HookFailurePolicy(str(raw_policy).strip().lower())
        except ValueError:
            raise HookConfigError(
                f"Hook on_failure must be 'deny' or 'allow', got {raw_policy!r}"
            )

        return cls(
            matcher=str(data.get("matcher", "*")),
            command=command,
            timeout_sec=timeout,
            on_failure=on_failure,
        )


def _pascal_to_snake(name: str) -> str:
    """Convert PascalCase to snake_case."""
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


@dataclass(frozen=True)
class HooksConfig:
    """
    All configured policy hooks, in evaluation order.

    Loaded once at startup and shared by every dispatch for the lifetime
    of the process.
    """

    pre_tool_use: tuple[HookRule, ...] = ()

    def is_empty(self) -> bool:
        return not self.pre_tool_use

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "HooksConfig":
        """
        Create a config from a parsed hooks document.

        Supports the direct format and the ``hooks`` wrapper, with either
        snake_case or PascalCase event keys::

            {"pre_tool_use": [...]}
            {"hooks": {"PreToolUse": [...]}}
        """
        if not data:
            return cls()
        if not isinstance(data, dict):
            raise HookConfigError(
                f"Invalid hooks structure: expected dict, got {type(data).__name__}"
            )

        if "hooks" in data:
            if len(data) != 1:
                logger.warning(
                    "Hooks wrapper format should contain only the 'hooks' key; "
                    "extra top-level keys will be ignored"
                )
            data = data["hooks"] or {}

        rules: list[HookRule] = []
        for key, value in data.items():
            event = _pascal_to_snake(key)
            if event != "pre_tool_use":
                logger.warning(f"Ignoring unsupported hook event '{key}'")
                continue
            if not isinstance(value, list):
                raise HookConfigError(f"'{key}' must be a list of hook rules")
            rules.extend(HookRule.from_dict(entry) for entry in value)

        return cls(pre_tool_use=tuple(rules))

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> "HooksConfig":
        """
        Load hooks from a YAML (or JSON) file.

        A missing file means no hooks are configured.

        Raises:
            HookConfigError: If the file is malformed
        """
        path = Path(yaml_path)
        if not path.exists():
            logger.debug(f"Hooks config not found at {path}, hooks disabled")
            return cls()

        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise HookConfigError(f"Failed to parse hooks config: {e}", path=str(path))

        try:
            config = cls.from_dict(data)
        except HookConfigError as e:
            raise HookConfigError(str(e), path=str(path)) from e

        logger.info(f"Loaded {len(config.pre_tool_use)} PreToolUse hook(s) from {path}")
        return config

    @classmethod
    def load(cls) -> "HooksConfig":
        """Load hooks from the configured default location."""
        return cls.from_yaml(Config.HOOKS_YAML_PATH)


@dataclass
class HookInput:
    """Message written to a hook's stdin (Claude-compatible snake_case)."""

    tool_name: str
    tool_input: Any
    tool_use_id: str
    session_id: str
    cwd: str
    transcript_path: str
    hook_event_name: str = PRE_TOOL_USE_EVENT

    def to_json(self) -> str:
        data = asdict(self)
        # Keep the documented key order for hook authors reading raw stdin
        ordered = {"hook_event_name": data.pop("hook_event_name"), **data}
        return json.dumps(ordered)


@dataclass
class HookSpecificOutput:
    """Nested output structure (preferred format)."""

    permission_decision: Optional[HookDecision] = None
    permission_decision_reason: Optional[str] = None


@dataclass
class HookOutput:
    """
    Parsed hook response.

    Supports both the nested ``hookSpecificOutput`` form and the legacy
    top-level ``decision``/``reason`` pair. A nested decision (or reason)
    replaces the legacy value outright; the two are never combined.
    """

    hook_specific_output: Optional[HookSpecificOutput] = None
    # Legacy: use hookSpecificOutput.permissionDecision instead
    decision: Optional[HookDecision] = None
    # Legacy: use hookSpecificOutput.permissionDecisionReason instead
    reason: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "HookOutput":
        """
        Decode the camelCase wire form.

        Unknown keys such as ``updatedInput`` are accepted and ignored.

        Raises:
            ValueError: If the document does not have the expected shape
        """
        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object, got {type(data).__name__}")

        nested = None
        raw_nested = data.get("hookSpecificOutput")
        if raw_nested is not None:
            if not isinstance(raw_nested, dict):
                raise ValueError("hookSpecificOutput must be an object")
            nested = HookSpecificOutput(
                permission_decision=_optional_decision(raw_nested.get("permissionDecision")),
                permission_decision_reason=_optional_str(
                    raw_nested.get("permissionDecisionReason"), "permissionDecisionReason"
                ),
            )

        return cls(
            hook_specific_output=nested,
            decision=_optional_decision(data.get("decision")),
            reason=_optional_str(data.get("reason"), "reason"),
        )

    @classmethod
    def from_json(cls, text: str) -> "HookOutput":
        return cls.from_dict(json.loads(text))

    def effective_decision(self) -> HookDecision:
        """Effective decision: nested, then legacy, then allow."""
        hso = self.hook_specific_output
        if hso is not None and hso.permission_decision is not None:
            return hso.permission_decision
        return self.decision or HookDecision.ALLOW

    def effective_reason(self) -> Optional[str]:
        """Effective reason: nested, then legacy."""
        hso = self.hook_specific_output
        if hso is not None and hso.permission_decision_reason is not None:
            return hso.permission_decision_reason
        return self.reason


def _optional_decision(value: Any) -> Optional[HookDecision]:
    if value is None:
        return None
    return HookDecision.parse(value)


def _optional_str(value: Any, name: str) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"{name} must be a string, got {type(value).__name__}")
    return value
