"""Error taxonomy for hook execution and tool dispatch."""

from __future__ import annotations

from fastmcp.exceptions import ToolError


class ToolgateError(Exception):
    """Base class for all toolgate errors."""


class HookConfigError(ToolgateError, ValueError):
    """Raised when a hook configuration file or value is invalid.

    Attributes:
        path: The configuration file that could not be loaded, if applicable.
    """

    def __init__(self, message: str, path: str | None = None) -> None:
        self.path = path
        super().__init__(message)


class HookExecutionError(ToolgateError):
    """Raised when a hook could not produce a decision.

    Covers spawn failures, stdin write failures, timeouts, non-zero exits
    other than 2 and malformed output. Never escapes the hook engine: the
    rule's failure policy turns it into a block or a continuation.
    """


class HookBlockedError(ToolgateError):
    """Raised when a PreToolUse hook blocks a tool call."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


class FunctionCallError(ToolgateError):
    """Base class for errors returned by tool dispatch."""

    fatal: bool = False


class RespondToModelError(FunctionCallError, ToolError):
    """Recoverable failure whose message is reported back to the model.

    Raised for unknown tools, policy denials and handler-reported failures.
    """


class FatalToolError(FunctionCallError):
    """Internal wiring bug; the turn should be aborted rather than reported."""

    fatal = True
