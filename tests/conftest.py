"""Pytest fixtures and test utilities for the toolgate test suite."""

import sys
from pathlib import Path
from typing import Any, Callable, Optional

import pytest
from loguru import logger

from toolgate.errors import RespondToModelError
from toolgate.hooks.dispatcher import HookDispatcher
from toolgate.hooks.events import HookPayload
from toolgate.hooks.models import HookFailurePolicy, HookRule, HooksConfig
from toolgate.readiness import ReadinessFlag
from toolgate.telemetry import ToolResultRecord, ToolTelemetry
from toolgate.tools.context import (
    FunctionToolOutput,
    SandboxPolicy,
    SessionContext,
    ToolInvocation,
    TurnConfig,
    TurnContext,
)
from toolgate.tools.handler import ToolHandler, ToolKind
from toolgate.tools.payload import FunctionPayload, ToolPayload


# ============================================================================
# HOOK SCRIPT FIXTURES
# ============================================================================


@pytest.fixture
def python_hook() -> Callable[[str], tuple[str, ...]]:
    """
    Build a hook command that runs inline Python with the test interpreter.

    Returns:
        Function mapping Python source to an argv tuple
    """

    def _command(source: str) -> tuple[str, ...]:
        return (sys.executable, "-c", source)

    return _command


@pytest.fixture
def hook_rule(python_hook) -> Callable[..., HookRule]:
    """
    Build a HookRule running inline Python.

    Defaults: matcher="*", timeout 5s, fail-closed.
    """

    def _rule(
        source: Optional[str] = None,
        matcher: str = "*",
        timeout_sec: int = 5,
        on_failure: HookFailurePolicy = HookFailurePolicy.DENY,
        command: Optional[tuple[str, ...]] = None,
    ) -> HookRule:
        if command is None:
            command = python_hook(source) if source is not None else ()
        return HookRule(
            matcher=matcher,
            command=command,
            timeout_sec=timeout_sec,
            on_failure=on_failure,
        )

    return _rule


# ============================================================================
# LOGGING FIXTURES
# ============================================================================


@pytest.fixture
def log_messages():
    """
    Capture loguru messages emitted during the test.

    Yields:
        List of (level name, message) tuples
    """
    messages: list[tuple[str, str]] = []
    handler_id = logger.add(
        lambda m: messages.append((m.record["level"].name, m.record["message"])),
        level="DEBUG",
    )
    yield messages
    logger.remove(handler_id)


# ============================================================================
# DISPATCH FIXTURES
# ============================================================================


class FakeHandler(ToolHandler):
    """Configurable in-memory handler that records its invocations."""

    def __init__(
        self,
        kind: ToolKind = ToolKind.FUNCTION,
        mutating: bool = False,
        output: Any = None,
        error: Optional[BaseException] = None,
    ):
        self._kind = kind
        self.mutating = mutating
        self.output = output if output is not None else FunctionToolOutput("ok")
        self.error = error
        self.calls: list[ToolInvocation] = []

    @property
    def kind(self) -> ToolKind:
        return self._kind

    async def is_mutating(self, invocation: ToolInvocation) -> bool:
        return self.mutating

    async def handle(self, invocation: ToolInvocation):
        self.calls.append(invocation)
        if self.error is not None:
            raise self.error
        return self.output


@pytest.fixture
def fake_handler() -> Callable[..., FakeHandler]:
    return FakeHandler


@pytest.fixture
def telemetry_records() -> list[ToolResultRecord]:
    return []


@pytest.fixture
def after_events() -> list[HookPayload]:
    return []


@pytest.fixture
def make_invocation(tmp_path: Path, telemetry_records, after_events):
    """
    Build a ToolInvocation wired to recording telemetry and hook listeners.

    Every invocation built by the factory shares the same session, so
    after-tool-use events from all of them land in ``after_events``.
    """
    session = SessionContext(
        conversation_id="session-123",
        hooks=HookDispatcher([after_events.append]),
    )
    telemetry = ToolTelemetry(
        conversation_id=session.conversation_id,
        on_record=telemetry_records.append,
    )

    def _make(
        tool_name: str = "echo",
        payload: Optional[ToolPayload] = None,
        hooks: Optional[HooksConfig] = None,
        gate: Optional[ReadinessFlag] = None,
        call_id: str = "call-1",
        sandbox_policy: SandboxPolicy = SandboxPolicy.WORKSPACE_WRITE,
    ) -> ToolInvocation:
        turn = TurnContext(
            sub_id="turn-1",
            cwd=tmp_path,
            sandbox_policy=sandbox_policy,
            tool_call_gate=gate if gate is not None else ReadinessFlag(),
            telemetry=telemetry,
            config=TurnConfig(hooks=hooks or HooksConfig(), home=tmp_path),
        )
        return ToolInvocation(
            session=session,
            turn=turn,
            tool_name=tool_name,
            call_id=call_id,
            payload=payload or FunctionPayload('{"command": ["echo", "hi"]}'),
        )

    return _make


@pytest.fixture
def model_error() -> RespondToModelError:
    return RespondToModelError("handler failed: file not found")
