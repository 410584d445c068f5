"""Tests for after-tool-use events and their dispatcher."""

from datetime import timezone
from pathlib import Path

import pytest

from toolgate.hooks.dispatcher import HookDispatcher
from toolgate.hooks.events import (
    MAX_DURATION_MS,
    HookEventAfterToolUse,
    HookPayload,
    HookToolKind,
    duration_to_ms,
)


def make_payload(call_id: str = "call-1", **overrides) -> HookPayload:
    fields = dict(
        turn_id="turn-1",
        call_id=call_id,
        tool_name="shell",
        tool_kind=HookToolKind.LOCAL_SHELL,
        tool_input={"command": "ls"},
        executed=True,
        success=True,
        duration_ms=12,
        mutating=True,
        sandbox="seccomp",
        sandbox_policy="workspace-write",
        output_preview="file.txt",
    )
    fields.update(overrides)
    return HookPayload(
        session_id="session-123",
        cwd=Path("/work"),
        hook_event=HookEventAfterToolUse(**fields),
    )


# ============================================================================
# EVENTS
# ============================================================================


@pytest.mark.parametrize(
    "seconds, expected",
    [
        (0.0, 0),
        (1.5, 1500),
        (0.0009, 0),
        (-1.0, 0),
        (1e30, MAX_DURATION_MS),
    ],
)
def test_duration_to_ms(seconds, expected):
    assert duration_to_ms(seconds) == expected


def test_payload_to_dict():
    payload = make_payload()

    data = payload.to_dict()

    assert data["session_id"] == "session-123"
    assert data["cwd"] == str(Path("/work"))
    assert data["hook_event"]["event_type"] == "AfterToolUse"
    assert data["hook_event"]["tool_kind"] == "local_shell"
    assert data["hook_event"]["executed"] is True
    assert payload.triggered_at.tzinfo is timezone.utc


# ============================================================================
# DISPATCHER
# ============================================================================


@pytest.mark.asyncio
async def test_listeners_run_in_registration_order():
    seen = []
    dispatcher = HookDispatcher()
    dispatcher.register(lambda p: seen.append(("sync", p.hook_event.call_id)))

    async def async_listener(payload):
        seen.append(("async", payload.hook_event.call_id))

    dispatcher.register(async_listener)

    await dispatcher.dispatch(make_payload("call-7"))

    assert seen == [("sync", "call-7"), ("async", "call-7")]


@pytest.mark.asyncio
async def test_failing_listener_is_logged_and_skipped(log_messages):
    seen = []

    def broken(payload):
        raise RuntimeError("listener exploded")

    dispatcher = HookDispatcher([broken, seen.append])

    await dispatcher.dispatch(make_payload())

    assert len(seen) == 1
    assert any(
        level == "ERROR" and "listener exploded" in message
        for level, message in log_messages
    )


def test_unregister():
    listener = lambda p: None  # noqa: E731
    dispatcher = HookDispatcher([listener])

    assert dispatcher.unregister(listener) is True
    assert dispatcher.unregister(listener) is False
    assert dispatcher.listeners == ()
