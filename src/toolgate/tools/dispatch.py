"""Dispatch controller: policy-gated execution of a single tool call."""

from __future__ import annotations

import asyncio
import time
from typing import Any, Optional

from loguru import logger

from ..errors import FatalToolError, HookBlockedError, RespondToModelError
from ..hooks.events import HookEventAfterToolUse, HookPayload, duration_to_ms
from ..hooks.executor import run_pre_tool_use_hooks
from .context import (
    ResponseInputItem,
    ToolInvocation,
    ToolOutput,
    sandbox_policy_tag,
    sandbox_tag,
)
from .handler import ToolHandler
from .payload import CustomPayload, ToolPayload, extract_tool_input_for_hooks, hook_tool_kind
from .registry import ToolRegistry

TOOL_CALL_CANCELLED = "tool call cancelled"


class _OutputCell:
    """Single-slot holder for the handler output of one dispatch."""

    def __init__(self):
        self._lock = asyncio.Lock()
        self._value: Optional[ToolOutput] = None
        self._written = False

    async def put(self, output: ToolOutput) -> None:
        async with self._lock:
            if self._written:
                raise FatalToolError("tool output written twice")
            self._value = output
            self._written = True

    async def take(self) -> Optional[ToolOutput]:
        async with self._lock:
            value, self._value = self._value, None
            return value


def unsupported_tool_call_message(payload: ToolPayload, tool_name: str) -> str:
    if isinstance(payload, CustomPayload):
        return f"unsupported custom tool call: {tool_name}"
    return f"unsupported call: {tool_name}"


class ToolDispatcher:
    """
    Runs tool invocations end to end.

    Pipeline per call:
    1. Resolve the handler (unknown tool -> reported to the model)
    2. Check the payload kind (mismatch -> fatal)
    3. Classify mutation
    4. Run PreToolUse hooks (block -> reported to the model)
    5. Wait on the admission gate (mutating calls only)
    6. Execute inside the telemetry scope
    7. Publish the AfterToolUse event (always, exactly once)
    8. Convert the output into a response item
    """

    def __init__(self, registry: ToolRegistry):
        self.registry = registry

    async def dispatch(self, invocation: ToolInvocation) -> ResponseInputItem:
        """
        Dispatch one tool invocation.

        Returns:
            Response item keyed by the invocation's call id

        Raises:
            RespondToModelError: Unknown tool or blocked by a hook
            FatalToolError: Payload kind mismatch or missing output
            Exception: Any error raised by the handler, unchanged
        """
        tool_name = invocation.tool_name
        call_id = invocation.call_id
        payload = invocation.payload
        turn = invocation.turn
        telemetry = turn.telemetry
        log_payload = payload.log_payload()
        tool_input = extract_tool_input_for_hooks(payload)
        metric_tags = (
            ("sandbox", sandbox_tag(turn.sandbox_policy)),
            ("sandbox_policy", sandbox_policy_tag(turn.sandbox_policy)),
        )

        handler = self.registry.handler(tool_name)
        if handler is None:
            message = unsupported_tool_call_message(payload, tool_name)
            telemetry.tool_result_with_tags(
                tool_name, call_id, log_payload, 0.0, False, message, metric_tags
            )
            await self._dispatch_after_tool_use(
                invocation,
                tool_input,
                output_preview=message,
                success=False,
                executed=False,
                duration=0.0,
                mutating=False,
            )
            raise RespondToModelError(message)

        if not handler.matches_kind(payload):
            message = f"tool {tool_name} invoked with incompatible payload"
            telemetry.tool_result_with_tags(
                tool_name, call_id, log_payload, 0.0, False, message, metric_tags
            )
            await self._dispatch_after_tool_use(
                invocation,
                tool_input,
                output_preview=message,
                success=False,
                executed=False,
                duration=0.0,
                mutating=False,
            )
            raise FatalToolError(message)

        is_mutating = await self._classify_mutation(handler, invocation)

        hooks_config = turn.config.hooks
        if not hooks_config.is_empty():
            hook_started = time.monotonic()
            try:
                await run_pre_tool_use_hooks(
                    hooks_config,
                    tool_name,
                    tool_input,
                    call_id,
                    invocation.session.conversation_id,
                    str(turn.cwd),
                    str(turn.config.transcript_path),
                )
            except HookBlockedError as blocked:
                elapsed = time.monotonic() - hook_started
                telemetry.tool_result_with_tags(
                    tool_name,
                    call_id,
                    log_payload,
                    elapsed,
                    False,
                    blocked.reason,
                    metric_tags,
                )
                await self._dispatch_after_tool_use(
                    invocation,
                    tool_input,
                    output_preview=blocked.reason,
                    success=False,
                    executed=False,
                    duration=elapsed,
                    mutating=is_mutating,
                )
                raise RespondToModelError(blocked.reason) from blocked

        output_cell = _OutputCell()
        invocation_for_tool = invocation.clone()
        handler_started = False

        async def run_tool() -> tuple[str, bool]:
            nonlocal handler_started
            if is_mutating:
                logger.trace("waiting for tool gate")
                await invocation_for_tool.turn.tool_call_gate.wait_ready()
                logger.trace("tool gate released")
            handler_started = True
            output = await handler.handle(invocation_for_tool)
            preview = output.log_preview()
            success = output.success_for_logging()
            await output_cell.put(output)
            return preview, success

        started = time.monotonic()
        error: Optional[BaseException] = None
        try:
            output_preview, success = await telemetry.log_tool_result_with_tags(
                tool_name, call_id, log_payload, metric_tags, run_tool
            )
        except asyncio.CancelledError as e:
            # Still audited; re-raised below once the event is out
            error = e
            output_preview, success = TOOL_CALL_CANCELLED, False
        except Exception as e:
            error = e
            output_preview, success = str(e), False
        duration = time.monotonic() - started

        await self._dispatch_after_tool_use(
            invocation,
            tool_input,
            output_preview=output_preview,
            success=success,
            executed=handler_started,
            duration=duration,
            mutating=is_mutating,
        )

        if error is not None:
            raise error

        output = await output_cell.take()
        if output is None:
            raise FatalToolError("tool produced no output")
        return output.into_response(call_id, payload)

    @staticmethod
    async def _classify_mutation(handler: ToolHandler, invocation: ToolInvocation) -> bool:
        try:
            return bool(await handler.is_mutating(invocation))
        except Exception as e:
            # Unknown effect: treat as mutating
            logger.warning(
                "Mutation check failed, assuming mutating | tool={} error={}",
                invocation.tool_name,
                e,
            )
            return True

    @staticmethod
    async def _dispatch_after_tool_use(
        invocation: ToolInvocation,
        tool_input: Any,
        *,
        output_preview: str,
        success: bool,
        executed: bool,
        duration: float,
        mutating: bool,
    ) -> None:
        session = invocation.session
        turn = invocation.turn
        payload = HookPayload(
            session_id=session.conversation_id,
            cwd=turn.cwd,
            hook_event=HookEventAfterToolUse(
                turn_id=turn.sub_id,
                call_id=invocation.call_id,
                tool_name=invocation.tool_name,
                tool_kind=hook_tool_kind(invocation.payload),
                tool_input=tool_input,
                executed=executed,
                success=success,
                duration_ms=duration_to_ms(duration),
                mutating=mutating,
                sandbox=sandbox_tag(turn.sandbox_policy),
                sandbox_policy=sandbox_policy_tag(turn.sandbox_policy),
                output_preview=output_preview,
            ),
        )
        try:
            await session.hooks.dispatch(payload)
        except Exception as e:
            logger.error(
                "AfterToolUse dispatch failed | tool={} call_id={} error={}",
                invocation.tool_name,
                invocation.call_id,
                e,
            )
