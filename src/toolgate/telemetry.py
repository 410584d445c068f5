"""Tool result telemetry backed by loguru."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Sequence

from loguru import logger

MetricTags = Sequence[tuple[str, str]]

MAX_LOGGED_CHARS = 200


@dataclass(frozen=True)
class ToolResultRecord:
    """One telemetry record for a finished (or rejected) tool call."""

    tool_name: str
    call_id: str
    arguments: str
    duration_ms: float
    success: bool
    output: str
    tags: tuple[tuple[str, str], ...]


class ToolTelemetry:
    """
    Records the outcome of every tool call.

    Records are logged through loguru (bound with ``telemetry=True``) and
    optionally handed to ``on_record`` (metrics exporters, tests).
    """

    def __init__(
        self,
        conversation_id: Optional[str] = None,
        on_record: Optional[Callable[[ToolResultRecord], None]] = None,
    ):
        self.conversation_id = conversation_id
        self._on_record = on_record

    def tool_result_with_tags(
        self,
        tool_name: str,
        call_id: str,
        arguments: str,
        duration: float,
        success: bool,
        output: str,
        tags: MetricTags,
    ) -> ToolResultRecord:
        """
        Record a tool result.

        Args:
            tool_name: Name of the tool
            call_id: Tool call identifier
            arguments: Loggable payload preview
            duration: Elapsed seconds
            success: Whether the call succeeded
            output: Output preview or error text
            tags: Fixed metric tags (sandbox, sandbox_policy)
        """
        record = ToolResultRecord(
            tool_name=tool_name,
            call_id=call_id,
            arguments=arguments,
            duration_ms=duration * 1000,
            success=success,
            output=output,
            tags=tuple(tags),
        )
        logger.bind(telemetry=True, conversation_id=self.conversation_id).log(
            "INFO" if success else "WARNING",
            "Tool result | tool={} call_id={} success={} duration_ms={:.1f} tags={} arguments={} output={}",
            tool_name,
            call_id,
            success,
            record.duration_ms,
            dict(record.tags),
            _truncate(arguments),
            _truncate(output),
        )
        if self._on_record is not None:
            # Sink errors are logged, never propagated to the tool call
            try:
                self._on_record(record)
            except Exception as e:
                logger.error(
                    "Telemetry sink failed | tool={} call_id={} error={}",
                    tool_name,
                    call_id,
                    e,
                )
        return record

    async def log_tool_result_with_tags(
        self,
        tool_name: str,
        call_id: str,
        arguments: str,
        tags: MetricTags,
        fn: Callable[[], Awaitable[tuple[str, bool]]],
    ) -> tuple[str, bool]:
        """
        Run ``fn`` and record its outcome.

        ``fn`` returns ``(output_preview, success)``. Exceptions are recorded
        as failures with the error text, then re-raised unchanged.
        """
        started = time.monotonic()
        try:
            preview, success = await fn()
        except Exception as e:
            self.tool_result_with_tags(
                tool_name,
                call_id,
                arguments,
                time.monotonic() - started,
                False,
                str(e),
                tags,
            )
            raise
        self.tool_result_with_tags(
            tool_name,
            call_id,
            arguments,
            time.monotonic() - started,
            success,
            preview,
            tags,
        )
        return preview, success


def _truncate(value: str, max_len: int = MAX_LOGGED_CHARS) -> str:
    if len(value) > max_len:
        return value[:max_len] + "..."
    return value
