"""PreToolUse hook execution with subprocess lifecycle management."""

from __future__ import annotations

import asyncio
import os
import signal
from typing import Any

from loguru import logger

from ..config import Config
from ..errors import HookBlockedError, HookExecutionError
from .matcher import matches_tool
from .models import (
    PRE_TOOL_USE_EVENT,
    HookDecision,
    HookFailurePolicy,
    HookInput,
    HookOutput,
    HookRule,
    HooksConfig,
)

DEFAULT_BLOCK_REASON = "Blocked by PreToolUse hook"
EXIT_CODE_BLOCK = 2

# Hooks get their own process group so a timeout can kill everything they spawned
_USE_PROCESS_GROUP = os.name == "posix"


async def run_pre_tool_use_hooks(
    hooks_config: HooksConfig,
    tool_name: str,
    tool_input: Any,
    tool_use_id: str,
    session_id: str,
    cwd: str,
    transcript_path: str,
) -> None:
    """
    Run all matching PreToolUse hooks in configured order.

    Hooks run one at a time; the first blocking decision stops evaluation.
    Hook infrastructure failures never escape: each rule's ``on_failure``
    policy turns them into a block (deny) or a continuation (allow).

    Args:
        hooks_config: Loaded hook rules
        tool_name: Name of the tool being called
        tool_input: Hook-facing tool arguments
        tool_use_id: Unique identifier for this tool call
        session_id: Session/conversation identifier
        cwd: Working directory the hooks run in
        transcript_path: Path to the session transcript

    Raises:
        HookBlockedError: If a hook denied the call, or failed under a
            fail-closed policy
    """
    for hook in hooks_config.pre_tool_use:
        if not matches_tool(hook.matcher, tool_name):
            continue

        # A hook that cannot run is treated like a hook that failed
        if not hook.command:
            logger.warning("Hook has empty command | matcher={}", hook.matcher)
            if hook.on_failure is HookFailurePolicy.DENY:
                raise HookBlockedError("Hook misconfigured: empty command")
            logger.debug("Empty command but on_failure=allow, continuing")
            continue

        logger.debug(
            "Running PreToolUse hook | tool={} matcher={}", tool_name, hook.matcher
        )

        try:
            output = await execute_single_hook(
                hook,
                tool_name,
                tool_input,
                tool_use_id,
                session_id,
                cwd,
                transcript_path,
            )
        except HookExecutionError as e:
            logger.warning(
                "Hook execution failed | matcher={} error={}", hook.matcher, e
            )
            if hook.on_failure is HookFailurePolicy.DENY:
                raise HookBlockedError(f"Hook failed (fail-closed): {e}")
            logger.debug("Hook failed but on_failure=allow, continuing")
            continue

        decision = output.effective_decision()
        if decision.blocks:
            reason = output.effective_reason() or DEFAULT_BLOCK_REASON
            logger.info(
                "PreToolUse hook blocked tool | tool={} decision={} reason={}",
                tool_name,
                decision.value,
                reason,
            )
            raise HookBlockedError(reason)


async def execute_single_hook(
    hook: HookRule,
    tool_name: str,
    tool_input: Any,
    tool_use_id: str,
    session_id: str,
    cwd: str,
    transcript_path: str,
) -> HookOutput:
    """
    Run one hook process and decode its decision.

    Exit code 0 = allow or parsed decision, 2 = deny with stderr as the
    reason, anything else = execution error. Before returning, on every
    path (including timeout and cancellation), the hook's process group
    is killed and the hook is reaped.

    Raises:
        HookExecutionError: If the hook could not produce a decision
    """
    hook_input = HookInput(
        tool_name=tool_name,
        tool_input=tool_input,
        tool_use_id=tool_use_id,
        session_id=session_id,
        cwd=cwd,
        transcript_path=transcript_path,
    )
    try:
        input_json = hook_input.to_json()
    except (TypeError, ValueError) as e:
        raise HookExecutionError(f"Serialize hook input: {e}")

    env = {
        **os.environ,
        "TOOLGATE_HOOK_EVENT": PRE_TOOL_USE_EVENT,
        "TOOLGATE_TOOL_NAME": tool_name,
        "TOOLGATE_SESSION_ID": session_id,
    }

    try:
        proc = await asyncio.create_subprocess_exec(
            *hook.command,
            cwd=cwd,
            env=env,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            start_new_session=_USE_PROCESS_GROUP,
        )
    except OSError as e:
        raise HookExecutionError(f"Spawn hook: {e}")

    try:
        # The timeout bounds the stdin write as well as the wait for output
        stdout_bytes, stderr_bytes = await asyncio.wait_for(
            _exchange(proc, input_json.encode("utf-8")),
            timeout=hook.timeout_sec,
        )
    except asyncio.TimeoutError:
        raise HookExecutionError(f"Hook timed out after {hook.timeout_sec}s")
    except OSError as e:
        raise HookExecutionError(f"Wait for hook: {e}")
    finally:
        # Kills anything the hook left running in the background too
        _kill_process_tree(proc)
        await proc.wait()

    stdout = stdout_bytes.decode("utf-8", errors="replace")
    stderr = stderr_bytes.decode("utf-8", errors="replace").strip()
    exit_code = proc.returncode

    if exit_code == EXIT_CODE_BLOCK:
        return HookOutput(
            decision=HookDecision.DENY,
            reason=stderr or "Hook blocked command (exit code 2)",
        )

    if exit_code != 0:
        if stderr:
            raise HookExecutionError(f"Hook failed: {stderr}")
        raise HookExecutionError(
            f"Hook exited with status: {_describe_exit(exit_code)}"
        )

    if not stdout.strip():
        # No output: the hook just exited 0
        return HookOutput()

    try:
        return HookOutput.from_json(stdout)
    except ValueError as e:
        preview = stdout[: Config.HOOK_OUTPUT_PREVIEW_CHARS]
        raise HookExecutionError(f"Parse hook output: {e} (got: {preview})")


async def _exchange(
    proc: asyncio.subprocess.Process, data: bytes
) -> tuple[bytes, bytes]:
    """
    Feed ``data`` to the hook's stdin, close it, then collect stdout/stderr.

    Output is drained concurrently with the write so a hook that prints
    before reading cannot deadlock against a full pipe.

    Raises:
        HookExecutionError: If the payload could not be delivered
    """
    stdout_task = asyncio.ensure_future(proc.stdout.read())
    stderr_task = asyncio.ensure_future(proc.stderr.read())
    try:
        try:
            proc.stdin.write(data)
            await proc.stdin.drain()
        except (BrokenPipeError, ConnectionResetError) as e:
            raise HookExecutionError(f"Write to hook stdin: {e}")
        # EOF tells the hook the payload is complete
        proc.stdin.close()

        stdout, stderr = await asyncio.gather(stdout_task, stderr_task)
        await proc.wait()
        return stdout, stderr
    finally:
        for task in (stdout_task, stderr_task):
            if not task.done():
                task.cancel()


def _kill_process_tree(proc: asyncio.subprocess.Process) -> None:
    if _USE_PROCESS_GROUP:
        try:
            os.killpg(proc.pid, signal.SIGKILL)
        except (ProcessLookupError, PermissionError):
            # Group already gone (or only zombies left on macOS)
            pass
        return
    if proc.returncode is None:
        proc.kill()


def _describe_exit(returncode: int) -> str:
    if returncode < 0:
        return f"signal: {-returncode}"
    return f"exit status: {returncode}"

