"""
Operator CLI for testing hook configurations.

Usage:
    python -m toolgate validate --config hooks.yaml
    python -m toolgate check --config hooks.yaml --tool shell --input '{"command": "ls"}'

``check`` exits 0 when the call would be allowed and 2 when it would be
blocked, mirroring the hook protocol.
"""

import argparse
import asyncio
import json
import sys
import uuid
from pathlib import Path

from loguru import logger

from .config import Config
from .errors import HookBlockedError, HookConfigError
from .hooks.executor import run_pre_tool_use_hooks
from .hooks.models import HooksConfig
from .tools.payload import normalize_command_to_string

EXIT_ALLOW = 0
EXIT_ERROR = 1
EXIT_DENY = 2


def _configure_logging(level: str) -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> | <level>{message}</level>",
        level=level.upper(),
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="toolgate", description="Inspect and exercise PreToolUse hook configuration"
    )
    parser.add_argument(
        "--log-level", default=Config.LOG_LEVEL, help="Log level (default: %(default)s)"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    validate = subparsers.add_parser("validate", help="Load a hooks file and list its rules")
    validate.add_argument("--config", default=Config.HOOKS_YAML_PATH, help="Hooks YAML file")

    check = subparsers.add_parser("check", help="Run PreToolUse hooks for one tool call")
    check.add_argument("--config", default=Config.HOOKS_YAML_PATH, help="Hooks YAML file")
    check.add_argument("--tool", required=True, help="Tool name")
    check.add_argument("--input", default="{}", help="Tool arguments as JSON")
    check.add_argument("--cwd", default=".", help="Working directory for hooks")
    check.add_argument("--session-id", default="toolgate-cli", help="Session identifier")

    return parser


def _validate(args: argparse.Namespace) -> int:
    config = HooksConfig.from_yaml(args.config)
    if config.is_empty():
        print(f"No PreToolUse hooks configured in {args.config}")
        return EXIT_ALLOW
    for index, rule in enumerate(config.pre_tool_use, start=1):
        command = " ".join(rule.command) or "<empty>"
        print(
            f"{index}. matcher={rule.matcher} timeout={rule.timeout_sec}s "
            f"on_failure={rule.on_failure.value} command={command}"
        )
    return EXIT_ALLOW


def _check(args: argparse.Namespace) -> int:
    config = HooksConfig.from_yaml(args.config)
    try:
        tool_input = normalize_command_to_string(json.loads(args.input))
    except json.JSONDecodeError as e:
        print(f"error: --input is not valid JSON: {e}", file=sys.stderr)
        return EXIT_ERROR

    cwd = str(Path(args.cwd).resolve())
    try:
        asyncio.run(
            run_pre_tool_use_hooks(
                config,
                args.tool,
                tool_input,
                f"cli-{uuid.uuid4().hex[:12]}",
                args.session_id,
                cwd,
                str(Config.transcript_path()),
            )
        )
    except HookBlockedError as blocked:
        print(f"deny: {blocked.reason}")
        return EXIT_DENY

    print("allow")
    return EXIT_ALLOW


def main(argv: list[str] | None = None) -> int:
    """Entry point for ``python -m toolgate`` and the ``toolgate`` script."""
    args = _build_parser().parse_args(argv)
    _configure_logging(args.log_level)

    try:
        if args.command == "validate":
            return _validate(args)
        return _check(args)
    except HookConfigError as e:
        logger.error(f"Invalid hooks config: {e}")
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
