"""Tests for the hook-testing command line interface."""

import sys

import pytest
import yaml

from toolgate import __main__ as cli

DENY_RM = (
    "import json, sys\n"
    "command = json.load(sys.stdin)['tool_input'].get('command', '')\n"
    "if command.startswith('rm '):\n"
    "    sys.stderr.write('rm is not allowed')\n"
    "    sys.exit(2)\n"
)


@pytest.fixture(autouse=True)
def keep_test_logging(monkeypatch):
    """Leave loguru sinks alone; main() would otherwise replace them."""
    monkeypatch.setattr(cli, "_configure_logging", lambda level: None)


@pytest.fixture
def hooks_file(tmp_path):
    path = tmp_path / "hooks.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "hooks": {
                    "PreToolUse": [
                        {
                            "matcher": "shell*",
                            "command": [sys.executable, "-c", DENY_RM],
                            "timeout_sec": 10,
                        }
                    ]
                }
            }
        )
    )
    return path


def test_check_denied(hooks_file, tmp_path, capsys):
    code = cli.main(
        [
            "check",
            "--config",
            str(hooks_file),
            "--tool",
            "shell",
            "--input",
            '{"command": ["rm", "-rf", "build"]}',
            "--cwd",
            str(tmp_path),
        ]
    )

    assert code == cli.EXIT_DENY
    assert capsys.readouterr().out.strip() == "deny: rm is not allowed"


def test_check_allowed(hooks_file, tmp_path, capsys):
    code = cli.main(
        [
            "check",
            "--config",
            str(hooks_file),
            "--tool",
            "shell",
            "--input",
            '{"cmd": "ls"}',
            "--cwd",
            str(tmp_path),
        ]
    )

    assert code == cli.EXIT_ALLOW
    assert capsys.readouterr().out.strip() == "allow"


def test_check_unmatched_tool_is_allowed(hooks_file, capsys):
    code = cli.main(
        ["check", "--config", str(hooks_file), "--tool", "read_file", "--input", "{}"]
    )

    assert code == cli.EXIT_ALLOW


def test_check_invalid_input_json(hooks_file, capsys):
    code = cli.main(
        ["check", "--config", str(hooks_file), "--tool", "shell", "--input", "{oops"]
    )

    assert code == cli.EXIT_ERROR
    assert "not valid JSON" in capsys.readouterr().err


def test_validate_lists_rules(hooks_file, capsys):
    code = cli.main(["validate", "--config", str(hooks_file)])

    out = capsys.readouterr().out
    assert code == cli.EXIT_ALLOW
    assert out.startswith("1. matcher=shell* timeout=10s on_failure=deny")


def test_validate_missing_file(tmp_path, capsys):
    code = cli.main(["validate", "--config", str(tmp_path / "none.yaml")])

    assert code == cli.EXIT_ALLOW
    assert "No PreToolUse hooks configured" in capsys.readouterr().out


def test_invalid_config_exits_with_error(tmp_path):
    path = tmp_path / "hooks.yaml"
    path.write_text("pre_tool_use:\n  - command: ['x']\n    on_failure: later\n")

    assert cli.main(["validate", "--config", str(path)]) == cli.EXIT_ERROR
